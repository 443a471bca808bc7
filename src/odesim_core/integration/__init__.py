# src/odesim_core/integration/__init__.py
from .derivative import CheckedDerivative
from .rk4 import rk4_step
from .results import SimulationResult
from .sampler import TrajectorySampler
from .execution import integrate_step, simulate, simulate_settings

__all__ = [
    # Result Contract
    "SimulationResult",
    # Core Classes
    "CheckedDerivative",
    "TrajectorySampler",
    "rk4_step",
    # Public API
    "integrate_step",
    "simulate",
    "simulate_settings",
]
