# src/odesim_core/integration/execution.py
"""
Provides the primary public API functions for integrating a system of ODEs.

This module is a thin Facade over the internal `TrajectorySampler` engine and the
RK4 kernel. Its responsibilities are:

1.  **Expose `integrate_step` and `simulate`:** the single-step and full-trajectory
    entry points used by UI code and by the bifurcation sweep.
2.  **Validate at the boundary:** simulation settings are checked before any work
    starts, so invalid requests fail fast with a `ConfigurationError`.
3.  **Return explicit contracts:** every run produces an immutable `SimulationResult`.

All functions here are synchronous and referentially transparent over their inputs.
"""
import logging
from typing import Mapping, Optional, Sequence

import numpy as np

from ..data_structures import DerivativeFunction, SimulationSettings, require_finite
from ..errors import ConfigurationError, DiagnosableError
from .derivative import CheckedDerivative
from .results import SimulationResult
from .rk4 import rk4_step
from .sampler import TrajectorySampler

logger = logging.getLogger(__name__)


def integrate_step(
    func: DerivativeFunction,
    t: float,
    y: Sequence[float],
    h: float,
    params: Optional[Mapping[str, float]] = None
) -> np.ndarray:
    """
    Advances the state `y` at time `t` by one classical RK4 step of size `h`.

    The input sequence is copied; the returned array is new.

    Raises:
        ConfigurationError: If `h` is not a positive finite number, `t` is not finite,
                            or `y` is empty.
        EvaluationError: If `func` raises, returns non-numeric values, or returns a
                         vector whose length differs from `y`.
    """
    h = require_finite(h, "h")
    if h <= 0:
        raise ConfigurationError(details=f"Step size must be positive, got {h!r}.", field="h")
    t = require_finite(t, "t")
    try:
        state = np.array(y, dtype=float)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(details=f"State must contain real numbers: {e}", field="y") from e
    if state.ndim != 1 or state.size == 0:
        raise ConfigurationError(details=f"State must be a non-empty 1D sequence, got shape {state.shape}.", field="y")

    derivative = CheckedDerivative(func, state.size)
    return rk4_step(derivative, t, state, h, params if params is not None else {})


def simulate(
    func: DerivativeFunction,
    initial_conditions: Sequence[float],
    t_start: float,
    t_end: float,
    step_size: float,
    params: Optional[Mapping[str, float]] = None
) -> SimulationResult:
    """
    Integrates `func` from `t_start` to `t_end` with a fixed RK4 step and returns the
    full time/series history.

    The number of steps is M = floor((t_end - t_start) / step_size). When
    ``t_end <= t_start`` the result contains only the initial sample. The sampler
    imposes no cap on M: use `SimulationSettings.num_steps` to bound it beforehand.

    Args:
        func: The derivative function f(t, y, params) -> dy/dt.
        initial_conditions: The state at `t_start` (length N).
        t_start: Start time.
        t_end: End time.
        step_size: The fixed, positive step size.
        params: The parameter mapping passed through to `func`.

    Returns:
        A `SimulationResult` with M+1 samples of N variables.

    Raises:
        ConfigurationError: For invalid settings, or when the derivative's output length
                            at the initial state does not match `initial_conditions`.
        EvaluationError: When the derivative fails during sampling.
    """
    settings = SimulationSettings(
        initial_conditions=tuple(initial_conditions),
        t_start=t_start,
        t_end=t_end,
        step_size=step_size,
    )
    return simulate_settings(func, settings, params)


def simulate_settings(
    func: DerivativeFunction,
    settings: SimulationSettings,
    params: Optional[Mapping[str, float]] = None
) -> SimulationResult:
    """
    A convenience wrapper around the sampler that takes a `SimulationSettings` value.
    The settings' `transient` is not applied here: the raw trace is always complete.
    """
    try:
        settings.validate()
        sampler = TrajectorySampler(func, settings)
        result = sampler.run(dict(params) if params is not None else {})
        logger.debug(f"Simulation finished with {result.num_samples} sample(s).")
        return result
    except DiagnosableError as e:
        logger.debug(f"Simulation failed: {e}")
        raise
