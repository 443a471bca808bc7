# src/odesim_core/integration/sampler.py
"""
Defines the `TrajectorySampler`, the stateless engine that turns a derivative,
an initial state and a time window into a dense `SimulationResult`.

The sampler holds no state across runs. Validation of the simulation settings
happens in the public facade (`execution.py`); the engine enforces the
derivative contract through the `CheckedDerivative` gateway.
"""
import logging
from typing import Mapping

import numpy as np

from ..data_structures import DerivativeFunction, SimulationSettings
from ..errors import ConfigurationError
from .derivative import CheckedDerivative
from .results import SimulationResult
from .rk4 import rk4_step

logger = logging.getLogger(__name__)


class TrajectorySampler:
    """
    Runs the fixed-step RK4 integrator over a time window and records every step.
    No adaptive step control and no implicit cap on the number of steps.
    """
    def __init__(self, func: DerivativeFunction, settings: SimulationSettings):
        """
        Args:
            func: The caller-supplied derivative function.
            settings: Validated simulation settings.
        """
        self.settings = settings
        self.derivative = CheckedDerivative(func, settings.num_variables)

    def run(self, params: Mapping[str, float]) -> SimulationResult:
        settings = self.settings
        num_steps = settings.num_steps
        n_vars = settings.num_variables
        h = float(settings.step_size)
        t_start = float(settings.t_start)

        y = np.array(settings.initial_conditions, dtype=float)
        if num_steps > 0:
            self._probe(t_start, y, params)

        # t_i = t_start + i*h avoids the drift of repeated accumulation.
        time = t_start + h * np.arange(num_steps + 1, dtype=float)
        series = np.empty((n_vars, num_steps + 1), dtype=float)
        series[:, 0] = y
        logger.debug(f"Sampling {n_vars} variable(s) over {num_steps} step(s) of h={h}.")

        for i in range(num_steps):
            self.derivative.step_index = i
            y = rk4_step(self.derivative, float(time[i]), y, h, params)
            series[:, i + 1] = y
        self.derivative.step_index = None

        return SimulationResult(time=time, series=series)

    def _probe(self, t: float, y: np.ndarray, params: Mapping[str, float]) -> None:
        """
        Evaluates the derivative once at the initial state so that a length mismatch
        is reported as a configuration problem before any sampling begins. An empty
        window (no steps) never calls the derivative.
        """
        dydt = self.derivative.evaluate(t, y, params)
        if dydt.shape != (self.derivative.num_variables,):
            raise ConfigurationError(
                details=(f"Derivative output does not match the {y.size} initial condition(s). "
                         f"{self.derivative.describe_shape_mismatch(dydt)}"),
                field="initial_conditions"
            )
