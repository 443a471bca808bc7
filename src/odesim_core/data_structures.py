# src/odesim_core/data_structures.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from .constants import DEFAULT_TRANSIENT
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

#: The caller-supplied right-hand side dy/dt = f(t, y, params). It must be pure and
#: return exactly one real number per state variable.
DerivativeFunction = Callable[[float, np.ndarray, Mapping[str, float]], Sequence[float]]


def require_finite(value: float, field_name: str) -> float:
    try:
        as_float = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(details=f"Expected a real number, got {value!r}.", field=field_name) from e
    if not math.isfinite(as_float):
        raise ConfigurationError(details=f"Value must be finite, got {as_float!r}.", field=field_name)
    return as_float


@dataclass(frozen=True)
class Parameter:
    """A single named, real-valued model parameter (e.g. ``sigma = 10``)."""
    name: str
    value: float


def parameters_to_mapping(parameters: Iterable[Parameter]) -> Dict[str, float]:
    """
    Converts a parameter list into the name -> value mapping expected by a
    DerivativeFunction. Duplicate or empty names raise ConfigurationError.
    """
    mapping: Dict[str, float] = {}
    for param in parameters:
        if not param.name:
            raise ConfigurationError(details="Parameter names must be non-empty.", field="parameters")
        if param.name in mapping:
            raise ConfigurationError(details=f"Duplicate parameter name '{param.name}'.", field="parameters")
        mapping[param.name] = require_finite(param.value, f"parameters.{param.name}")
    return mapping


@dataclass(frozen=True)
class SimulationSettings:
    """
    The immutable description of one integration window.

    Attributes:
        initial_conditions: The state at ``t_start``, one value per state variable.
        t_start: Start of the integration window.
        t_end: End of the window. ``t_end <= t_start`` is valid and yields a single sample.
        step_size: The fixed RK4 step. Must be positive.
        transient: Leading simulated time excluded from analysis views (never from the raw trace).
    """
    initial_conditions: Tuple[float, ...]
    t_start: float
    t_end: float
    step_size: float
    transient: float = DEFAULT_TRANSIENT

    def __post_init__(self):
        # Normalise any sequence (list, ndarray) into a hashable tuple.
        object.__setattr__(self, "initial_conditions", tuple(self.initial_conditions))

    @property
    def num_variables(self) -> int:
        return len(self.initial_conditions)

    @property
    def num_steps(self) -> int:
        """
        The number of RK4 steps M = floor((t_end - t_start) / step_size), clamped at 0.
        Callers use this to bound memory and time before running a simulation.
        """
        self.validate()
        return max(0, math.floor((self.t_end - self.t_start) / self.step_size))

    def validate(self) -> None:
        """Raises ConfigurationError if the settings cannot describe a simulation."""
        if not self.initial_conditions:
            raise ConfigurationError(details="At least one state variable is required.", field="initial_conditions")
        for idx, value in enumerate(self.initial_conditions):
            require_finite(value, f"initial_conditions[{idx}]")
        require_finite(self.t_start, "t_start")
        require_finite(self.t_end, "t_end")
        step = require_finite(self.step_size, "step_size")
        if step <= 0:
            raise ConfigurationError(details=f"Step size must be positive, got {step!r}.", field="step_size")
        transient = require_finite(self.transient, "transient")
        if transient < 0:
            raise ConfigurationError(details=f"Transient duration must be non-negative, got {transient!r}.", field="transient")


@dataclass(frozen=True)
class EquilibriumPoint:
    """
    External data contract for an equilibrium produced outside the core
    (the core never computes these). Eigenvalues may be real numbers or
    string-encoded complex numbers such as ``"-0.5+2.1i"``.
    """
    coordinates: Dict[str, float]
    eigenvalues: Tuple[Union[float, str], ...] = field(default_factory=tuple)
    stability: str = ""

    def coordinate_pair(self, x_name: str, y_name: str) -> Optional[Tuple[float, float]]:
        """
        Projects the equilibrium onto the (x_name, y_name) phase plane so it can be
        overlaid on a phase portrait. Returns None if either variable is missing.
        """
        if x_name not in self.coordinates or y_name not in self.coordinates:
            return None
        return float(self.coordinates[x_name]), float(self.coordinates[y_name])


@dataclass(frozen=True)
class SweepConfig:
    """
    The immutable description of a one-parameter bifurcation sweep.

    Attributes:
        parameter_name: The parameter to vary. Must exist in the fixed parameter set.
        minimum: Lower end of the closed range.
        maximum: Upper end of the closed range.
        steps: The number of intervals S; the sweep visits S+1 parameter values.
        observed_index: Index of the state variable whose local maxima are collected.
        transient: Leading time discarded before maxima extraction. None falls back to
                   the simulation settings' own transient.
    """
    parameter_name: str
    minimum: float
    maximum: float
    steps: int
    observed_index: int
    transient: Optional[float] = None

    def validate(self, num_variables: int) -> None:
        if not self.parameter_name:
            raise ConfigurationError(details="The swept parameter name must be non-empty.", field="parameter_name")
        minimum = require_finite(self.minimum, "minimum")
        maximum = require_finite(self.maximum, "maximum")
        if minimum > maximum:
            raise ConfigurationError(details=f"Sweep range is inverted: min={minimum!r} > max={maximum!r}.", field="range")
        if isinstance(self.steps, bool) or not isinstance(self.steps, (int, np.integer)):
            raise ConfigurationError(details=f"Sweep steps must be an integer, got {self.steps!r}.", field="steps")
        if self.steps < 0:
            raise ConfigurationError(details=f"Sweep steps must be non-negative, got {self.steps!r}.", field="steps")
        if (isinstance(self.observed_index, bool)
                or not isinstance(self.observed_index, (int, np.integer))
                or not 0 <= self.observed_index < num_variables):
            raise ConfigurationError(
                details=f"Observed variable index {self.observed_index} is out of range for {num_variables} variable(s).",
                field="observed_index"
            )
        if self.transient is not None and require_finite(self.transient, "transient") < 0:
            raise ConfigurationError(details=f"Sweep transient must be non-negative, got {self.transient!r}.", field="transient")

    def parameter_values(self) -> np.ndarray:
        """The S+1 swept values min + i*(max-min)/S for i in 0..S. S=0 visits only `minimum`."""
        if self.steps == 0:
            return np.array([float(self.minimum)])
        increment = (float(self.maximum) - float(self.minimum)) / self.steps
        return float(self.minimum) + increment * np.arange(self.steps + 1, dtype=float)
