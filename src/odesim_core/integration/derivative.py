# src/odesim_core/integration/derivative.py
"""
The validation gateway around a caller-supplied DerivativeFunction.

The derivative is untrusted code: it may come from a plugin, a registered callback
or an expression evaluator living outside the core. The core therefore enforces
the function contract at the boundary, on every call: it must not raise, it must
return real numbers, and it must return exactly one value per state variable.
Failures become an `EvaluationError` instead of corrupting the trajectory.
"""
import logging
from typing import Any, Mapping, Optional

import numpy as np

from ..data_structures import DerivativeFunction
from ..errors import EvaluationError

logger = logging.getLogger(__name__)

#: numpy dtype kinds accepted from a derivative: signed int, unsigned int, float.
REAL_DTYPE_KINDS = frozenset("iuf")


class CheckedDerivative:
    """
    Wraps a DerivativeFunction of a system with a fixed number of state variables
    and validates every evaluation.
    """
    def __init__(self, func: DerivativeFunction, num_variables: int):
        if not callable(func):
            raise TypeError(f"The derivative must be callable, got '{type(func).__name__}'.")
        self.func = func
        self.num_variables = num_variables
        self.step_index: Optional[int] = None

    def __call__(self, t: float, y: np.ndarray, params: Mapping[str, float]) -> np.ndarray:
        dydt = self.evaluate(t, y, params)
        if dydt.shape != (self.num_variables,):
            raise EvaluationError(
                details=self.describe_shape_mismatch(dydt),
                time=t, step_index=self.step_index
            )
        return dydt

    def evaluate(self, t: float, y: np.ndarray, params: Mapping[str, float]) -> np.ndarray:
        """Invokes the derivative and coerces its output to a float array, without the length check."""
        try:
            raw = self.func(t, y, params)
        except Exception as e:
            raise EvaluationError(
                details=f"The derivative function raised {type(e).__name__}: {e}",
                time=t, step_index=self.step_index
            ) from e
        return self._coerce(raw, t)

    def describe_shape_mismatch(self, dydt: np.ndarray) -> str:
        return (f"The derivative function returned {dydt.size} value(s) with shape {dydt.shape}, "
                f"but the system has {self.num_variables} state variable(s).")

    def _coerce(self, raw: Any, t: float) -> np.ndarray:
        """
        Converts the raw output to a float array without any lenient casting: None,
        strings, booleans and complex values are rejected, not converted.
        """
        try:
            dydt = np.asarray(raw)
        except (TypeError, ValueError) as e:
            raise EvaluationError(
                details=f"The derivative function returned non-numeric output ({type(raw).__name__}): {e}",
                time=t, step_index=self.step_index
            ) from e
        if dydt.dtype.kind not in REAL_DTYPE_KINDS:
            kind = "complex" if dydt.dtype.kind == "c" else f"dtype '{dydt.dtype}'"
            raise EvaluationError(
                details=(f"The derivative function returned non-numeric output "
                         f"({type(raw).__name__} with {kind}); only real numbers are accepted."),
                time=t, step_index=self.step_index
            )
        return dydt.astype(float)
