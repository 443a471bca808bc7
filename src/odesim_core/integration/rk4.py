# src/odesim_core/integration/rk4.py
import logging
from typing import Callable, Mapping

import numpy as np

logger = logging.getLogger(__name__)

StageFunction = Callable[[float, np.ndarray, Mapping[str, float]], np.ndarray]


def rk4_step(
    func: StageFunction,
    t: float,
    y: np.ndarray,
    h: float,
    params: Mapping[str, float]
) -> np.ndarray:
    """
    Advances the state by one step of the classical fourth-order Runge-Kutta method.

        k1 = f(t,       y,          p)
        k2 = f(t + h/2, y + h/2*k1, p)
        k3 = f(t + h/2, y + h/2*k2, p)
        k4 = f(t + h,   y + h*k3,   p)
        y_next = y + h/6 * (k1 + 2*k2 + 2*k3 + k4)

    This is the raw kernel: `func` must already return float arrays of the state's
    shape (see `CheckedDerivative`), and `h` must be positive. Local truncation
    error is O(h^5), global error O(h^4).

    Args:
        func: The (validated) right-hand side.
        t: The current time.
        y: The current state vector. It is never modified.
        h: The step size.
        params: The parameter mapping passed through to `func`.

    Returns:
        A new array holding y(t + h).
    """
    half_h = 0.5 * h
    k1 = func(t, y, params)
    k2 = func(t + half_h, y + half_h * k1, params)
    k3 = func(t + half_h, y + half_h * k2, params)
    k4 = func(t + h, y + h * k3, params)
    return y + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)
