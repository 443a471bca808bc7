# tests/conftest.py
import threading

import numpy as np
import pytest


# --- Derivative functions shared across the suite ---

def constant_rhs(t, y, params):
    """dy/dt = c: exact for RK4, y(t) = y0 + c*t."""
    return [params.get("c", 1.0)]


def harmonic_rhs(t, y, params):
    """x' = v, v' = -omega^2 * x."""
    omega = params.get("omega", 1.0)
    return [y[1], -omega * omega * y[0]]


def decay_rhs(t, y, params):
    """y' = -k*y, y(t) = y0 * exp(-k*t)."""
    return [-params["k"] * y[0]]


def rossler_rhs(t, y, params):
    x, yy, z = y
    return [
        -yy - z,
        x + params["a"] * yy,
        params["b"] + z * (x - params["c"]),
    ]


def damped_rhs(t, y, params):
    """A damped oscillator that spirals into the origin (a stable focus)."""
    return [y[1], -y[0] - params["damping"] * y[1]]


@pytest.fixture
def constant_system():
    return constant_rhs


@pytest.fixture
def harmonic_system():
    return harmonic_rhs


@pytest.fixture
def decay_system():
    return decay_rhs


@pytest.fixture
def rossler_system():
    return rossler_rhs


@pytest.fixture
def rossler_params():
    return {"a": 0.2, "b": 0.2, "c": 5.7}


@pytest.fixture
def damped_system():
    return damped_rhs


@pytest.fixture
def cancel_event():
    return threading.Event()


@pytest.fixture
def sine_series():
    """Three full periods of a sine wave sampled densely: maxima at t = pi/2 + 2*pi*k."""
    t = np.linspace(0.0, 6.0 * np.pi, 3001)
    return t, np.sin(t)
