# src/odesim_core/integration/results.py
"""
Defines the formal, immutable data contract for the output of one integration run.

A `SimulationResult` is recomputed on demand and never partially updated: analysis
helpers such as the transient trim return a new result instead of mutating one.
"""
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SimulationResult:
    """
    The dense time/series history produced by the trajectory sampler.

    Attributes:
        time: A 1D array of the M+1 sample times. Strictly increasing with a
              constant step; the last sample may fall short of ``t_end`` by less
              than one step.
        series: A 2D array of shape (N, M+1). ``series[j][i]`` is the value of
                state variable ``j`` at ``time[i]``.
    """
    time: np.ndarray
    series: np.ndarray

    def __post_init__(self):
        if self.series.ndim != 2 or self.series.shape[1] != self.time.shape[0]:
            raise ValueError(
                f"Series shape {self.series.shape} is inconsistent with {self.time.shape[0]} time samples."
            )
        # Results are shared between analysis views; lock the buffers.
        self.time.setflags(write=False)
        self.series.setflags(write=False)

    @property
    def num_variables(self) -> int:
        return self.series.shape[0]

    @property
    def num_samples(self) -> int:
        return self.time.shape[0]

    @property
    def t_start(self) -> float:
        return float(self.time[0])

    @property
    def final_state(self) -> np.ndarray:
        return self.series[:, -1]

    def variable(self, index: int) -> np.ndarray:
        """Returns the full history of state variable `index`."""
        if not 0 <= index < self.num_variables:
            raise IndexError(f"Variable index {index} out of range for {self.num_variables} variable(s).")
        return self.series[index]
