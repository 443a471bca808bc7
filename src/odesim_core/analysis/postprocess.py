# src/odesim_core/analysis/postprocess.py
"""
Reduces a dense `SimulationResult` to the data a specific view needs.

Two kinds of reduction live here and must not be confused:

- scientific reductions (`trim_transient`, `local_maxima`), which feed stability
  and bifurcation analysis;
- display reductions (`downsample` and the plot-point builders), which only bound
  rendering cost and are never applied before a scientific computation.
"""
import logging
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np

from ..constants import DEFAULT_MAX_DISPLAY_POINTS
from ..data_structures import require_finite
from ..errors import ConfigurationError
from ..integration.results import SimulationResult

logger = logging.getLogger(__name__)

PlotDataPoint = Dict[str, float]


def trim_transient(result: SimulationResult, transient: float) -> SimulationResult:
    """
    Drops the initial-condition-dependent prefix of a trajectory.

    Returns a new result holding the samples whose time is >= t_start + transient.
    The input result is left untouched. A transient longer than the run yields
    an empty result.
    """
    transient = require_finite(transient, "transient")
    if transient < 0:
        raise ConfigurationError(details=f"Transient duration must be non-negative, got {transient!r}.", field="transient")
    if result.num_samples == 0 or transient == 0:
        return result

    threshold = result.t_start + transient
    first_kept = int(np.searchsorted(result.time, threshold, side="left"))
    return SimulationResult(time=result.time[first_kept:], series=result.series[:, first_kept:])


def downsample(
    x: Sequence[float],
    y: Sequence[float],
    max_points: int = DEFAULT_MAX_DISPLAY_POINTS
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Keeps every `stride`-th sample of an (x, y) series pair, where
    stride = max(1, L // max_points). The first sample is always kept and order is
    preserved. For display only.
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.shape != y_arr.shape or x_arr.ndim != 1:
        raise ConfigurationError(
            details=f"Series to downsample must be 1D and of equal length, got {x_arr.shape} and {y_arr.shape}.",
            field="series"
        )
    if int(max_points) < 1:
        raise ConfigurationError(details=f"Target point count must be at least 1, got {max_points!r}.", field="max_points")

    stride = max(1, x_arr.shape[0] // int(max_points))
    return x_arr[::stride], y_arr[::stride]


def phase_portrait_points(
    result: SimulationResult,
    x_index: int,
    y_index: int,
    max_points: int = DEFAULT_MAX_DISPLAY_POINTS
) -> List[PlotDataPoint]:
    """Builds downsampled {"x", "y"} pairs of two state variables for a scatter/line view."""
    xs, ys = downsample(_variable(result, x_index), _variable(result, y_index), max_points)
    return [{"x": x, "y": y} for x, y in zip(xs.tolist(), ys.tolist())]


def time_series_points(result: SimulationResult, index: int, name: str) -> List[PlotDataPoint]:
    """Builds {"time": t, name: value} records for one state variable. Formatting is left to the UI."""
    values = _variable(result, index)
    return [{"time": t, name: v} for t, v in zip(result.time.tolist(), values.tolist())]


def _variable(result: SimulationResult, index: int) -> np.ndarray:
    try:
        return result.variable(index)
    except IndexError as e:
        raise ConfigurationError(details=str(e), field="variable_index") from e


def _iter_local_maxima(series: Sequence[float]) -> Iterator[Tuple[int, float]]:
    """
    Single pass over the series with a three-sample window. Yields (j, s[j]) for
    interior samples strictly greater than both neighbours. NaN never qualifies.
    """
    samples = iter(series)
    try:
        prev = float(next(samples))
        curr = float(next(samples))
    except StopIteration:
        return
    for j, nxt in enumerate(samples, start=1):
        nxt = float(nxt)
        if curr > prev and curr > nxt:
            yield j, curr
        prev, curr = curr, nxt


def local_maxima(series: Sequence[float]) -> List[float]:
    """
    Returns the values of the strict interior local maxima of `series`, in order.

    Endpoints never qualify, so series of length < 3 return an empty list.
    Used as a stroboscopic (Poincaré-like) sample of an attractor.
    """
    return [value for _, value in _iter_local_maxima(series)]


def local_maxima_indices(series: Sequence[float]) -> List[int]:
    """Returns the indices of the strict interior local maxima of `series`."""
    return [j for j, _ in _iter_local_maxima(series)]
