# src/odesim_core/analysis/__init__.py
"""
Defines the public interface for the trajectory analysis package: the
post-processing reductions and the bifurcation sweep, with their formal
result contracts.
"""
from .results import BifurcationPoint, BifurcationResult, SweepPointError
from .postprocess import (
    downsample,
    local_maxima,
    local_maxima_indices,
    phase_portrait_points,
    time_series_points,
    trim_transient,
)
from .sweep import BifurcationSweep, run_bifurcation_sweep, sweep_parameter
from .exceptions import SweepPointFailure

__all__ = [
    # Formal Result Contracts
    "BifurcationPoint",
    "BifurcationResult",
    "SweepPointError",
    # Post-processing
    "downsample",
    "local_maxima",
    "local_maxima_indices",
    "phase_portrait_points",
    "time_series_points",
    "trim_transient",
    # Sweep
    "BifurcationSweep",
    "run_bifurcation_sweep",
    "sweep_parameter",
    # Exceptions
    "SweepPointFailure",
]
