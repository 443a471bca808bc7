# src/odesim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("ODESim Core package initialized.")

from .constants import DEFAULT_MAX_DISPLAY_POINTS
from .data_structures import (
    DerivativeFunction, Parameter, SimulationSettings, SweepConfig, EquilibriumPoint,
    parameters_to_mapping,
)
from .integration import SimulationResult, integrate_step, simulate, simulate_settings
from .analysis import (
    BifurcationPoint, BifurcationResult, SweepPointError,
    downsample, local_maxima, local_maxima_indices, phase_portrait_points, time_series_points, trim_transient,
    run_bifurcation_sweep, sweep_parameter,
    SweepPointFailure,
)
from .config import StudyConfig, StudyConfigParser, ParsingError, SchemaValidationError
from .errors import OdeSimError, Diagnosable, DiagnosableError, ConfigurationError, EvaluationError

__all__ = [
    # Constants
    "DEFAULT_MAX_DISPLAY_POINTS",
    # Data Structures
    "DerivativeFunction", "Parameter", "SimulationSettings", "SweepConfig", "EquilibriumPoint",
    "parameters_to_mapping",
    # Integration
    "SimulationResult", "integrate_step", "simulate", "simulate_settings",
    # Post-processing
    "downsample", "local_maxima", "local_maxima_indices", "phase_portrait_points",
    "time_series_points", "trim_transient",
    # Bifurcation Sweep
    "BifurcationPoint", "BifurcationResult", "SweepPointError",
    "run_bifurcation_sweep", "sweep_parameter",
    # Study Files
    "StudyConfig", "StudyConfigParser",
    # Errors (Actionable Diagnostics)
    "OdeSimError", "Diagnosable", "DiagnosableError", "ConfigurationError", "EvaluationError",
    "SweepPointFailure", "ParsingError", "SchemaValidationError",
]
