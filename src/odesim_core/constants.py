# src/odesim_core/constants.py
import logging

logger = logging.getLogger(__name__)

# --- Display Constants ---

#: Upper bound on the number of points handed to a phase-portrait renderer.
#: Downsampling with this budget keeps rendering cost independent of the step size.
DEFAULT_MAX_DISPLAY_POINTS: int = 2000

# --- Bifurcation Sweep Defaults ---

#: Default closed range and step count for a parameter sweep when a study file
#: does not specify them.
DEFAULT_SWEEP_MIN: float = 0.0
DEFAULT_SWEEP_MAX: float = 50.0
DEFAULT_SWEEP_STEPS: int = 100

# --- Simulation Defaults ---

DEFAULT_T_START: float = 0.0
DEFAULT_TRANSIENT: float = 0.0

#: Accepted values for the `on_error` policy of a parameter sweep.
SWEEP_ERROR_POLICIES = ("raise", "record")

logger.debug("Defined core constants: DEFAULT_MAX_DISPLAY_POINTS, sweep defaults")
