# --- src/odesim_core/log_config.py ---
import logging
import os
import sys

LOG_LEVEL_ENV_VAR = "ODESIM_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"

# Parallel sweep points log from pool threads; the thread name tells them apart.
LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] [%(threadName)s] [%(name)s] %(message)s"


def resolve_log_level(level=None):
    """
    Returns the numeric level for `level`, or for $ODESIM_LOG_LEVEL when `level` is None.
    Unknown level names fall back to INFO instead of failing the package import.
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL)
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level=None):
    """ Configures logging to stdout for the integrator, the sweep and the study loader. """
    numeric_level = resolve_log_level(level)
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(console_handler)
    logging.getLogger(__name__).debug(f"Logging configured at level {logging.getLevelName(numeric_level)}.")
