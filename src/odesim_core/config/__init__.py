# src/odesim_core/config/__init__.py
from .loader import StudyConfig, StudyConfigParser
from .exceptions import ParsingError, SchemaValidationError

__all__ = [
    "StudyConfig",
    "StudyConfigParser",
    "ParsingError",
    "SchemaValidationError",
]
