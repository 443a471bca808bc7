# src/odesim_core/config/exceptions.py
"""
Defines custom, diagnosable exceptions for loading and validating study files.

`ParsingError` covers file-level or YAML syntax issues, while `SchemaValidationError`
covers structural issues found by the Cerberus schema. Both derive from the global
`DiagnosableError`, so a UI can catch a single type for every reportable error.
Cross-field inconsistencies (e.g. a sweep observing an undeclared variable) are
reported as `ConfigurationError`, like any other invalid simulation input.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass(eq=False)
class ParsingError(DiagnosableError):
    """
    Raised when a study file cannot be read or does not contain a YAML mapping.
    """
    details: str
    file_path: Optional[Path] = None

    def __str__(self):
        return f"Parsing error in '{self.file_path or '<mapping>'}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="YAML Parsing or File Error",
            details=self.details,
            suggestion="Ensure the file exists, is readable, and contains a valid YAML mapping.",
            context={'source_file': self.file_path}
        )


@dataclass(eq=False)
class SchemaValidationError(DiagnosableError):
    """
    Raised when a study document is syntactically valid YAML but does not conform
    to the study schema (missing sections, invalid identifiers, duplicate names).
    """
    errors: Dict[str, Any]
    file_path: Optional[Path] = None

    def _error_lines(self):
        return [f"  - Field '{field}': {messages}" for field, messages in sorted(self.errors.items())]

    def __str__(self):
        return (
            f"Study schema validation failed for '{self.file_path or '<mapping>'}':\n"
            + "\n".join(self._error_lines())
        )

    def get_diagnostic_report(self) -> str:
        details = (
            "The structure of the study does not conform to the required schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n" + "\n".join(self._error_lines())
        )
        return format_diagnostic_report(
            error_type="Study Schema Validation Error",
            details=details,
            suggestion="Correct the listed fields. Names must be valid identifiers, parameter names unique, and the 'variables' and 'simulation' sections present.",
            context={'source_file': self.file_path}
        )
