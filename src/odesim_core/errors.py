# src/odesim_core/errors.py
import logging
from dataclasses import dataclass
from abc import abstractmethod
from typing import Any, Dict, Optional, Protocol
from typing import runtime_checkable

logger = logging.getLogger(__name__)

# --- User-Facing Exception Hierarchy ---

class OdeSimError(Exception):
    """Base class for all custom, user-facing errors in ODESim Core."""
    pass


# --- Diagnostic Protocol & Base Exception ---

@runtime_checkable
class Diagnosable(Protocol):
    """Anything that can render its own multi-line diagnostic report."""
    def get_diagnostic_report(self) -> str:
        ...

class DiagnosableError(OdeSimError, Diagnosable):
    """
    Base class of every error the integrator, the sweep and the study loader raise.

    A failing simulation has to be explained in terms of the run that failed: which
    setting was wrong, at which time and step the derivative misbehaved, which swept
    parameter value broke. Subclasses carry those coordinates as dataclass fields and
    pass them to `format_diagnostic_report` as its context.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        raise NotImplementedError


# --- Stateless Formatting Utility ---

#: Report labels for the recognised context keys, in display order.
REPORT_CONTEXT_LABELS = (
    ("field", "Field"),
    ("source_file", "Source File"),
    ("parameter", "Parameter"),
    ("time", "Time"),
    ("step_index", "Step Index"),
)
_LABEL_WIDTH = 16
_REPORT_TITLE = " ODESim Core: Actionable Diagnostic Report "
_REPORT_RULE_WIDTH = 73


def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Renders the report shared by all diagnosable errors.

    Args:
        error_type: The category of the failure (e.g. "Derivative Evaluation Error").
        details: What went wrong; may span several lines.
        suggestion: How to fix it. Omitted from the report when empty.
        context: Values keyed by the names in `REPORT_CONTEXT_LABELS`. Missing or None
                 values are skipped, while 0 (a first step, a start time) is shown.
    """
    lines = [
        "\n",
        _REPORT_TITLE.center(_REPORT_RULE_WIDTH, "="),
        f"{'Error Type:':<{_LABEL_WIDTH}}{error_type}",
    ]
    for key, label in REPORT_CONTEXT_LABELS:
        value = context.get(key)
        if value is None or value == "":
            continue
        lines.append(f"{label + ':':<{_LABEL_WIDTH}}{value}")

    lines.append("\nDetails:")
    lines.extend(f"  {line}" for line in details.splitlines())
    if suggestion:
        lines.append("\nSuggestion:")
        lines.extend(f"  {line}" for line in suggestion.splitlines())

    lines.append("=" * _REPORT_RULE_WIDTH)
    return "\n".join(lines)


# --- Core Numerical Errors ---

@dataclass(eq=False)
class ConfigurationError(DiagnosableError, ValueError):
    """
    Raised when the inputs of an integration or analysis request are invalid:
    a non-positive step size, a non-finite time bound, a derivative whose output
    length disagrees with the initial state, an inverted sweep range, and so on.

    It is also a `ValueError`, so generic callers can treat it as one.
    """
    details: str
    field: Optional[str] = None

    def __str__(self):
        prefix = f"Invalid '{self.field}': " if self.field else ""
        return f"{prefix}{self.details}"

    def get_diagnostic_report(self) -> str:
        """Generates the diagnostic report for a configuration error."""
        return format_diagnostic_report(
            error_type="Invalid Configuration",
            details=self.details,
            suggestion="Review the simulation settings and parameters passed to the core. Step sizes must be positive, time bounds finite, and vector lengths consistent.",
            context={'field': self.field}
        )


@dataclass(eq=False)
class EvaluationError(DiagnosableError):
    """
    Raised when the caller-supplied derivative function misbehaves at runtime:
    it raised, returned non-numeric values, or returned a vector of the wrong length.
    Detected per call, never presumed.
    """
    details: str
    time: Optional[float] = None
    step_index: Optional[int] = None

    def __str__(self):
        where = f" at t={self.time!r}" if self.time is not None else ""
        if self.step_index is not None:
            where += f" (step {self.step_index})"
        return f"Derivative evaluation failed{where}: {self.details}"

    def get_diagnostic_report(self) -> str:
        """Generates the diagnostic report for a derivative evaluation failure."""
        return format_diagnostic_report(
            error_type="Derivative Evaluation Error",
            details=self.details,
            suggestion="Check the derivative function: it must accept (t, y, params) and return one real number per state variable.",
            context={'time': self.time, 'step_index': self.step_index}
        )
