# src/odesim_core/analysis/exceptions.py
"""
Defines custom, diagnosable exceptions for the analysis services.
"""
from dataclasses import dataclass

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass(eq=False)
class SweepPointFailure(DiagnosableError):
    """
    A context-enriching exception that wraps the root error of a single sweep point
    with the parameter value at which it occurred. Raised when a sweep runs with
    the "raise" error policy; the whole sweep is aborted.
    """
    parameter_name: str
    param_value: float
    original_error: Exception

    def __str__(self):
        return f"Sweep point {self.parameter_name}={self.param_value!r} failed: {self.original_error}"

    def get_diagnostic_report(self) -> str:
        """
        Generates a composite report that prepends the sweep context to the report
        of the root cause, when the root cause is itself diagnosable.
        """
        if isinstance(self.original_error, DiagnosableError):
            root_cause_report = self.original_error.get_diagnostic_report()
        else:
            root_cause_report = f"{type(self.original_error).__name__}: {self.original_error}"

        return format_diagnostic_report(
            error_type="Bifurcation Sweep Point Failure",
            details=(
                f"The simulation for {self.parameter_name} = {self.param_value!r} failed, aborting the sweep.\n\n"
                f"--- Details of the Root Cause ---\n{root_cause_report}"
            ),
            suggestion="Address the root cause above, narrow the sweep range, or run the sweep with on_error='record' to keep the remaining points.",
            context={'parameter': f"{self.parameter_name} = {self.param_value!r}"}
        )
