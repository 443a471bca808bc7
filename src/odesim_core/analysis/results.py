# src/odesim_core/analysis/results.py
"""
Defines the formal, immutable data contracts for the output of a bifurcation sweep.

A sweep returns its data instead of writing it into ambient state; the result is
a set of (parameter value, local maximum) pairs plus explicit bookkeeping of the
points that failed or were skipped by cancellation.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, NamedTuple, Tuple


class BifurcationPoint(NamedTuple):
    """One stroboscopic return value `value` observed at the swept parameter value."""
    param_value: float
    value: float


@dataclass(frozen=True)
class SweepPointError:
    """A recorded failure of one sweep point (the "record" error policy)."""
    param_value: float
    error_type: str
    message: str


@dataclass(frozen=True)
class BifurcationResult:
    """
    The result of a one-parameter sweep.

    Attributes:
        parameter_name: The swept parameter.
        observed_index: The state variable whose maxima were collected.
        points: The set of (param_value, maximum) pairs. Several maxima per parameter
                value are expected in periodic or chaotic regimes; none in a
                fixed-point regime.
        completed_values: The parameter values whose simulation finished, sorted.
        failures: Points that failed under the "record" policy, sorted by value.
        cancelled: True if the sweep was cancelled before every point ran.
    """
    parameter_name: str
    observed_index: int
    points: FrozenSet[BifurcationPoint]
    completed_values: Tuple[float, ...] = ()
    failures: Tuple[SweepPointError, ...] = field(default_factory=tuple)
    cancelled: bool = False

    @property
    def is_complete(self) -> bool:
        return not self.cancelled and not self.failures

    def sorted_points(self) -> List[BifurcationPoint]:
        return sorted(self.points)

    def maxima_by_parameter(self) -> Dict[float, List[float]]:
        """Groups the maxima by parameter value. Completed values without maxima map to []."""
        grouped: Dict[float, List[float]] = {value: [] for value in self.completed_values}
        collected = defaultdict(list)
        for point in self.points:
            collected[point.param_value].append(point.value)
        for param_value, values in collected.items():
            grouped[param_value] = sorted(values)
        return dict(sorted(grouped.items()))

    def as_plot_points(self) -> List[Dict[str, float]]:
        """The {"x": param_value, "y": maximum} records of a bifurcation scatter plot."""
        return [{"x": p.param_value, "y": p.value} for p in self.sorted_points()]
