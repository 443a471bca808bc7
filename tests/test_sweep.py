# tests/test_sweep.py
import logging

import numpy as np
import pytest

from odesim_core import (
    BifurcationPoint,
    BifurcationResult,
    ConfigurationError,
    EvaluationError,
    SimulationSettings,
    SweepConfig,
    SweepPointError,
    SweepPointFailure,
    run_bifurcation_sweep,
    sweep_parameter,
)
from odesim_core.analysis import BifurcationSweep


def count_branches(values, gap=0.05):
    """Counts clusters of maxima separated by more than `gap`."""
    ordered = np.sort(np.asarray(values))
    if ordered.size == 0:
        return 0
    return 1 + int(np.count_nonzero(np.diff(ordered) > gap))


@pytest.fixture
def rossler_settings():
    return SimulationSettings(initial_conditions=(1.0, 1.0, 1.0), t_start=0.0, t_end=400.0, step_size=0.05, transient=300.0)


@pytest.fixture
def decay_settings():
    return SimulationSettings(initial_conditions=(1.0,), t_start=0.0, t_end=10.0, step_size=0.1)


def flaky_decay(t, y, params):
    if params["k"] > 1.5:
        raise RuntimeError("stiff region")
    return [-params["k"] * y[0]]


class TestRosslerBifurcation:

    @pytest.mark.parametrize("c, expected_branches", [(2.5, 1), (3.5, 2)])
    def test_periodic_regimes(self, rossler_system, rossler_params, rossler_settings, c, expected_branches):
        result = sweep_parameter(rossler_system, rossler_params, "c", (c, c), 0, rossler_settings, observed_index=0)
        assert result.completed_values == (c,)
        maxima = result.maxima_by_parameter()[c]
        assert len(maxima) >= 10
        assert count_branches(maxima) == expected_branches

    def test_chaotic_regime_has_many_branches(self, rossler_system, rossler_params, rossler_settings):
        result = sweep_parameter(rossler_system, rossler_params, "c", (5.7, 5.7), 0, rossler_settings, observed_index=0)
        assert count_branches(result.maxima_by_parameter()[5.7]) >= 5

    def test_branch_count_grows_across_period_doubling(self, rossler_system, rossler_params, rossler_settings):
        result = sweep_parameter(
            rossler_system, rossler_params, "c", (2.5, 3.5), 1, rossler_settings, observed_index=0, max_workers=2
        )
        branches = {c: count_branches(maxima) for c, maxima in result.maxima_by_parameter().items()}
        assert branches == {2.5: 1, 3.5: 2}

    def test_parallel_matches_sequential(self, rossler_system, rossler_params):
        settings = SimulationSettings(initial_conditions=(1.0, 1.0, 1.0), t_start=0.0, t_end=150.0, step_size=0.05)
        kwargs = dict(transient=100.0)
        sequential = sweep_parameter(rossler_system, rossler_params, "c", (2.5, 4.0), 3, settings, 0, **kwargs)
        parallel = sweep_parameter(rossler_system, rossler_params, "c", (2.5, 4.0), 3, settings, 0, max_workers=4, **kwargs)
        assert sequential.points == parallel.points
        assert sequential.completed_values == parallel.completed_values == (2.5, 3.0, 3.5, 4.0)
        assert sequential.sorted_points() == parallel.sorted_points()

    def test_fixed_params_are_not_mutated(self, rossler_system, rossler_params):
        settings = SimulationSettings(initial_conditions=(1.0, 1.0, 1.0), t_start=0.0, t_end=20.0, step_size=0.1)
        sweep_parameter(rossler_system, rossler_params, "c", (2.0, 3.0), 2, settings, 0)
        assert rossler_params == {"a": 0.2, "b": 0.2, "c": 5.7}


class TestSweepGrid:

    def test_fixed_point_regime_yields_no_maxima(self, decay_system, decay_settings):
        result = sweep_parameter(decay_system, {"k": 1.0}, "k", (0.5, 2.0), 3, decay_settings, 0)
        assert result.points == frozenset()
        assert result.completed_values == (0.5, 1.0, 1.5, 2.0)
        assert result.maxima_by_parameter() == {0.5: [], 1.0: [], 1.5: [], 2.0: []}
        assert result.is_complete

    def test_zero_steps_visits_only_minimum(self, decay_system, decay_settings):
        result = sweep_parameter(decay_system, {"k": 1.0}, "k", (0.5, 2.0), 0, decay_settings, 0)
        assert result.completed_values == (0.5,)

    def test_degenerate_range(self, decay_system, decay_settings):
        result = sweep_parameter(decay_system, {"k": 1.0}, "k", (1.0, 1.0), 2, decay_settings, 0)
        assert result.completed_values == (1.0, 1.0, 1.0)
        assert result.maxima_by_parameter() == {1.0: []}

    def test_parameter_values(self):
        config = SweepConfig(parameter_name="k", minimum=0.0, maximum=50.0, steps=100, observed_index=0)
        values = config.parameter_values()
        assert len(values) == 101
        assert values[0] == 0.0
        assert values[-1] == pytest.approx(50.0)
        np.testing.assert_allclose(np.diff(values), 0.5)

    def test_transient_falls_back_to_settings(self, decay_system):
        settings = SimulationSettings(initial_conditions=(1.0,), t_start=0.0, t_end=10.0, step_size=0.1, transient=2.5)
        config = SweepConfig(parameter_name="k", minimum=0.0, maximum=1.0, steps=1, observed_index=0)
        assert BifurcationSweep(decay_system, {"k": 1.0}, config, settings).transient == 2.5
        explicit = SweepConfig(parameter_name="k", minimum=0.0, maximum=1.0, steps=1, observed_index=0, transient=4.0)
        assert BifurcationSweep(decay_system, {"k": 1.0}, explicit, settings).transient == 4.0

    def test_transient_removes_early_maxima(self, damped_system):
        settings = SimulationSettings(initial_conditions=(1.0, 0.0), t_start=0.0, t_end=30.0, step_size=0.01)
        full = sweep_parameter(damped_system, {"damping": 0.2}, "damping", (0.2, 0.2), 0, settings, 0)
        trimmed = sweep_parameter(damped_system, {"damping": 0.2}, "damping", (0.2, 0.2), 0, settings, 0, transient=15.0)
        assert 0 < len(trimmed.points) < len(full.points)
        assert max(p.value for p in trimmed.points) < max(p.value for p in full.points)


class TestSweepValidation:

    @pytest.mark.parametrize("fixed_params", [{}, {"offset": 3.0}])
    def test_swept_parameter_need_not_be_fixed(self, decay_system, decay_settings, fixed_params):
        result = sweep_parameter(decay_system, fixed_params, "k", (0.5, 1.0), 1, decay_settings, 0)
        assert result.completed_values == (0.5, 1.0)
        assert result.is_complete
        assert fixed_params.get("k") is None

    def test_empty_parameter_name(self, decay_system, decay_settings):
        with pytest.raises(ConfigurationError) as exc_info:
            sweep_parameter(decay_system, {"k": 1.0}, "", (0.0, 1.0), 4, decay_settings, 0)
        assert exc_info.value.field == "parameter_name"

    @pytest.mark.parametrize("param_range, steps, observed_index, field", [
        ((2.0, 1.0), 4, 0, "range"),
        ((0.0, 1.0), -1, 0, "steps"),
        ((0.0, 1.0), 2.5, 0, "steps"),
        ((0.0, 1.0), 4, 1, "observed_index"),
        ((0.0, 1.0), 4, -1, "observed_index"),
        ((0.0, float("inf")), 4, 0, "maximum"),
        ((0.0,), 4, 0, "range"),
    ])
    def test_invalid_sweep_config(self, decay_system, decay_settings, param_range, steps, observed_index, field):
        with pytest.raises(ConfigurationError) as exc_info:
            sweep_parameter(decay_system, {"k": 1.0}, "k", param_range, steps, decay_settings, observed_index)
        assert exc_info.value.field == field

    def test_negative_sweep_transient(self, decay_system, decay_settings):
        with pytest.raises(ConfigurationError) as exc_info:
            sweep_parameter(decay_system, {"k": 1.0}, "k", (0.0, 1.0), 1, decay_settings, 0, transient=-1.0)
        assert exc_info.value.field == "transient"

    def test_unknown_error_policy(self, decay_system, decay_settings):
        with pytest.raises(ConfigurationError, match="ignore"):
            sweep_parameter(decay_system, {"k": 1.0}, "k", (0.0, 1.0), 1, decay_settings, 0, on_error="ignore")

    @pytest.mark.parametrize("workers", [0, -2, 1.5, True])
    def test_invalid_worker_count(self, decay_system, decay_settings, workers):
        with pytest.raises(ConfigurationError) as exc_info:
            sweep_parameter(decay_system, {"k": 1.0}, "k", (0.0, 1.0), 1, decay_settings, 0, max_workers=workers)
        assert exc_info.value.field == "max_workers"


class TestSweepErrorPolicies:

    @pytest.mark.parametrize("workers", [1, 3])
    def test_raise_policy_aborts(self, decay_settings, workers):
        with pytest.raises(SweepPointFailure) as exc_info:
            sweep_parameter(flaky_decay, {"k": 1.0}, "k", (0.0, 2.0), 4, decay_settings, 0, max_workers=workers)
        failure = exc_info.value
        assert failure.param_value == 2.0
        assert failure.parameter_name == "k"
        assert isinstance(failure.original_error, EvaluationError)
        report = failure.get_diagnostic_report()
        assert "Bifurcation Sweep Point Failure" in report
        assert "Derivative Evaluation Error" in report
        assert "k = 2.0" in report

    @pytest.mark.parametrize("workers", [1, 3])
    def test_record_policy_continues(self, decay_settings, workers, caplog):
        with caplog.at_level(logging.WARNING, logger="odesim_core.analysis.sweep"):
            result = sweep_parameter(
                flaky_decay, {"k": 1.0}, "k", (0.0, 2.0), 4, decay_settings, 0,
                max_workers=workers, on_error="record"
            )
        assert result.completed_values == (0.0, 0.5, 1.0, 1.5)
        assert len(result.failures) == 1
        recorded = result.failures[0]
        assert recorded.param_value == 2.0
        assert recorded.error_type == "EvaluationError"
        assert "stiff region" in recorded.message
        assert not result.is_complete
        assert not result.cancelled
        assert "k=2.0" in caplog.text


class TestSweepCancellation:

    @pytest.mark.parametrize("workers", [1, 4])
    def test_cancel_before_start(self, decay_system, decay_settings, cancel_event, workers):
        cancel_event.set()
        result = sweep_parameter(
            decay_system, {"k": 1.0}, "k", (0.0, 1.0), 5, decay_settings, 0,
            max_workers=workers, cancel_event=cancel_event
        )
        assert result.cancelled
        assert result.completed_values == ()
        assert result.points == frozenset()

    def test_cancel_mid_sweep_keeps_completed_points(self, decay_settings, cancel_event):
        def cancelling_decay(t, y, params):
            if params["k"] == 0.5:
                cancel_event.set()
            return [-params["k"] * y[0]]

        result = sweep_parameter(
            cancelling_decay, {"k": 1.0}, "k", (0.0, 2.0), 4, decay_settings, 0, cancel_event=cancel_event
        )
        assert result.cancelled
        assert result.completed_values == (0.0, 0.5)
        assert not result.is_complete

    def test_unset_event_runs_everything(self, decay_system, decay_settings, cancel_event):
        result = sweep_parameter(
            decay_system, {"k": 1.0}, "k", (0.0, 1.0), 2, decay_settings, 0, cancel_event=cancel_event
        )
        assert not result.cancelled
        assert result.completed_values == (0.0, 0.5, 1.0)


class TestBifurcationResult:

    @pytest.fixture
    def result(self):
        return BifurcationResult(
            parameter_name="c",
            observed_index=0,
            points=frozenset({
                BifurcationPoint(2.0, 5.0),
                BifurcationPoint(1.0, 3.0),
                BifurcationPoint(2.0, 4.0),
            }),
            completed_values=(0.0, 1.0, 2.0),
        )

    def test_sorted_points(self, result):
        assert result.sorted_points() == [(1.0, 3.0), (2.0, 4.0), (2.0, 5.0)]

    def test_maxima_by_parameter(self, result):
        assert result.maxima_by_parameter() == {0.0: [], 1.0: [3.0], 2.0: [4.0, 5.0]}

    def test_as_plot_points(self, result):
        assert result.as_plot_points() == [
            {"x": 1.0, "y": 3.0},
            {"x": 2.0, "y": 4.0},
            {"x": 2.0, "y": 5.0},
        ]

    def test_is_complete_flags(self, result):
        assert result.is_complete
        failed = BifurcationResult("c", 0, frozenset(), failures=(SweepPointError(1.0, "EvaluationError", "x"),))
        assert not failed.is_complete

    def test_run_bifurcation_sweep_accepts_config_value(self, decay_system, decay_settings):
        config = SweepConfig(parameter_name="k", minimum=1.0, maximum=2.0, steps=1, observed_index=0)
        result = run_bifurcation_sweep(decay_system, {"k": 0.0}, config, decay_settings)
        assert result.parameter_name == "k"
        assert result.completed_values == (1.0, 2.0)
