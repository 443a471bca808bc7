# src/odesim_core/analysis/sweep.py
"""
The bifurcation sweep: repeat a full simulation for S+1 values of one parameter and
collect the local maxima of an observed variable after the transient.

Each sweep point is an independent integration, so the sweep is data-parallel.
With `max_workers > 1` the points run on a thread pool; every worker returns its
own list of points and the calling thread merges them as they complete, so the
result does not depend on completion order and no buffer is shared between workers.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Mapping, Optional, Protocol, Tuple

from ..constants import SWEEP_ERROR_POLICIES
from ..data_structures import DerivativeFunction, SimulationSettings, SweepConfig
from ..errors import ConfigurationError, DiagnosableError
from ..integration.execution import simulate_settings
from .exceptions import SweepPointFailure
from .postprocess import local_maxima, trim_transient
from .results import BifurcationPoint, BifurcationResult, SweepPointError

logger = logging.getLogger(__name__)

#: (points, completed parameter values, recorded failures, cancelled)
SweepOutcome = Tuple[List[BifurcationPoint], List[float], List[SweepPointError], bool]


class CancellationSignal(Protocol):
    """Anything with an `is_set()` method, typically a `threading.Event`."""
    def is_set(self) -> bool:
        ...


class BifurcationSweep:
    """
    A stateless service that runs one parameter sweep described by a `SweepConfig`
    over fixed `SimulationSettings`. All inputs are validated on construction.

    `fixed_params` holds the other parameters of the model; it may or may not already
    contain the swept name, whose value is overridden at every point.
    """
    def __init__(
        self,
        func: DerivativeFunction,
        fixed_params: Mapping[str, float],
        config: SweepConfig,
        settings: SimulationSettings
    ):
        settings.validate()
        config.validate(settings.num_variables)
        self.func = func
        self.fixed_params: Dict[str, float] = dict(fixed_params)
        self.config = config
        self.settings = settings
        self.transient = config.transient if config.transient is not None else settings.transient

    def run(
        self,
        max_workers: int = 1,
        cancel_event: Optional[CancellationSignal] = None,
        on_error: str = "raise"
    ) -> BifurcationResult:
        """
        Executes the sweep.

        Args:
            max_workers: Number of sweep points integrated concurrently. 1 runs them
                         sequentially in the calling thread.
            cancel_event: Checked before each sweep point starts. Points completed
                          before cancellation are kept; the rest are skipped.
            on_error: "raise" aborts the sweep with a `SweepPointFailure` on the first
                      failing point. "record" logs the failure, records it in
                      `BifurcationResult.failures` and continues.

        Returns:
            The `BifurcationResult` of the sweep.
        """
        if on_error not in SWEEP_ERROR_POLICIES:
            raise ConfigurationError(details=f"Unknown error policy {on_error!r}; expected one of {SWEEP_ERROR_POLICIES}.", field="on_error")
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise ConfigurationError(details=f"max_workers must be a positive integer, got {max_workers!r}.", field="max_workers")

        param_values = [float(v) for v in self.config.parameter_values()]
        logger.info(
            f"--- Starting bifurcation sweep of '{self.config.parameter_name}' over "
            f"[{self.config.minimum}, {self.config.maximum}] ({len(param_values)} points, {max_workers} worker(s)) ---"
        )

        if max_workers == 1:
            outcome = self._run_sequential(param_values, cancel_event, on_error)
        else:
            outcome = self._run_parallel(param_values, max_workers, cancel_event, on_error)
        points, completed, failures, cancelled = outcome

        result = BifurcationResult(
            parameter_name=self.config.parameter_name,
            observed_index=self.config.observed_index,
            points=frozenset(points),
            completed_values=tuple(sorted(completed)),
            failures=tuple(sorted(failures, key=lambda f: f.param_value)),
            cancelled=cancelled,
        )
        if cancelled:
            logger.info(f"Bifurcation sweep cancelled after {len(completed)} of {len(param_values)} point(s).")
        logger.info(
            f"Bifurcation sweep finished: {len(result.points)} maxima from {len(completed)} point(s), "
            f"{len(failures)} failure(s)."
        )
        return result

    def run_point(self, param_value: float) -> List[BifurcationPoint]:
        """Simulates one parameter value and returns its post-transient local maxima."""
        params = dict(self.fixed_params)
        params[self.config.parameter_name] = param_value
        raw = simulate_settings(self.func, self.settings, params)
        trimmed = trim_transient(raw, self.transient)
        observed = trimmed.variable(self.config.observed_index)
        return [BifurcationPoint(param_value, value) for value in local_maxima(observed)]

    # --- Execution strategies ---

    def _run_sequential(self, param_values, cancel_event, on_error) -> SweepOutcome:
        points: List[BifurcationPoint] = []
        completed: List[float] = []
        failures: List[SweepPointError] = []
        for value in param_values:
            if cancel_event is not None and cancel_event.is_set():
                return points, completed, failures, True
            try:
                point_maxima = self.run_point(value)
            except DiagnosableError as e:
                failures.append(self._handle_failure(value, e, on_error))
                continue
            points.extend(point_maxima)
            completed.append(value)
        return points, completed, failures, False

    def _run_parallel(self, param_values, max_workers, cancel_event, on_error) -> SweepOutcome:
        points: List[BifurcationPoint] = []
        completed: List[float] = []
        failures: List[SweepPointError] = []
        cancelled = False

        def task(value: float) -> Optional[List[BifurcationPoint]]:
            if cancel_event is not None and cancel_event.is_set():
                return None
            return self.run_point(value)

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_value = {executor.submit(task, value): value for value in param_values}
            for future in as_completed(future_to_value):
                value = future_to_value[future]
                try:
                    point_maxima = future.result()
                except DiagnosableError as e:
                    try:
                        failures.append(self._handle_failure(value, e, on_error))
                    except SweepPointFailure:
                        for pending in future_to_value:
                            pending.cancel()
                        raise
                    continue
                if point_maxima is None:
                    cancelled = True
                    continue
                points.extend(point_maxima)
                completed.append(value)
        return points, completed, failures, cancelled

    def _handle_failure(self, value: float, error: DiagnosableError, on_error: str) -> SweepPointError:
        if on_error == "raise":
            logger.error(f"Sweep point {self.config.parameter_name}={value!r} failed; aborting sweep: {error}")
            raise SweepPointFailure(
                parameter_name=self.config.parameter_name,
                param_value=value,
                original_error=error,
            ) from error
        logger.warning(f"Sweep point {self.config.parameter_name}={value!r} failed and was recorded: {error}")
        return SweepPointError(param_value=value, error_type=type(error).__name__, message=str(error))


def run_bifurcation_sweep(
    func: DerivativeFunction,
    fixed_params: Mapping[str, float],
    config: SweepConfig,
    settings: SimulationSettings,
    *,
    max_workers: int = 1,
    cancel_event: Optional[CancellationSignal] = None,
    on_error: str = "raise"
) -> BifurcationResult:
    """Runs the sweep described by the immutable `config` value. See `BifurcationSweep.run`."""
    sweep = BifurcationSweep(func, fixed_params, config, settings)
    return sweep.run(max_workers=max_workers, cancel_event=cancel_event, on_error=on_error)


def sweep_parameter(
    func: DerivativeFunction,
    fixed_params: Mapping[str, float],
    parameter_name: str,
    param_range: Tuple[float, float],
    steps: int,
    settings: SimulationSettings,
    observed_index: int,
    *,
    transient: Optional[float] = None,
    max_workers: int = 1,
    cancel_event: Optional[CancellationSignal] = None,
    on_error: str = "raise"
) -> BifurcationResult:
    """
    Sweeps `parameter_name` over the closed range `param_range` in `steps` intervals
    and collects the (param_value, local maximum) pairs of state variable
    `observed_index` after the transient.

    For i in 0..steps the parameter takes min + i*(max-min)/steps, the trajectory is
    simulated with `settings`, the first `transient` time units are discarded
    (`settings.transient` when `transient` is None) and every strict interior local
    maximum of the observed variable is emitted as one `BifurcationPoint`.

    Raises:
        ConfigurationError: For an inverted range, negative steps, an empty
                            parameter name or an out-of-range observed index.
        SweepPointFailure: When a point fails and `on_error` is "raise".
    """
    try:
        minimum, maximum = param_range
    except (TypeError, ValueError) as e:
        raise ConfigurationError(details=f"Parameter range must be a (min, max) pair, got {param_range!r}.", field="range") from e
    config = SweepConfig(
        parameter_name=parameter_name,
        minimum=minimum,
        maximum=maximum,
        steps=steps,
        observed_index=observed_index,
        transient=transient,
    )
    return run_bifurcation_sweep(
        func, fixed_params, config, settings,
        max_workers=max_workers, cancel_event=cancel_event, on_error=on_error
    )
