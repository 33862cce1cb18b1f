"""
Action assembler
Binds resolved steps and in-scope hooks into one callable per scenario
"""

from typing import Any, Callable, List, Optional, Sequence, Tuple

from specrunner.core.exceptions import StepExecutionError
from specrunner.executor.event_dispatcher import ScenarioEvents
from specrunner.parser.feature_parser import Scenario
from specrunner.parser.step_mapper import ResolvedStep
from specrunner.utils.logger import setup_logger

logger = setup_logger(__name__)


class ScenarioAction:
    """Runs one scenario's hooks and steps in document order

    Before-scenario hooks run first, then each step wrapped in the
    before-step/after-step hooks, then the after-scenario hooks. The
    after-scenario hooks always run; the first failure is raised once they
    are done, with any teardown failures attached to it.
    """

    def __init__(self, scenario: Scenario, steps: Sequence[ResolvedStep], events: ScenarioEvents):
        self.scenario = scenario
        self.steps: Tuple[ResolvedStep, ...] = tuple(steps)
        self.events = events

    @property
    def name(self) -> str:
        return self.scenario.name

    def __call__(self) -> None:
        self.invoke()

    def __repr__(self) -> str:
        return f"ScenarioAction({self.name!r}, steps={len(self.steps)})"

    def invoke(self) -> None:
        logger.info(f"Executing scenario: {self.name}")
        failure: Optional[StepExecutionError] = None
        teardown_errors: List[StepExecutionError] = []

        try:
            self._run_hooks(self.events.before_scenario, self._scenario_line)
            for resolved in self.steps:
                self._run_step(resolved)
        except StepExecutionError as e:
            failure = e
        finally:
            teardown_errors = self._run_teardown()

        if failure is None and teardown_errors:
            failure = teardown_errors.pop(0)
        if failure is not None:
            failure.teardown_errors.extend(teardown_errors)
            logger.error(f"Scenario failed: {failure}")
            raise failure

        logger.info(f"Scenario passed: {self.name}")

    @property
    def _scenario_line(self) -> Optional[int]:
        return self.scenario.line_number or None

    def _wrap(self, line_number: Optional[int], error: Exception) -> StepExecutionError:
        wrapped = StepExecutionError(self.name, line_number, error)
        wrapped.__cause__ = error
        return wrapped

    def _run_hooks(self, hooks: Sequence[Callable[[], Any]], line_number: Optional[int]) -> None:
        for hook in hooks:
            try:
                hook()
            except Exception as e:
                raise self._wrap(line_number, e) from e

    def _run_step(self, resolved: ResolvedStep) -> None:
        line_number = resolved.line.number
        self._run_hooks(self.events.before_step, line_number)

        logger.info(f"Executing step: {resolved.line.text}")
        try:
            resolved.invoke()
        except Exception as e:
            raise self._wrap(line_number, e) from e

        self._run_hooks(self.events.after_step, line_number)

    def _run_teardown(self) -> List[StepExecutionError]:
        errors = []
        for hook in self.events.after_scenario:
            try:
                hook()
            except Exception as e:
                logger.error(f"After scenario hook failed in '{self.name}': {e}")
                errors.append(self._wrap(self._scenario_line, e))
        return errors


def assemble_action(scenario: Scenario, resolved_steps: Sequence[ResolvedStep],
                    events: ScenarioEvents) -> ScenarioAction:
    """Build the callable that runs a scenario"""
    return ScenarioAction(scenario, resolved_steps, events)
