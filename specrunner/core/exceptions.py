"""Error types raised while parsing, resolving and running scenarios"""
from typing import Any, Dict, List, Optional, Sequence


class SpecRunnerError(Exception):
    """Base class for every specrunner error"""


class ParseError(SpecRunnerError):
    """Malformed feature text"""

    def __init__(self, message: str, line_number: Optional[int] = None):
        self.reason = message
        self.line_number = line_number
        if line_number is not None:
            message = f"{message} on line {line_number}"
        super().__init__(message)


class StepResolutionError(SpecRunnerError):
    """A step line could not be bound to exactly one usable handler"""

    reason = "Step resolution failed"

    def __init__(self, scenario: str, line_number: int, step_text: str = "",
                 detail: str = ""):
        self.scenario = scenario
        self.line_number = line_number
        self.step_text = step_text
        self.detail = detail
        message = f"{self.reason} on line {line_number}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MissingStepDefinition(StepResolutionError):
    reason = "Missing step definition"


class AmbiguousStepDefinition(StepResolutionError):
    reason = "Ambiguous step definition"

    def __init__(self, scenario: str, line_number: int, step_text: str = "",
                 candidates: Sequence = ()):
        self.candidates = list(candidates)
        detail = ", ".join(getattr(c, 'name', str(c)) for c in self.candidates)
        super().__init__(scenario, line_number, step_text, detail)


class ReturnTypeMismatch(StepResolutionError):
    reason = "Step methods must return void/unit"


class GenericStepNotAllowed(StepResolutionError):
    reason = "Generic step methods are not allowed"


class BindingError(StepResolutionError):
    """Captured arguments cannot be bound to the handler's parameters"""

    reason = "Argument binding failed"


class ParameterCountMismatch(BindingError):
    reason = "Parameter count mismatch"


class MissingValueParser(BindingError):
    reason = "No value parser for parameter type"


class StepExecutionError(SpecRunnerError):
    """A hook or step handler raised while a scenario was running"""

    def __init__(self, scenario: str, line_number: Optional[int], cause: BaseException):
        self.scenario = scenario
        self.line_number = line_number
        self.cause = cause
        self.teardown_errors: List[BaseException] = []
        # Filled by StepEngine.run_scenarios when it keeps going past failures
        self.results: List[Dict[str, Any]] = []
        where = f" on line {line_number}" if line_number is not None else ""
        super().__init__(f"Scenario '{scenario}' failed{where}: {cause!r}")
