"""specrunner - step resolution and scenario execution for Gherkin feature text"""
from specrunner.core.exceptions import (
    AmbiguousStepDefinition, BindingError, GenericStepNotAllowed, MissingStepDefinition,
    MissingValueParser, ParameterCountMismatch, ParseError, ReturnTypeMismatch,
    SpecRunnerError, StepExecutionError, StepResolutionError,
)
from specrunner.core.registry import StepRegistry
from specrunner.executor.test_executor import Feature, ScenarioMetadata, StepEngine
from specrunner.parser.feature_parser import Table

__version__ = "1.0.0"
