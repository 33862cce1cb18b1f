"""
Step mapper
Resolves each step line to exactly one registered step definition
"""

import inspect
import re
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from specrunner.core.exceptions import (
    AmbiguousStepDefinition, GenericStepNotAllowed, MissingStepDefinition,
    MissingValueParser, ParameterCountMismatch, ReturnTypeMismatch,
)
from specrunner.parser.feature_parser import Line, Step, StepType
from specrunner.parser.value_parsers import Converter, ValueParsers
from specrunner.utils.helpers import is_in_scope, normalize_tags
from specrunner.utils.logger import setup_logger

logger = setup_logger(__name__)

_EMPTY = inspect.Parameter.empty
_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def handler_name(handler: Callable) -> str:
    return getattr(handler, '__qualname__', None) or getattr(handler, '__name__', None) or repr(handler)


def default_pattern(handler: Callable) -> str:
    """A handler without patterns matches on its own name, underscores read as spaces"""
    name = getattr(handler, '__name__', None)
    if not name:
        raise ValueError(f"Step handler {handler!r} has no pattern and no name")
    return name.replace('_', ' ')


def step_type_of(kind: Any) -> StepType:
    """Accept StepType members or their names ('given', 'Given', 'GIVEN')"""
    if isinstance(kind, StepType):
        return kind
    return StepType[str(kind).strip().upper()]


@dataclass(frozen=True)
class StepDefinition:
    """Represents one handler and the patterns it answers to"""
    kind: StepType
    patterns: Tuple[str, ...]
    tag_scope: Tuple[str, ...]
    handler: Callable

    @property
    def name(self) -> str:
        return handler_name(self.handler)

    @classmethod
    def create(cls, kind: Any, patterns: Iterable[str], tag_scope: Iterable[str],
               handler: Callable) -> 'StepDefinition':
        unique: List[str] = []
        for pattern in patterns or ():
            if pattern and pattern not in unique:
                unique.append(pattern)
        if not unique:
            unique.append(default_pattern(handler))
        return cls(step_type_of(kind), tuple(unique), normalize_tags(tag_scope), handler)


@dataclass(frozen=True)
class HandlerShape:
    """What the matcher needs to know about a handler's signature"""
    names: Tuple[str, ...]
    annotations: Tuple[Any, ...]
    return_annotation: Any

    @property
    def arity(self) -> int:
        return len(self.names)


def inspect_handler(handler: Callable) -> HandlerShape:
    """Read positional parameters and resolved annotations of a handler"""
    signature = inspect.signature(handler)
    target = handler if inspect.isfunction(handler) or inspect.ismethod(handler) \
        else getattr(handler, '__call__', handler)
    try:
        hints = typing.get_type_hints(target)
    except (NameError, TypeError) as e:
        logger.debug(f"Could not resolve annotations of {handler_name(handler)}: {e}")
        hints = {}

    params = [p for p in signature.parameters.values() if p.kind in _POSITIONAL]
    return HandlerShape(
        names=tuple(p.name for p in params),
        annotations=tuple(hints.get(p.name, p.annotation) for p in params),
        return_annotation=hints.get('return', signature.return_annotation),
    )


def _contains_typevar(annotation: Any) -> bool:
    if isinstance(annotation, TypeVar):
        return True
    return any(_contains_typevar(arg) for arg in typing.get_args(annotation))


@dataclass(frozen=True)
class ResolvedStep:
    """A step line bound to its definition with the raw captured arguments"""
    step: Step
    definition: StepDefinition
    args: Tuple[str, ...]
    converters: Tuple[Converter, ...]

    @property
    def line(self) -> Line:
        return self.step.line

    def raw_arguments(self) -> List[Any]:
        """Captures followed by the table and bullets, in parameter order"""
        values: List[Any] = list(self.args)
        if self.line.table is not None:
            values.append(self.line.table)
        if self.line.bullets is not None:
            values.append(list(self.line.bullets))
        return values

    def bind(self) -> List[Any]:
        """Convert every argument to the handler's declared parameter type"""
        return [convert(value) for convert, value in zip(self.converters, self.raw_arguments())]

    def invoke(self) -> None:
        self.definition.handler(*self.bind())


class StepMapper:
    """Matches step lines against Given/When/Then definitions"""

    def __init__(self, definitions: Sequence[StepDefinition],
                 value_parsers: Optional[ValueParsers] = None, ignore_case: bool = False):
        self.value_parsers = value_parsers or ValueParsers()
        flags = re.IGNORECASE if ignore_case else 0
        self._definitions: Dict[StepType, List[Tuple[StepDefinition, List[re.Pattern]]]] = {
            kind: [] for kind in StepType
        }
        for definition in definitions:
            compiled = [re.compile(pattern, flags) for pattern in definition.patterns]
            self._definitions[definition.kind].append((definition, compiled))

    def choose_definitions(self, kind: StepType, text: str,
                           scenario_tags: Iterable[str]) -> List[Tuple[re.Match, StepDefinition]]:
        """Every in-scope definition of this kind with a pattern found in text"""
        chosen = []
        for definition, compiled in self._definitions[kind]:
            if not is_in_scope(scenario_tags, definition.tag_scope):
                continue
            for pattern in compiled:
                match = pattern.search(text)
                if match:
                    chosen.append((match, definition))
                    break
        return chosen

    def match_step(self, scenario_name: str, scenario_tags: Iterable[str], step: Step) -> ResolvedStep:
        """Resolve a step to exactly one handler, checking return type and arity"""
        line = step.line
        matches = self.choose_definitions(step.kind, step.text, scenario_tags)

        if not matches:
            raise MissingStepDefinition(scenario_name, line.number, step.text,
                                        f"{step.kind.value} {step.text}")
        if len(matches) > 1:
            raise AmbiguousStepDefinition(scenario_name, line.number, step.text,
                                          [definition for _, definition in matches])

        match, definition = matches[0]
        shape = inspect_handler(definition.handler)

        if shape.return_annotation not in (_EMPTY, None, type(None), 'None'):
            raise ReturnTypeMismatch(scenario_name, line.number, step.text, definition.name)
        if any(_contains_typevar(a) for a in shape.annotations + (shape.return_annotation,)):
            raise GenericStepNotAllowed(scenario_name, line.number, step.text, definition.name)

        group_count = len(match.groups())
        table_count = 1 if line.table is not None else 0
        bullets_count = 1 if line.bullets is not None else 0
        arg_count = group_count + table_count + bullets_count
        if shape.arity != arg_count:
            raise ParameterCountMismatch(
                scenario_name, line.number, step.text,
                f"{definition.name} takes {shape.arity} argument(s) but the step supplies {arg_count}")

        converters = self._converters(scenario_name, step, definition, shape,
                                      group_count, table_count, bullets_count)
        args = tuple(value if value is not None else '' for value in match.groups())

        logger.debug(f"Line {line.number} '{step.text}' -> {definition.name}{args}")
        return ResolvedStep(step, definition, args, converters)

    def _converters(self, scenario_name: str, step: Step, definition: StepDefinition,
                    shape: HandlerShape, group_count: int, table_count: int,
                    bullets_count: int) -> Tuple[Converter, ...]:
        lookups = [self.value_parsers.converter_for_capture] * group_count
        lookups += [self.value_parsers.converter_for_table] * table_count
        lookups += [self.value_parsers.converter_for_bullets] * bullets_count

        converters = []
        for lookup, name, annotation in zip(lookups, shape.names, shape.annotations):
            converter = lookup(annotation)
            if converter is None:
                raise MissingValueParser(
                    scenario_name, step.line.number, step.text,
                    f"parameter '{name}' of {definition.name} has type {annotation!r}")
            converters.append(converter)
        return tuple(converters)
