"""
Step registry
Collects step definitions, hooks and value parsers handed over by handler discovery
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from specrunner.executor.event_dispatcher import EventHook, HookKind, hook_kind_of
from specrunner.parser.feature_parser import StepType
from specrunner.parser.step_mapper import StepDefinition, step_type_of
from specrunner.parser.value_parsers import Converter
from specrunner.utils.helpers import normalize_tags
from specrunner.utils.logger import setup_logger

logger = setup_logger(__name__)


class StepRegistry:
    """Registration surface for Given/When/Then handlers, hooks and parsers"""

    def __init__(self):
        self.steps: List[StepDefinition] = []
        self.hooks: List[EventHook] = []
        self.parsers: Dict[Any, Converter] = {}

    @classmethod
    def from_definitions(cls, steps: Iterable[Tuple] = (), events: Iterable[Tuple] = (),
                         parsers: Iterable[Tuple[Any, Converter]] = ()) -> 'StepRegistry':
        """Build a registry from raw tuples

        steps:   (kind, patterns, tag_scope, handler)
        events:  (tag_scope, hook_kind, handler)
        parsers: (result_type, converter)
        """
        registry = cls()
        for kind, patterns, tag_scope, handler in steps:
            registry.add_step(kind, patterns, tag_scope, handler)
        for tag_scope, kind, handler in events:
            registry.add_hook(kind, tag_scope, handler)
        for result_type, converter in parsers:
            registry.add_value_parser(result_type, converter)
        return registry

    def add_step(self, kind: Any, patterns: Iterable[str] = (), tag_scope: Iterable[str] = (),
                 handler: Optional[Callable] = None) -> StepDefinition:
        """Register a step handler; repeated registrations of one handler merge their patterns"""
        if handler is None:
            raise ValueError("A step definition needs a handler")
        kind = step_type_of(kind)
        scope = normalize_tags(tag_scope)

        for index, existing in enumerate(self.steps):
            if existing.kind == kind and existing.handler == handler and existing.tag_scope == scope:
                merged = StepDefinition.create(
                    kind, list(existing.patterns) + list(patterns or ()), scope, handler)
                self.steps[index] = merged
                logger.debug(f"Merged patterns for {merged.name}: {merged.patterns}")
                return merged

        definition = StepDefinition.create(kind, patterns, tag_scope, handler)
        self.steps.append(definition)
        logger.info(f"Registered {kind.value} step: {definition.patterns} -> {definition.name}")
        return definition

    def add_hook(self, kind: Any, tag_scope: Iterable[str] = (),
                 handler: Optional[Callable[[], Any]] = None) -> EventHook:
        if handler is None:
            raise ValueError("A hook needs a handler")
        hook = EventHook.create(kind, tag_scope, handler)
        self.hooks.append(hook)
        logger.info(f"Registered {hook.kind.value} hook: {getattr(handler, '__name__', handler)}"
                    f"{' for ' + str(list(hook.tag_scope)) if hook.tag_scope else ''}")
        return hook

    def add_value_parser(self, result_type: Any, converter: Converter) -> None:
        self.parsers[result_type] = converter
        logger.info(f"Registered value parser for {getattr(result_type, '__name__', result_type)}")

    def steps_of(self, kind: Any) -> List[StepDefinition]:
        kind = step_type_of(kind)
        return [definition for definition in self.steps if definition.kind == kind]

    def hooks_of(self, kind: Any) -> List[EventHook]:
        kind = hook_kind_of(kind)
        return [hook for hook in self.hooks if hook.kind == kind]

    # Decorator forms of the registration calls

    def _step_decorator(self, kind: StepType, patterns: Tuple[str, ...], tags: Iterable[str]):
        def decorator(handler):
            self.add_step(kind, patterns, tags, handler)
            return handler
        return decorator

    def given(self, *patterns: str, tags: Iterable[str] = ()):
        return self._step_decorator(StepType.GIVEN, patterns, tags)

    def when(self, *patterns: str, tags: Iterable[str] = ()):
        return self._step_decorator(StepType.WHEN, patterns, tags)

    def then(self, *patterns: str, tags: Iterable[str] = ()):
        return self._step_decorator(StepType.THEN, patterns, tags)

    def _hook_decorator(self, kind: HookKind, tags: Iterable[str]):
        def decorator(handler):
            self.add_hook(kind, tags, handler)
            return handler
        return decorator

    def before_scenario(self, tags: Iterable[str] = ()):
        return self._hook_decorator(HookKind.BEFORE_SCENARIO, tags)

    def after_scenario(self, tags: Iterable[str] = ()):
        return self._hook_decorator(HookKind.AFTER_SCENARIO, tags)

    def before_step(self, tags: Iterable[str] = ()):
        return self._hook_decorator(HookKind.BEFORE_STEP, tags)

    def after_step(self, tags: Iterable[str] = ()):
        return self._hook_decorator(HookKind.AFTER_STEP, tags)

    def value_parser(self, result_type: Any):
        def decorator(converter):
            self.add_value_parser(result_type, converter)
            return converter
        return decorator
