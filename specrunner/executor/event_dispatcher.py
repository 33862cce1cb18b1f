"""Tag-scoped before/after scenario and step hooks"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Sequence, Tuple

from specrunner.utils.helpers import is_in_scope, normalize_tags
from specrunner.utils.logger import setup_logger

logger = setup_logger(__name__)


class HookKind(Enum):
    BEFORE_SCENARIO = "before_scenario"
    AFTER_SCENARIO = "after_scenario"
    BEFORE_STEP = "before_step"
    AFTER_STEP = "after_step"


def hook_kind_of(kind: Any) -> HookKind:
    """Accept HookKind members, their values or names"""
    if isinstance(kind, HookKind):
        return kind
    text = str(kind).strip()
    try:
        return HookKind(text.lower())
    except ValueError:
        return HookKind[text.upper()]


@dataclass(frozen=True)
class EventHook:
    kind: HookKind
    tag_scope: Tuple[str, ...]
    handler: Callable[[], Any]

    @classmethod
    def create(cls, kind: Any, tag_scope: Iterable[str], handler: Callable[[], Any]) -> 'EventHook':
        return cls(hook_kind_of(kind), normalize_tags(tag_scope), handler)


@dataclass(frozen=True)
class ScenarioEvents:
    """The hooks that apply to one scenario, in registration order"""
    before_scenario: Tuple[Callable[[], Any], ...] = ()
    after_scenario: Tuple[Callable[[], Any], ...] = ()
    before_step: Tuple[Callable[[], Any], ...] = ()
    after_step: Tuple[Callable[[], Any], ...] = ()


class EventDispatcher:
    """Holds every registered hook and picks the ones in scope for a scenario"""

    def __init__(self, hooks: Sequence[EventHook] = ()):
        self.hooks: Tuple[EventHook, ...] = tuple(hooks)

    def _in_scope(self, kind: HookKind, tags: Iterable[str]) -> Tuple[Callable[[], Any], ...]:
        return tuple(hook.handler for hook in self.hooks
                     if hook.kind == kind and is_in_scope(tags, hook.tag_scope))

    def choose_in_scope_events(self, scenario_tags: Iterable[str]) -> ScenarioEvents:
        tags: List[str] = list(scenario_tags)
        events = ScenarioEvents(
            before_scenario=self._in_scope(HookKind.BEFORE_SCENARIO, tags),
            after_scenario=self._in_scope(HookKind.AFTER_SCENARIO, tags),
            before_step=self._in_scope(HookKind.BEFORE_STEP, tags),
            after_step=self._in_scope(HookKind.AFTER_STEP, tags),
        )
        logger.debug(
            f"Hooks in scope for tags {tags}: {len(events.before_scenario)} before scenario, "
            f"{len(events.after_scenario)} after scenario, {len(events.before_step)} before step, "
            f"{len(events.after_step)} after step")
        return events
