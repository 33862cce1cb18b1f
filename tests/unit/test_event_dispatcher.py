"""Unit tests for hook scoping"""
import pytest
from specrunner.executor.event_dispatcher import EventDispatcher, EventHook, HookKind, hook_kind_of


def setup_db():
    pass


def smoke_only():
    pass


def teardown():
    pass


def before_each_step():
    pass


def make_dispatcher():
    return EventDispatcher([
        EventHook.create(HookKind.BEFORE_SCENARIO, [], setup_db),
        EventHook.create(HookKind.BEFORE_SCENARIO, ['@smoke'], smoke_only),
        EventHook.create('after_scenario', [], teardown),
        EventHook.create('BEFORE_STEP', ['fast'], before_each_step),
    ])


def test_hook_with_tag_scope_fires_only_for_matching_scenarios():
    dispatcher = make_dispatcher()

    assert dispatcher.choose_in_scope_events(['smoke', 'slow']).before_scenario == (setup_db, smoke_only)
    assert dispatcher.choose_in_scope_events(['slow']).before_scenario == (setup_db,)


def test_events_are_split_by_kind():
    events = make_dispatcher().choose_in_scope_events(['fast'])

    assert events.after_scenario == (teardown,)
    assert events.before_step == (before_each_step,)
    assert events.after_step == ()


def test_untagged_scenario_only_gets_universal_hooks():
    events = make_dispatcher().choose_in_scope_events([])

    assert events.before_scenario == (setup_db,)
    assert events.before_step == ()


def test_hook_kind_of():
    assert hook_kind_of(HookKind.AFTER_STEP) is HookKind.AFTER_STEP
    assert hook_kind_of('before_step') is HookKind.BEFORE_STEP
    assert hook_kind_of('AFTER_SCENARIO') is HookKind.AFTER_SCENARIO
    with pytest.raises(KeyError):
        hook_kind_of('during_step')
