"""Unit tests for helper utilities"""
from specrunner.utils.helpers import is_in_scope, normalize_tags, parse_tag_line, split_table_row


def test_normalize_tags():
    assert normalize_tags(['@smoke', 'slow', '@smoke', '', '@']) == ('smoke', 'slow')
    assert normalize_tags(None) == ()


def test_is_in_scope():
    assert is_in_scope([], [])
    assert is_in_scope(['slow'], [])
    assert is_in_scope(['smoke', 'slow'], ['smoke'])
    assert is_in_scope(['@smoke'], ['smoke', 'nightly'])
    assert not is_in_scope(['slow'], ['smoke'])
    assert not is_in_scope([], ['smoke'])


def test_split_table_row():
    assert split_table_row('| a | b  |') == ['a', 'b']
    assert split_table_row('|  |x|') == ['', 'x']
    assert split_table_row('| a \\| b |') == ['a | b']


def test_parse_tag_line():
    assert parse_tag_line('@a @b   @c') == ['@a', '@b', '@c']
    assert parse_tag_line('@a # trailing comment @x') == ['@a']
