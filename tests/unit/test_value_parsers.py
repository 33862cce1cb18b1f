"""Unit tests for the value parser table"""
import inspect
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from specrunner.parser.feature_parser import Table
from specrunner.parser.value_parsers import ValueParsers, parse_bool


class Color(Enum):
    RED = 'r'
    GREEN = 'g'


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y


def parse_point(text):
    x, y = text.split(',')
    return Point(int(x), int(y))


def test_default_converters():
    parsers = ValueParsers()

    assert parsers.converter_for_capture(int)('42') == 42
    assert parsers.converter_for_capture(float)('2.5') == 2.5
    assert parsers.converter_for_capture(Decimal)('1.10') == Decimal('1.10')
    assert parsers.converter_for_capture(bool)('Yes') is True
    assert parsers.converter_for_capture(Optional[int])('7') == 7


def test_optional_capture_from_unmatched_group_is_none():
    parsers = ValueParsers()

    assert parsers.converter_for_capture(Optional[int])('') is None
    assert parsers.converter_for_capture(Optional[str])('') is None
    assert parsers.converter_for_capture(str)('') == ''
    with pytest.raises(ValueError):
        parsers.converter_for_capture(int)('')


@pytest.mark.parametrize('annotation', [str, Any, object, inspect.Parameter.empty])
def test_raw_values_pass_through(annotation):
    assert ValueParsers().converter_for_capture(annotation)('text') == 'text'


def test_parse_bool_rejects_unknown_text():
    assert parse_bool('off') is False
    assert parse_bool(' ON ') is True
    for text in ('maybe', 'y', 'n', ''):
        with pytest.raises(ValueError):
            parse_bool(text)


def test_enum_by_name_or_value():
    convert = ValueParsers().converter_for_capture(Color)

    assert convert('RED') is Color.RED
    assert convert('g') is Color.GREEN


def test_registered_parser_and_override():
    parsers = ValueParsers({Point: parse_point})
    parsers.register(int, lambda text: int(text) * 10)

    point = parsers.converter_for_capture(Point)('1,2')
    assert (point.x, point.y) == (1, 2)
    assert parsers.converter_for_capture(int)('3') == 30
    assert Point in parsers
    assert parsers.get(Point) is parse_point
    assert parsers.get(complex) is None
    assert complex not in parsers


def test_unknown_type_has_no_converter():
    assert ValueParsers().converter_for_capture(Point) is None
    assert ValueParsers(include_defaults=False).converter_for_capture(int) is None


def test_table_converters():
    parsers = ValueParsers()
    table = Table(('name', 'age'), (('ada', '36'),))

    assert parsers.converter_for_table(Table)(table) is table
    assert parsers.converter_for_table(inspect.Parameter.empty)(table) is table
    assert parsers.converter_for_table(List[Dict[str, str]])(table) == [{'name': 'ada', 'age': '36'}]
    assert parsers.converter_for_table(int) is None


def test_table_parser_registered_for_custom_type():
    parsers = ValueParsers({Point: lambda table: Point(*table.column('x'))})

    point = parsers.converter_for_table(Point)(Table(('x',), (('1',), ('2',))))

    assert (point.x, point.y) == ('1', '2')


def test_bullet_converters():
    parsers = ValueParsers()
    items = ['1', '2']

    assert parsers.converter_for_bullets(inspect.Parameter.empty)(items) == ['1', '2']
    assert parsers.converter_for_bullets(list)(items) == ['1', '2']
    assert parsers.converter_for_bullets(List[int])(items) == [1, 2]
    assert parsers.converter_for_bullets(Sequence[str])(items) == ['1', '2']
    assert parsers.converter_for_bullets(Tuple[float, ...])(items) == (1.0, 2.0)
    assert parsers.converter_for_bullets(List[Point]) is None
    assert parsers.converter_for_bullets(dict) is None
