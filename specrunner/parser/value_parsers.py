"""Conversion of captured step values to handler parameter types"""
import inspect
from collections.abc import Iterable as IterableABC, Sequence as SequenceABC
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union, get_args, get_origin

from specrunner.parser.feature_parser import Table
from specrunner.utils.logger import setup_logger

logger = setup_logger(__name__)

Converter = Callable[[Any], Any]

TRUE_VALUES = ('true', 'yes', '1', 'on')
FALSE_VALUES = ('false', 'no', '0', 'off')

_EMPTY = inspect.Parameter.empty
_RAW_ANNOTATIONS = (_EMPTY, Any, object)
_SEQUENCE_ORIGINS = (list, tuple, SequenceABC, IterableABC)


def parse_bool(value: str) -> bool:
    """Parse yes/no style text into a bool"""
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Cannot convert {value!r} to bool")


def _identity(value: Any) -> Any:
    return value


def _enum_converter(enum_type) -> Converter:
    def convert(value):
        if value in enum_type.__members__:
            return enum_type[value]
        return enum_type(value)
    return convert


def _unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


DEFAULT_PARSERS: Dict[Any, Converter] = {
    int: int,
    float: float,
    bool: parse_bool,
    Decimal: Decimal,
}


class ValueParsers:
    """Maps a target type to the function converting raw step values into it"""

    def __init__(self, parsers: Optional[Dict[Any, Converter]] = None,
                 include_defaults: bool = True):
        self._parsers: Dict[Any, Converter] = dict(DEFAULT_PARSERS) if include_defaults else {}
        for result_type, converter in (parsers or {}).items():
            self.register(result_type, converter)

    def register(self, result_type: Any, converter: Converter) -> None:
        self._parsers[result_type] = converter

    def get(self, result_type: Any) -> Optional[Converter]:
        return self._parsers.get(result_type)

    def __contains__(self, result_type: Any) -> bool:
        return result_type in self._parsers

    def converter_for_capture(self, annotation: Any) -> Optional[Converter]:
        """Converter for a regex capture, None when the type is unsupported

        An Optional annotation turns an empty capture, as left by a group
        that did not participate in the match, into None.
        """
        target = _unwrap_optional(annotation)
        converter = self._capture_converter(target)
        if converter is None or target is annotation:
            return converter
        return lambda value: None if value == "" else converter(value)

    def _capture_converter(self, annotation: Any) -> Optional[Converter]:
        if annotation in _RAW_ANNOTATIONS or annotation is str:
            return _identity
        if annotation in self._parsers:
            return self._parsers[annotation]
        if inspect.isclass(annotation) and issubclass(annotation, Enum):
            return _enum_converter(annotation)
        return None

    def converter_for_table(self, annotation: Any) -> Optional[Converter]:
        """Converter for a step table argument"""
        annotation = _unwrap_optional(annotation)
        if annotation in _RAW_ANNOTATIONS or annotation is Table:
            return _identity
        if annotation in self._parsers:
            return self._parsers[annotation]

        # List[Dict[str, str]] gets the rows keyed by header
        if get_origin(annotation) in (list, SequenceABC, IterableABC):
            args = get_args(annotation)
            if not args or get_origin(args[0]) is dict or args[0] is dict:
                return lambda table: table.as_dicts()
        return None

    def converter_for_bullets(self, annotation: Any) -> Optional[Converter]:
        """Converter for bullet or doc string lines"""
        annotation = _unwrap_optional(annotation)
        if annotation in _RAW_ANNOTATIONS or annotation in (list, List, Iterable):
            return list
        if annotation is tuple:
            return tuple
        if annotation in self._parsers:
            return self._parsers[annotation]

        origin = get_origin(annotation)
        if origin not in _SEQUENCE_ORIGINS:
            return None

        container = tuple if origin is tuple else list
        args = [a for a in get_args(annotation) if a is not Ellipsis]
        item_converter = self.converter_for_capture(args[0]) if args else _identity
        if item_converter is None:
            return None
        return lambda items: container(item_converter(item) for item in items)
