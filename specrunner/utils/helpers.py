"""Helper utilities"""
import re
from typing import Iterable, List, Tuple

_ESCAPED_PIPE = '\x00'


def normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Strip leading '@' and drop empty or duplicate tags, keeping order"""
    result = []
    for tag in tags or ():
        name = tag.strip().lstrip('@')
        if name and name not in result:
            result.append(name)
    return tuple(result)


def is_in_scope(tags: Iterable[str], required_tags: Iterable[str]) -> bool:
    """An empty scope always applies, otherwise one shared tag is enough"""
    required = normalize_tags(required_tags)
    if not required:
        return True
    present = set(normalize_tags(tags))
    return any(tag in present for tag in required)


def split_table_row(line: str) -> List[str]:
    """Split a '| a | b |' row into stripped cells, honouring '\\|' escapes"""
    body = line.strip().replace('\\|', _ESCAPED_PIPE)
    if body.startswith('|'):
        body = body[1:]
    if body.endswith('|'):
        body = body[:-1]
    return [cell.strip().replace(_ESCAPED_PIPE, '|') for cell in body.split('|')]


def parse_tag_line(line: str) -> List[str]:
    """Return the tags on an '@a @b' line, ignoring a trailing comment"""
    line = re.split(r'\s#', line, maxsplit=1)[0]
    return [tag for tag in line.split() if tag.startswith('@')]
