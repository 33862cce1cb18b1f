"""
Scenario Outline expansion
Turns outlines plus their Examples tables into concrete scenarios
"""

import itertools
import re
from typing import Dict, List, Sequence, Tuple

from specrunner.parser.feature_parser import (
    FeatureDocument, Line, Scenario, ScenarioBlock, Step, Table,
)
from specrunner.utils.logger import setup_logger

logger = setup_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r'<([^<]*)>')

Lookup = Tuple[Tuple[str, str], ...]


def compute_combinations(tables: Sequence[Table]) -> List[List[Tuple[Tuple[str, str], ...]]]:
    """Cartesian product of table rows, each row as (column, value) pairs"""
    per_table = [
        [tuple(zip(table.header, row)) for row in table.rows]
        for table in tables
    ]
    return [list(combination) for combination in itertools.product(*per_table)]


def flatten_combination(combination: Sequence[Sequence[Tuple[str, str]]]) -> Lookup:
    """Merge row pairs into one lookup; later tables override earlier columns"""
    merged: Dict[str, str] = {}
    for pairs in combination:
        for name, value in pairs:
            merged[name] = value
    return tuple(merged.items())


def replace_placeholders(text: str, lookup: Dict[str, str]) -> str:
    """Replace <name> tokens found in lookup, leaving unknown ones verbatim"""
    if '<' not in text:
        return text
    return PLACEHOLDER_PATTERN.sub(lambda m: lookup.get(m.group(1), m.group(0)), text)


def _replace_table(table: Table, lookup: Dict[str, str]) -> Table:
    return Table(
        header=table.header,
        rows=tuple(
            tuple(replace_placeholders(cell, lookup) for cell in row)
            for row in table.rows
        ),
    )


def replace_step(step: Step, lookup: Dict[str, str]) -> Step:
    """Substitute placeholders in a step's text, table rows and bullets"""
    line = step.line
    table = _replace_table(line.table, lookup) if line.table is not None else None
    bullets = None
    if line.bullets is not None:
        bullets = tuple(replace_placeholders(b, lookup) for b in line.bullets)

    new_line = Line(
        number=line.number,
        text=replace_placeholders(line.text, lookup),
        table=table,
        bullets=bullets,
    )
    return Step(step.kind, replace_placeholders(step.text, lookup), new_line)


def expand_scenario(block: ScenarioBlock, background: Sequence[Step] = (),
                    shared_examples: Sequence[Table] = ()) -> List[Scenario]:
    """Expand one scenario block into concrete scenarios"""
    steps = tuple(background) + tuple(block.steps)

    tables: Tuple[Table, ...] = ()
    if block.is_outline:
        tables = tuple(block.examples or ()) + tuple(shared_examples)

    if not tables:
        return [Scenario(block.name, block.tags, steps, (), block.line_number)]

    scenarios = []
    for index, combination in enumerate(compute_combinations(tables)):
        parameters = flatten_combination(combination)
        lookup = dict(parameters)
        scenarios.append(Scenario(
            name=f"{block.name}({index})",
            tags=block.tags,
            steps=tuple(replace_step(step, lookup) for step in steps),
            parameters=parameters,
            line_number=block.line_number,
        ))

    logger.debug(f"Expanded outline '{block.name}' into {len(scenarios)} scenario(s)")
    return scenarios


def expand_feature(document: FeatureDocument) -> List[Scenario]:
    """Expand every block of a parsed feature in document order"""
    scenarios: List[Scenario] = []
    for block in document.scenarios:
        scenarios.extend(expand_scenario(block, document.background, document.shared_examples))
    return scenarios
