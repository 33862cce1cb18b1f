"""
Feature parser
Classifies Gherkin lines and builds the feature block tree
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

from specrunner.core.exceptions import ParseError
from specrunner.utils.helpers import normalize_tags, parse_tag_line, split_table_row
from specrunner.utils.logger import setup_logger

logger = setup_logger(__name__)


class StepType(Enum):
    GIVEN = "Given"
    WHEN = "When"
    THEN = "Then"


class LineKind(Enum):
    FEATURE = "feature"
    BACKGROUND = "background"
    SCENARIO = "scenario"
    SCENARIO_OUTLINE = "scenario_outline"
    EXAMPLES = "examples"
    SHARED_EXAMPLES = "shared_examples"
    TAGS = "tags"
    STEP = "step"
    TABLE_ROW = "table_row"
    BULLET = "bullet"
    DOC_STRING = "doc_string"
    COMMENT = "comment"
    BLANK = "blank"
    TEXT = "text"


# Longer keywords first where one is a prefix of another
BLOCK_KEYWORDS: List[Tuple[str, LineKind]] = [
    ('Feature:', LineKind.FEATURE),
    ('Background:', LineKind.BACKGROUND),
    ('Scenario Outline:', LineKind.SCENARIO_OUTLINE),
    ('Scenario Template:', LineKind.SCENARIO_OUTLINE),
    ('Scenario:', LineKind.SCENARIO),
    ('Shared Examples:', LineKind.SHARED_EXAMPLES),
    ('Examples:', LineKind.EXAMPLES),
    ('Scenarios:', LineKind.EXAMPLES),
]

STEP_KEYWORDS: Dict[str, Optional[StepType]] = {
    'Given': StepType.GIVEN,
    'When': StepType.WHEN,
    'Then': StepType.THEN,
    'And': None,
    'But': None,
}

DOC_STRING_FENCE = '"""'


@dataclass(frozen=True)
class Table:
    header: Tuple[str, ...]
    rows: Tuple[Tuple[str, ...], ...] = ()

    def as_dicts(self) -> List[Dict[str, str]]:
        """Rows keyed by header name"""
        return [dict(zip(self.header, row)) for row in self.rows]

    def column(self, name: str) -> List[str]:
        index = self.header.index(name)
        return [row[index] for row in self.rows]


@dataclass(frozen=True)
class Line:
    number: int
    text: str
    table: Optional[Table] = None
    bullets: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class Step:
    kind: StepType
    text: str
    line: Line


@dataclass(frozen=True)
class ScenarioBlock:
    name: str
    tags: Tuple[str, ...]
    steps: Tuple[Step, ...]
    examples: Optional[Tuple[Table, ...]] = None
    line_number: int = 0
    is_outline: bool = False
    description: str = ""


@dataclass(frozen=True)
class Scenario:
    name: str
    tags: Tuple[str, ...]
    steps: Tuple[Step, ...]
    parameters: Tuple[Tuple[str, str], ...] = ()
    line_number: int = 0


@dataclass(frozen=True)
class FeatureDocument:
    name: str
    description: str
    tags: Tuple[str, ...]
    background: Tuple[Step, ...]
    scenarios: Tuple[ScenarioBlock, ...]
    shared_examples: Tuple[Table, ...] = ()
    line_number: int = 0


@dataclass(frozen=True)
class ClassifiedLine:
    kind: LineKind
    number: int
    text: str
    keyword: str = ""
    content: str = ""


def classify_line(raw: str, number: int) -> ClassifiedLine:
    """Classify one raw source line"""
    text = raw.strip()

    if not text:
        return ClassifiedLine(LineKind.BLANK, number, text)
    if text.startswith('#'):
        return ClassifiedLine(LineKind.COMMENT, number, text)
    if text.startswith(DOC_STRING_FENCE):
        return ClassifiedLine(LineKind.DOC_STRING, number, text, content=text[3:].strip())
    if text.startswith('@'):
        return ClassifiedLine(LineKind.TAGS, number, text)
    if text.startswith('|'):
        return ClassifiedLine(LineKind.TABLE_ROW, number, text)
    if text == '*' or text.startswith('* '):
        return ClassifiedLine(LineKind.BULLET, number, text, content=text[1:].strip())

    for keyword, kind in BLOCK_KEYWORDS:
        if text.startswith(keyword):
            return ClassifiedLine(kind, number, text, keyword, text[len(keyword):].strip())

    for keyword in STEP_KEYWORDS:
        if text == keyword or text.startswith(keyword + ' '):
            return ClassifiedLine(LineKind.STEP, number, text, keyword, text[len(keyword):].strip())

    return ClassifiedLine(LineKind.TEXT, number, text)


class _TableBuilder:
    def __init__(self, line_number: int):
        self.line_number = line_number
        self.header: Optional[Tuple[str, ...]] = None
        self.rows: List[Tuple[str, ...]] = []

    def add_row(self, line: ClassifiedLine) -> None:
        cells = tuple(split_table_row(line.text))
        if self.header is None:
            duplicates = sorted({c for c in cells if cells.count(c) > 1})
            if duplicates:
                raise ParseError(f"Duplicate table column(s) {', '.join(duplicates)}", line.number)
            self.header = cells
        elif len(cells) != len(self.header):
            raise ParseError(
                f"Table row has {len(cells)} cells but header has {len(self.header)}", line.number)
        else:
            self.rows.append(cells)

    def build(self) -> Table:
        if self.header is None:
            raise ParseError("Examples table has no header row", self.line_number)
        return Table(self.header, tuple(self.rows))


class _StepBuilder:
    def __init__(self, kind: StepType, line: ClassifiedLine):
        self.kind = kind
        self.text = line.content
        self.line_number = line.number
        self.line_text = line.text
        self.table: Optional[_TableBuilder] = None
        self.bullets: Optional[List[str]] = None
        self.has_doc_string = False

    def build(self) -> Step:
        table = self.table.build() if self.table else None
        bullets = tuple(self.bullets) if self.bullets is not None else None
        return Step(self.kind, self.text, Line(self.line_number, self.line_text, table, bullets))


class _BlockBuilder:
    def __init__(self, name: str, tags: Tuple[str, ...], line_number: int,
                 is_outline: bool = False, is_background: bool = False):
        self.name = name
        self.tags = tags
        self.line_number = line_number
        self.is_outline = is_outline
        self.is_background = is_background
        self.steps: List[_StepBuilder] = []
        self.examples: List[_TableBuilder] = []
        self.description: List[str] = []
        self.last_kind: Optional[StepType] = None

    def build_steps(self) -> Tuple[Step, ...]:
        return tuple(step.build() for step in self.steps)

    def build(self) -> ScenarioBlock:
        examples = tuple(t.build() for t in self.examples) if self.is_outline else None
        return ScenarioBlock(
            name=self.name,
            tags=self.tags,
            steps=self.build_steps(),
            examples=examples,
            line_number=self.line_number,
            is_outline=self.is_outline,
            description='\n'.join(self.description),
        )


class _ParseSession:
    """Mutable state for one parse of one document"""

    def __init__(self, lines: List[str]):
        self.lines = lines
        self.feature_name: Optional[str] = None
        self.feature_line = 0
        self.feature_tags: Tuple[str, ...] = ()
        self.feature_description: List[str] = []
        self.pending_tags: List[str] = []
        self.pending_tags_line = 0
        self.background: Optional[_BlockBuilder] = None
        self.blocks: List[_BlockBuilder] = []
        self.shared: List[_TableBuilder] = []
        self.block: Optional[_BlockBuilder] = None
        self.header_indent = 0
        self.step: Optional[_StepBuilder] = None
        self.examples: Optional[_TableBuilder] = None
        self.description: Optional[List[str]] = None
        self.doc_indent: Optional[int] = None
        self.doc_line = 0

    def run(self) -> FeatureDocument:
        for number, raw in enumerate(self.lines, 1):
            if self.doc_indent is not None:
                self._doc_string_line(raw, number)
                continue
            self._dispatch(classify_line(raw, number))

        if self.doc_indent is not None:
            raise ParseError("Unterminated doc string", self.doc_line)
        if self.feature_name is None:
            raise ParseError("Missing Feature header", 1 if self.lines else None)
        if self.pending_tags:
            raise ParseError("Tags without a following Scenario", self.pending_tags_line)

        return FeatureDocument(
            name=self.feature_name,
            description='\n'.join(self.feature_description),
            tags=self.feature_tags,
            background=self.background.build_steps() if self.background else (),
            scenarios=tuple(block.build() for block in self.blocks),
            shared_examples=tuple(t.build() for t in self.shared),
            line_number=self.feature_line,
        )

    def _dispatch(self, line: ClassifiedLine) -> None:
        kind = line.kind

        if kind in (LineKind.BLANK, LineKind.COMMENT):
            return
        if kind == LineKind.TAGS:
            if not self.pending_tags:
                self.pending_tags_line = line.number
            self.pending_tags.extend(parse_tag_line(line.text))
            self.description = None
            return
        if kind == LineKind.FEATURE:
            self._start_feature(line)
            return
        if self.feature_name is None:
            raise ParseError("Expected 'Feature:' before any other content", line.number)

        if kind == LineKind.BACKGROUND:
            self._start_background(line)
        elif kind in (LineKind.SCENARIO, LineKind.SCENARIO_OUTLINE):
            self._start_scenario(line, kind == LineKind.SCENARIO_OUTLINE)
        elif kind == LineKind.EXAMPLES:
            self._start_examples(line)
        elif kind == LineKind.SHARED_EXAMPLES:
            self._start_shared_examples(line)
        elif kind == LineKind.STEP:
            self._add_step(line)
        elif kind == LineKind.TABLE_ROW:
            self._add_table_row(line)
        elif kind == LineKind.BULLET:
            self._add_bullet(line)
        elif kind == LineKind.DOC_STRING:
            self._open_doc_string(line)
        elif self.description is not None:
            self.description.append(line.text)
        else:
            raise ParseError(f"Unexpected text '{line.text}'", line.number)

    def _indent_of(self, line: ClassifiedLine) -> int:
        raw = self.lines[line.number - 1]
        return len(raw) - len(raw.lstrip())

    def _reject_pending_tags(self, line: ClassifiedLine, what: str) -> None:
        if self.pending_tags:
            raise ParseError(f"Tags are not allowed on {what}", line.number)

    def _start_feature(self, line: ClassifiedLine) -> None:
        if self.feature_name is not None:
            raise ParseError("Only one Feature is allowed per document", line.number)
        self.feature_name = line.content
        self.feature_line = line.number
        self.feature_tags = normalize_tags(self.pending_tags)
        self.pending_tags = []
        self.description = self.feature_description

    def _start_background(self, line: ClassifiedLine) -> None:
        self._reject_pending_tags(line, "Background")
        if self.background is not None:
            raise ParseError("Only one Background is allowed per Feature", line.number)
        if self.blocks:
            raise ParseError("Background must come before the first Scenario", line.number)
        self.background = _BlockBuilder(line.content or "Background", (), line.number,
                                        is_background=True)
        self._enter_block(self.background)
        self.description = []

    def _start_scenario(self, line: ClassifiedLine, is_outline: bool) -> None:
        tags = normalize_tags(list(self.pending_tags) + list(self.feature_tags))
        self.pending_tags = []
        block = _BlockBuilder(line.content, tags, line.number, is_outline=is_outline)
        self.header_indent = self._indent_of(line)
        self.blocks.append(block)
        self._enter_block(block)
        self.description = block.description

    def _enter_block(self, block: Optional[_BlockBuilder]) -> None:
        self.block = block
        self.step = None
        self.examples = None

    def _start_examples(self, line: ClassifiedLine) -> None:
        self._reject_pending_tags(line, "Examples")
        table = _TableBuilder(line.number)

        if not self.blocks or self._indent_of(line) <= self.header_indent:
            # Feature-level tables are shared by every outline
            self.shared.append(table)
            self._enter_block(None)
        elif self.block is not None and self.block.is_outline:
            self.block.examples.append(table)
        else:
            raise ParseError("Examples without Scenario Outline", line.number)

        self.step = None
        self.examples = table
        self.description = None

    def _start_shared_examples(self, line: ClassifiedLine) -> None:
        self._reject_pending_tags(line, "Shared Examples")
        table = _TableBuilder(line.number)
        self.shared.append(table)
        self._enter_block(None)
        self.examples = table
        self.description = None

    def _add_step(self, line: ClassifiedLine) -> None:
        if self.block is None:
            raise ParseError("Step outside of a Scenario or Background", line.number)
        if self.examples is not None:
            raise ParseError("Step after Examples", line.number)

        kind = STEP_KEYWORDS[line.keyword]
        if kind is None:
            kind = self.block.last_kind
            if kind is None:
                raise ParseError(f"'{line.keyword}' must follow a Given, When or Then step",
                                 line.number)
        self.block.last_kind = kind

        self.step = _StepBuilder(kind, line)
        self.block.steps.append(self.step)
        self.description = None

    def _add_table_row(self, line: ClassifiedLine) -> None:
        if self.examples is not None:
            self.examples.add_row(line)
            return
        if self.step is None:
            raise ParseError("Table row without a step or Examples", line.number)
        if self.step.bullets is not None:
            raise ParseError("Step cannot carry both bullets and a table", line.number)
        if self.step.table is None:
            self.step.table = _TableBuilder(line.number)
        self.step.table.add_row(line)

    def _add_bullet(self, line: ClassifiedLine) -> None:
        if self.step is None or self.examples is not None:
            raise ParseError("Bullet without a step", line.number)
        if self.step.table is not None or self.step.has_doc_string:
            raise ParseError("Step cannot carry bullets with a table or doc string", line.number)
        if self.step.bullets is None:
            self.step.bullets = []
        self.step.bullets.append(line.content)

    def _open_doc_string(self, line: ClassifiedLine) -> None:
        if self.step is None or self.examples is not None:
            raise ParseError("Doc string without a step", line.number)
        if self.step.table is not None or self.step.bullets is not None:
            raise ParseError("Step cannot carry a doc string with a table or bullets", line.number)
        self.doc_indent = self._indent_of(line)
        self.doc_line = line.number
        self.step.has_doc_string = True
        self.step.bullets = []

    def _doc_string_line(self, raw: str, number: int) -> None:
        if raw.strip().startswith(DOC_STRING_FENCE):
            self.doc_indent = None
            return
        indent = len(raw) - len(raw.lstrip())
        self.step.bullets.append(raw[min(indent, self.doc_indent):].rstrip())


class FeatureParser:
    """Parse Gherkin feature text into a FeatureDocument"""

    def parse(self, source: Union[str, Iterable[str]]) -> FeatureDocument:
        """Parse a whole document given as text or as lines"""
        if isinstance(source, str):
            lines = source.splitlines()
        else:
            lines = [line.rstrip('\r\n') for line in source]

        document = _ParseSession(lines).run()
        logger.debug(
            f"Parsed feature '{document.name}': {len(document.scenarios)} scenario block(s), "
            f"{len(document.background)} background step(s), "
            f"{len(document.shared_examples)} shared examples table(s)")
        return document
