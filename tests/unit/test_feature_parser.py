"""Unit tests for feature parser"""
import pytest
from specrunner.core.exceptions import ParseError
from specrunner.parser.feature_parser import FeatureParser, LineKind, StepType, classify_line

INVOICE_FEATURE = '''\
@billing
Feature: Invoices
  Some description

  Background:
    Given a customer

  @smoke @slow
  Scenario: Create invoice
    When I create an invoice
      | item  | price |
      | apple | 1     |
    And I add notes
      * first
      * second
    Then the invoice exists
    But nothing is emailed
'''


def parse(text):
    return FeatureParser().parse(text)


def test_classify_line():
    assert classify_line('', 1).kind == LineKind.BLANK
    assert classify_line('  # note', 1).kind == LineKind.COMMENT
    assert classify_line('@a @b', 1).kind == LineKind.TAGS
    assert classify_line('| a | b |', 1).kind == LineKind.TABLE_ROW
    assert classify_line('* item', 1).content == 'item'
    assert classify_line('"""', 1).kind == LineKind.DOC_STRING
    assert classify_line('Scenario Outline: x', 1).kind == LineKind.SCENARIO_OUTLINE
    assert classify_line('Shared Examples:', 1).kind == LineKind.SHARED_EXAMPLES
    assert classify_line('Examples:', 1).kind == LineKind.EXAMPLES

    step = classify_line('    And the total is 3', 7)
    assert step.kind == LineKind.STEP
    assert step.keyword == 'And'
    assert step.content == 'the total is 3'
    assert step.number == 7

    assert classify_line('Andrew is here', 1).kind == LineKind.TEXT


def test_parse_feature_structure():
    document = parse(INVOICE_FEATURE)

    assert document.name == 'Invoices'
    assert document.description == 'Some description'
    assert document.tags == ('billing',)
    assert document.line_number == 2

    assert len(document.background) == 1
    background = document.background[0]
    assert background.kind == StepType.GIVEN
    assert background.text == 'a customer'
    assert background.line.number == 6

    assert len(document.scenarios) == 1
    scenario = document.scenarios[0]
    assert scenario.name == 'Create invoice'
    assert scenario.tags == ('smoke', 'slow', 'billing')
    assert scenario.examples is None
    assert not scenario.is_outline


def test_and_but_inherit_step_kind():
    steps = parse(INVOICE_FEATURE).scenarios[0].steps

    assert [s.kind for s in steps] == [StepType.WHEN, StepType.WHEN, StepType.THEN, StepType.THEN]
    assert [s.text for s in steps] == [
        'I create an invoice', 'I add notes', 'the invoice exists', 'nothing is emailed']
    assert steps[3].line.text == 'But nothing is emailed'


def test_table_and_bullets_attach_to_step():
    steps = parse(INVOICE_FEATURE).scenarios[0].steps

    table = steps[0].line.table
    assert steps[0].line.number == 10
    assert table.header == ('item', 'price')
    assert table.rows == (('apple', '1'),)
    assert table.as_dicts() == [{'item': 'apple', 'price': '1'}]
    assert steps[0].line.bullets is None

    assert steps[1].line.bullets == ('first', 'second')
    assert steps[1].line.table is None


def test_doc_string_attaches_as_bullets():
    document = parse('''\
Feature: Docs
  Scenario: Doc
    Given a document
      """
      line one
        indented

      # not a comment
      """
    Then it is stored
''')
    steps = document.scenarios[0].steps

    assert steps[0].line.bullets == ('line one', '  indented', '', '# not a comment')
    assert steps[1].text == 'it is stored'


def test_outline_with_several_examples_tables():
    document = parse('''\
Feature: Outline
  Scenario Outline: Add <a>
    Given I enter <a>

    Examples:
      | a |
      | 1 |
      | 2 |

    Examples:
      | b |
      | x |
''')
    outline = document.scenarios[0]

    assert outline.is_outline
    assert len(outline.examples) == 2
    assert outline.examples[0].rows == (('1',), ('2',))
    assert outline.examples[1].header == ('b',)


def test_shared_examples_before_first_scenario():
    document = parse('''\
Feature: Shared
  Examples:
    | env |
    | dev |

  Scenario Outline: Deploy
    Given deploy to <env>

  Shared Examples:
    | region |
    | eu     |
''')

    assert [t.header for t in document.shared_examples] == [('env',), ('region',)]
    assert document.scenarios[0].examples == ()


def test_feature_level_examples_after_scenarios_are_shared():
    document = parse('''\
Feature: Trailing
  Scenario Outline: A <x> <y>
    Given <x> and <y>

    Examples:
      | x |
      | 1 |

  Scenario: Plain
    Given nothing

  Examples:
    | y |
    | 2 |
    | 3 |
''')
    outline, plain = document.scenarios

    assert [t.header for t in outline.examples] == [('x',)]
    assert plain.examples is None
    assert [t.header for t in document.shared_examples] == [('y',)]
    assert document.shared_examples[0].rows == (('2',), ('3',))


def test_step_after_feature_level_examples_is_rejected():
    with pytest.raises(ParseError) as exc_info:
        parse('Feature: F\n  Scenario: S\n    Given x\n  Examples:\n    | a |\n    Given y\n')

    assert exc_info.value.line_number == 6


def test_comments_blank_lines_and_crlf():
    document = parse('# header comment\r\nFeature: X\r\n\r\n  Scenario: Y\r\n    # skipped\r\n    Given z\r\n')

    assert document.name == 'X'
    assert document.scenarios[0].steps[0].text == 'z'
    assert document.scenarios[0].steps[0].line.number == 6


def test_parse_accepts_lines():
    document = FeatureParser().parse(['Feature: Lines\n', 'Scenario: One\n', 'Given a step\n'])

    assert document.scenarios[0].steps[0].text == 'a step'


def test_escaped_pipe_in_table_cell():
    document = parse('''\
Feature: Pipes
  Scenario: Escaped
    Given values
      | expr   |
      | a \\| b |
''')

    assert document.scenarios[0].steps[0].line.table.rows == (('a | b',),)


@pytest.mark.parametrize('text, line_number', [
    ('Feature: F\n  Scenario: S\n  | a |\n', 3),
    ('Feature: F\n  Scenario: S\n    Given x\n    Examples:\n      | a |\n', 4),
    ('Feature: F\n  Scenario: S\n    Given x\n      | a | b |\n      | 1 |\n', 5),
    ('Feature: F\n  Scenario: S\n    And x\n', 3),
    ('Scenario: S\n    Given x\n', 1),
    ('Feature: F\n  Scenario: S\n    Given x\n      """\n      text\n', 4),
    ('Feature: F\n  @tag\n  Background:\n    Given x\n', 3),
    ('Feature: F\n  Scenario: S\n    Given x\n      | a | a |\n', 4),
    ('Feature: F\n  Scenario: S\n    Given x\n    random words\n', 4),
    ('Feature: F\n  Scenario Outline: S\n    Given <x>\n    Examples:\n', 4),
])
def test_malformed_structure_raises_parse_error(text, line_number):
    with pytest.raises(ParseError) as exc_info:
        parse(text)

    assert exc_info.value.line_number == line_number
    assert f"on line {line_number}" in str(exc_info.value)
