"""Tests for inline statement rendering."""

import json

import pytest
import yaml

from inline_steps.core import Serializer
from inline_steps.core.serializer import detect_syntax, find_inline_statements, resolve_syntax, to_yaml, wrap
from inline_steps.errors import SerializationError
from inline_steps.formats import COMMENT_FORMATS


@pytest.mark.parametrize('step, syntax, expected', (
    pytest.param(
        {'click': 'Submit'}, 'json',
        '<!-- step {"click":"Submit"} -->',
        id='json simple',
    ),
    pytest.param(
        {'click': 'Submit'}, 'yaml',
        '<!-- step click: Submit -->',
        id='yaml simple',
    ),
    pytest.param(
        {'click': 'Submit'}, 'xml',
        '<!-- step click="Submit" -->',
        id='xml simple',
    ),
    pytest.param(
        {'wait': 500}, 'yaml',
        '<!-- step wait: 500 -->',
        id='yaml number',
    ),
    pytest.param(
        {'stopRecord': True}, 'xml',
        '<!-- step stopRecord=true -->',
        id='xml boolean',
    ),
    pytest.param(
        {'stepId': 'submit', 'click': 'Submit'}, 'json',
        '<!-- step {"stepId":"submit","click":"Submit"} -->',
        id='json with metadata',
    ),
    pytest.param(
        {'stepId': 'submit', 'click': 'Submit'}, 'yaml',
        '<!-- step\nstepId: submit\nclick: Submit\n-->',
        id='yaml with metadata',
    ),
    pytest.param(
        {'type': {'keys': 'hello', 'selector': '#name'}}, 'yaml',
        '<!-- step\ntype:\n  keys: hello\n  selector: "#name"\n-->',
        id='yaml nested object',
    ),
    pytest.param(
        {'unsafe': False, 'outputs': {}, 'click': 'OK'}, 'json',
        '<!-- step {"click":"OK"} -->',
        id='empty metadata',
    ),
    pytest.param(
        {'click': 'OK', 'sourceLocation': {'line': 3}}, 'json',
        '<!-- step {"click":"OK"} -->',
        id='internal keys',
    ),
    pytest.param(
        {'find': 'Größe'}, 'json',
        '<!-- step {"find":"Größe"} -->',
        id='non-ascii',
    ),
))
def test_step_statements(step: dict, syntax: str, expected: str) -> None:
    """Render step statements in every payload syntax."""
    assert Serializer(syntax=syntax).step(step) == expected  # type: ignore[arg-type]


@pytest.mark.parametrize('format_name, syntax, expected', (
    pytest.param('jsxComment', 'json', '{/* step {"click":"Submit"} */}', id='jsx'),
    pytest.param('asciidocComment', 'json', '// (step {"click":"Submit"})', id='asciidoc'),
    pytest.param(
        'xmlProcessingInstruction', 'xml',
        '<?doc-detective step click="Submit" ?>',
        id='processing instruction',
    ),
))
def test_comment_formats(format_name: str, syntax: str, expected: str) -> None:
    """Wrap statements in the tokens of the comment format."""
    serializer = Serializer(COMMENT_FORMATS[format_name], syntax)  # type: ignore[arg-type]

    assert serializer.step({'click': 'Submit'}) == expected


def test_test_statements() -> None:
    """Render test start and end statements."""
    serializer = Serializer()

    assert serializer.test({'testId': 't1'}) == '<!-- test {"testId":"t1"} -->'
    assert serializer.test_end() == '<!-- test end -->'

    asciidoc = Serializer(COMMENT_FORMATS['asciidocComment'], 'yaml')

    assert asciidoc.test({'testId': 't1'}) == '// (test testId: t1)'
    assert asciidoc.test({'testId': 't1', 'detectSteps': False}) == (
        '// (test\ntestId: t1\ndetectSteps: false\n)'
    )
    assert asciidoc.test_end() == '// (test end)'


@pytest.mark.parametrize('step', (
    pytest.param({'description': 'Nothing to do'}, id='no action'),
    pytest.param({'click': 'OK', 'find': 'OK'}, id='several actions'),
))
def test_invalid_steps(step: dict) -> None:
    """Refuse to render steps without exactly one action."""
    with pytest.raises(SerializationError, match=r'^Cannot serialize step') as error:
        Serializer().step(step)

    assert error.value.exit_code == 1


def test_empty_test_declaration() -> None:
    """Refuse to render test statements without fields."""
    with pytest.raises(SerializationError):
        Serializer().test({})


@pytest.mark.parametrize('step', (
    pytest.param({'click': 'Submit'}, id='string'),
    pytest.param({'wait': 1.5}, id='number'),
    pytest.param({'stopRecord': True}, id='boolean'),
    pytest.param(
        {'stepId': 'api', 'httpRequest': {'url': 'https://example.com', 'statusCodes': [200, 201]}},
        id='nested object',
    ),
))
def test_json_round_trip(step: dict) -> None:
    """Parse rendered JSON payloads back into the original step."""
    statement = Serializer().step(step)
    payload = statement.removeprefix('<!-- step ').removesuffix(' -->')

    assert json.loads(payload) == step


@pytest.mark.parametrize('data', (
    pytest.param({'find': 'true'}, id='boolean word'),
    pytest.param({'find': '42'}, id='number text'),
    pytest.param({'find': ''}, id='empty'),
    pytest.param({'find': ' padded '}, id='surrounding spaces'),
    pytest.param({'find': 'Total: $42'}, id='colon'),
    pytest.param({'find': 'line\nbreak'}, id='line break'),
    pytest.param({'find': 'say "hi"'}, id='quotes'),
    pytest.param({'description': 'a\r\nb', 'click': 'x'}, id='crlf'),
    pytest.param({'type': {'keys': 'a\rb'}}, id='carriage return'),
    pytest.param({'find': 'a\x85b\u2028c\u2029d'}, id='unicode breaks'),
    pytest.param(
        {'stepId': 's1', 'type': {'keys': 'a: b', 'selector': '#x'}, 'unsafe': True},
        id='nested',
    ),
))
def test_yaml_payloads_parse_back(data: dict) -> None:
    """Render YAML payloads a YAML parser reads back unchanged."""
    assert yaml.safe_load(to_yaml(data)) == data


@pytest.mark.parametrize('data, expected', (
    pytest.param({'find': 'a\rb'}, 'find: "a\\rb"', id='carriage return'),
    pytest.param({'type': {'keys': 'a\r\nb'}}, 'type:\n  keys: "a\\r\\nb"', id='nested crlf'),
    pytest.param({'find': 'a\u2028b'}, 'find: "a\\Lb"', id='line separator'),
))
def test_yaml_scalars_stay_on_one_line(data: dict, expected: str) -> None:
    """Escape every line break inside quoted YAML scalars."""
    assert to_yaml(data) == expected


@pytest.mark.parametrize('payload, expected', (
    pytest.param('click: OK', '<!-- step click: OK -->', id='single line'),
    pytest.param('a: 1\nb: 2', '<!-- step\na: 1\nb: 2\n-->', id='line feed'),
    pytest.param('a: 1\r\nb: 2', '<!-- step\na: 1\r\nb: 2\n-->', id='crlf'),
    pytest.param('a: 1\rb: 2', '<!-- step\na: 1\rb: 2\n-->', id='carriage return'),
))
def test_wrap(payload: str, expected: str) -> None:
    """Put comment tokens on their own lines around multi-line payloads."""
    assert wrap(payload, '<!-- step ', ' -->') == expected


@pytest.mark.parametrize('statement, expected', (
    pytest.param('<!-- step {"click":"Submit"} -->', 'json', id='json'),
    pytest.param('<!-- step click="Submit" -->', 'xml', id='xml'),
    pytest.param('<!-- step click: Submit -->', 'yaml', id='yaml'),
    pytest.param('<!-- test\ntestId: t1\ndescription: Login\n-->', 'yaml', id='yaml block'),
    pytest.param('// (step {"click":"x"})', 'json', id='asciidoc json'),
    pytest.param('{/* step wait=500 */}', 'xml', id='jsx xml'),
    pytest.param('wait: 500', 'yaml', id='bare payload'),
    pytest.param('', None, id='empty'),
    pytest.param(None, None, id='none'),
))
def test_detect_syntax(statement: str | None, expected: str | None) -> None:
    """Infer the payload syntax of existing statements."""
    assert detect_syntax(statement) == expected


def test_find_inline_statements() -> None:
    """Find existing statements of every comment format in order."""
    content = (
        '// (step {"goTo":"https://example.com"})\n'
        'Text\n'
        '<!-- step click: Save -->\n'
    )

    assert find_inline_statements(content) == [
        '// (step {"goTo":"https://example.com"})',
        '<!-- step click: Save -->',
    ]


@pytest.mark.parametrize('option, content, default, expected', (
    pytest.param('auto', 'Text\n<!-- step click: Save -->\n', 'json', 'yaml', id='auto from document'),
    pytest.param('auto', 'Plain text.', 'yaml', 'json', id='auto without statements'),
    pytest.param(None, 'Text\n<!-- step click="Save" -->\n', 'auto', 'xml', id='auto by default'),
    pytest.param('xml', '', 'json', 'xml', id='explicit'),
    pytest.param(None, '', 'yaml', 'yaml', id='default'),
))
def test_resolve_syntax(option: str | None, content: str, default: str, expected: str) -> None:
    """Resolve the payload syntax of a request."""
    assert resolve_syntax(option, content, default) == expected
