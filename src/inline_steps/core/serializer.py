"""Rendering of steps and test declarations as inline statements.

An inline statement is a payload wrapped in the comment tokens of the
document format, for example `<!-- step {"click":"Submit"} -->`. Three
payload syntaxes are supported:

- `json`: compact JSON;
- `yaml`: one `key: value` line per field, with one level of nested
  objects indented by two spaces and arrays rendered as inline JSON;
- `xml`: space-separated `key="value"` attributes on a single line.

Payloads spanning several lines are rendered with the opening and
closing tokens on lines of their own.
"""

import json
import re
from collections.abc import Mapping
from typing import Any

from inline_steps.errors import ErrorContext, SerializationError, StepError
from inline_steps.formats import COMMENT_FORMATS, CommentFormat
from inline_steps.names import Syntax
from inline_steps.steps import Step, action_key, is_simple, strip_internal
from inline_steps.values import is_mapping

#: Characters forcing a YAML scalar to be quoted.
YAML_SPECIAL = re.compile(r'[:#\[\]{}|>!&*?\'"]')

#: Plain scalars a YAML parser would not read back as strings.
YAML_RESERVED = re.compile(r'(?i:true|false|yes|no|on|off|null|~)|[-+.\d][\d._eE+-]*')

#: Characters a plain YAML scalar can not start with.
YAML_INDICATORS = frozenset('-%@`,')

#: Characters YAML reads as line breaks.
LINE_BREAKS = re.compile('[\r\n\x85\u2028\u2029]')

#: Escapes of a double-quoted YAML scalar.
YAML_ESCAPES = str.maketrans({
    '\\': '\\\\',
    '"': '\\"',
    '\n': '\\n',
    '\r': '\\r',
    '\x85': '\\N',
    '\u2028': '\\L',
    '\u2029': '\\P',
})

#: Payload of an existing inline statement, for every comment format.
STATEMENT_PATTERNS = (
    re.compile(r'<!--\s*(?:test|step)\s+([\s\S]*?)\s*-->'),
    re.compile(r'\{\s*/\*\s*(?:test|step)\s+([\s\S]*?)\s*\*/\s*\}'),
    re.compile(r'<\?doc-detective\s+(?:test|step)\s+([\s\S]*?)\s*\?>'),
    re.compile(r'//\s*\(\s*(?:test|step)\s+([\s\S]*?)\s*\)'),
)

DEFAULT_SYNTAX: Syntax = 'json'


def to_json(value: Any) -> str:  # noqa: ANN401
    """Render a value as compact JSON, keeping non-ASCII text."""
    return json.dumps(value, ensure_ascii=False, separators=(',', ':'))


def _yaml_scalar(value: str) -> str:
    """Render a string as a YAML scalar, quoting it when needed."""
    if (
        not value
        or value[0] in YAML_INDICATORS
        or YAML_SPECIAL.search(value)
        or YAML_RESERVED.fullmatch(value)
        or LINE_BREAKS.search(value)
        or value != value.strip()
    ):
        return f'"{value.translate(YAML_ESCAPES)}"'

    return value


def to_yaml(data: Mapping[str, Any]) -> str:
    """Render a mapping as line-oriented YAML.

    Args:
        data: Mapping to render.

    Returns:
        One `key: value` line per field. Nested objects get one level of
        two-space indentation; deeper values and arrays are inline JSON.
    """
    lines: list[str] = []

    for key, value in data.items():
        if isinstance(value, str):
            lines.append(f'{key}: {_yaml_scalar(value)}')
        elif is_mapping(value) and value:
            lines.append(f'{key}:')
            for sub_key, sub_value in value.items():
                if isinstance(sub_value, str):
                    lines.append(f'  {sub_key}: {_yaml_scalar(sub_value)}')
                else:
                    lines.append(f'  {sub_key}: {to_json(sub_value)}')
        else:
            lines.append(f'{key}: {to_json(value)}')

    return '\n'.join(lines)


def to_attributes(data: Mapping[str, Any]) -> str:
    """Render a mapping as space-separated attributes on one line.

    Strings are double-quoted, numbers and booleans bare, and any other
    value is rendered as compact JSON.
    """
    attributes: list[str] = []

    for key, value in data.items():
        if isinstance(value, str):
            attributes.append(f'{key}="{value}"')
        else:
            attributes.append(f'{key}={to_json(value)}')

    return ' '.join(attributes)


def serialize_payload(data: Mapping[str, Any], syntax: Syntax | str | None = None) -> str:
    """Render a mapping in a payload syntax.

    Args:
        data: Mapping to render.
        syntax: `json`, `yaml` or `xml`; anything else renders JSON.

    Returns:
        Rendered payload text.
    """
    if syntax == 'xml':
        return to_attributes(data)

    if syntax == 'yaml':
        return to_yaml(data)

    return to_json(dict(data))


def wrap(payload: str, open_token: str, close_token: str) -> str:
    """Wrap a payload in comment tokens.

    Multi-line payloads put the trimmed tokens on their own lines.
    """
    if LINE_BREAKS.search(payload):
        return f'{open_token.strip()}\n{payload}\n{close_token.strip()}'

    return f'{open_token}{payload}{close_token}'


def detect_syntax(statement: str | None) -> Syntax | None:
    """Infer the payload syntax of an inline statement.

    The statement may be a complete comment or a bare payload.

    Args:
        statement: Inline statement text.

    Returns:
        `json`, `xml` or `yaml`, or `None` for empty input. Payloads that
        fit no specific syntax are reported as `json`.
    """
    if not statement:
        return None

    content = statement.strip()
    for pattern in STATEMENT_PATTERNS:
        if found := pattern.search(content):
            content = found.group(1).strip()
            break

    if content.startswith('{') or re.match(r'^"?\w+"?\s*:\s*[{\["\']', content):
        return 'json'

    if re.match(r'^\w+\s*=\s*["\']?[^{]', content) or re.match(r'^\w+\s*=\s*(?:true|false|\d+)', content):
        return 'xml'

    if (
        re.match(r'^\w+:\s*\n', content)
        or re.search(r'\n\s+\w+:', content)
        or (re.match(r'^\w+:\s+[^{]', content) and '{' not in content)
    ):
        return 'yaml'

    return 'json'


def find_inline_statements(content: str) -> list[str]:
    """Find existing inline test and step statements of any format.

    Args:
        content: Document text.

    Returns:
        Statement texts in document order.
    """
    found = [
        (hit.start(), hit.group(0))
        for pattern in STATEMENT_PATTERNS
        for hit in pattern.finditer(content)
    ]

    return [text for _, text in sorted(found, key=lambda item: item[0])]


def resolve_syntax(option: str | None, content: str, default: str = DEFAULT_SYNTAX) -> Syntax:
    """Resolve the payload syntax for a document.

    Args:
        option: Requested syntax; `auto` follows the first inline
            statement already present in the document.
        content: Document text.
        default: Syntax used when nothing else decides.

    Returns:
        Concrete payload syntax.
    """
    if option == 'auto' or (option is None and default == 'auto'):
        statements = find_inline_statements(content)
        return detect_syntax(statements[0]) if statements else DEFAULT_SYNTAX  # type: ignore[return-value]

    if option in ('json', 'yaml', 'xml'):
        return option  # type: ignore[return-value]

    if default in ('json', 'yaml', 'xml'):
        return default  # type: ignore[return-value]

    return DEFAULT_SYNTAX


class Serializer:
    """Renders inline statements for one comment format and syntax."""

    def __init__(self, comment_format: CommentFormat | None = None,
                 syntax: Syntax = DEFAULT_SYNTAX) -> None:
        """Initialize the serializer.

        Args:
            comment_format: Comment tokens to wrap payloads in; HTML
                comments when omitted.
            syntax: Payload syntax.
        """
        self.comment_format = comment_format or COMMENT_FORMATS['htmlComment']
        self.syntax = syntax

    def step(self, step: Step) -> str:
        """Render a step statement.

        Steps without metadata and with a primitive action value render
        as `{action: value}`; all other steps render in full. Keys used
        only by loaders are never rendered.

        Args:
            step: Step mapping.

        Returns:
            Inline step statement.

        Raises:
            SerializationError: If the step does not define exactly one
                action.
        """
        data = strip_internal(step)

        try:
            key = action_key(data)
        except StepError as base:
            raise SerializationError(
                f'Cannot serialize step: {base.message.lower()}',
                context=base.context,
            ) from base

        if is_simple(data):
            data = {key: data[key]}

        payload = serialize_payload(data, self.syntax)

        return wrap(payload, self.comment_format.step_open, self.comment_format.step_close)

    def test(self, declaration: Mapping[str, Any]) -> str:
        """Render a test-start statement.

        Args:
            declaration: Test fields to render (identifier, description,
                detection flag, execution targets).

        Returns:
            Inline test statement.

        Raises:
            SerializationError: If there is nothing to render.
        """
        if not declaration:
            raise SerializationError(
                'Cannot serialize test: no declaration fields',
                context=ErrorContext(element=dict(declaration)),
            )

        payload = serialize_payload(declaration, self.syntax)

        return wrap(payload, self.comment_format.test_open, self.comment_format.test_close)

    def test_end(self) -> str:
        """Render a test-end statement."""
        return f'{self.comment_format.test_end_open}{self.comment_format.test_end_close}'
