"""Names shared across the injection pipeline.

This module defines the fixed vocabularies that form the public
contract of the tool: known step actions, step metadata keys, markup
dialects, payload syntaxes, and edit operation kinds.

The rules defined here are relied upon by the matcher, the binder,
the serializer, the validators, and the request schema.
"""

from typing import Literal

#: Actions understood by the step validators.
KNOWN_ACTIONS = (
    'checkLink',
    'click',
    'dragAndDrop',
    'find',
    'goTo',
    'httpRequest',
    'loadCookie',
    'loadVariables',
    'record',
    'runCode',
    'runShell',
    'saveCookie',
    'screenshot',
    'stopRecord',
    'type',
    'wait',
)

#: Step keys that describe a step rather than select its action.
METADATA_KEYS = frozenset({
    '$schema',
    'breakpoint',
    'description',
    'outputs',
    'stepId',
    'unsafe',
    'variables',
})

#: Step keys attached by loaders and never written back into documents.
INTERNAL_KEYS = frozenset({
    'sourceLocation',
})

#: Step keys that never identify an action.
NON_ACTION_KEYS = METADATA_KEYS | INTERNAL_KEYS

#: Markup dialect used to choose recognition patterns.
type Dialect = Literal['markdown', 'html', 'asciidoc', 'xml']

DIALECTS: tuple[Dialect, ...] = ('markdown', 'html', 'asciidoc', 'xml')

#: Payload syntax rendered inside a comment.
type Syntax = Literal['json', 'yaml', 'xml']

#: Payload syntax accepted from callers; `auto` follows the document.
type SyntaxOption = Literal['json', 'yaml', 'xml', 'auto']

#: Classification of an edit operation, used for diagnostics.
type OperationKind = Literal['testStart', 'step', 'testEnd']

#: Comment format names.
type FormatName = Literal[
    'htmlComment',
    'jsxComment',
    'xmlProcessingInstruction',
    'asciidocComment',
]
