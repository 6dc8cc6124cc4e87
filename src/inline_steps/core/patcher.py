"""Application and preview of planned insertions.

Insertion points are resolved against the original text before any
splicing takes place, then applied from the end of the text towards
its start. Earlier insertions therefore never shift the anchors of
later ones.
"""

import logging
from collections.abc import Sequence
from typing import NamedTuple

from .planner import EditOperation

logger = logging.getLogger(__name__)

PREVIEW_SUFFIX = '(with inline tests)'


class Insertion(NamedTuple):
    """An operation resolved to a concrete position in the original text."""

    position: int
    index: int
    text: str


def line_start(content: str, offset: int) -> int:
    """Return the offset of the first character of the line at `offset`."""
    return content.rfind('\n', 0, offset) + 1


def line_end(content: str, offset: int) -> int:
    """Return the offset just past the line at `offset`, newline included."""
    position = content.find('\n', offset)
    if position < 0:
        return len(content)

    return position + 1


def indentation(content: str, start: int) -> str:
    """Return the leading spaces and tabs of the line starting at `start`."""
    end = start
    while end < len(content) and content[end] in ' \t':
        end += 1

    return content[start:end]


def indent_lines(text: str, indent: str) -> str:
    """Prefix every line of a payload with an indentation."""
    if not indent:
        return text

    return '\n'.join(f'{indent}{line}' for line in text.split('\n'))


def resolve(content: str, operation: EditOperation, index: int) -> Insertion:
    """Resolve an operation against the original text.

    Args:
        content: Original document text.
        operation: Planned insertion.
        index: Position of the operation in the plan.

    Returns:
        Insertion point and the exact text to splice in.
    """
    offset = min(operation.offset, len(content))
    start = line_start(content, offset)
    payload = indent_lines(operation.content, indentation(content, start))

    if not operation.insert_after:
        return Insertion(start, index, f'{payload}\n')

    position = line_end(content, offset)
    if position == len(content) and not content.endswith('\n'):
        return Insertion(position, index, f'\n{payload}')

    return Insertion(position, index, f'{payload}\n')


def batch_update(content: str, operations: Sequence[EditOperation]) -> str:
    """Apply every operation to a document exactly once.

    Operations sharing an insertion point appear in the output in the
    order they were planned.

    Args:
        content: Original document text.
        operations: Planned insertions.

    Returns:
        Patched document text; the input itself when there is nothing
        to insert.
    """
    if not operations:
        return content

    insertions = sorted(
        (resolve(content, operation, index) for index, operation in enumerate(operations)),
        key=lambda item: (item.position, item.index),
        reverse=True,
    )

    result = content
    for insertion in insertions:
        result = f'{result[:insertion.position]}{insertion.text}{result[insertion.position:]}'

    logger.debug('Applied %d insertions', len(insertions))

    return result


def render_preview(content: str, operations: Sequence[EditOperation],
                   path: str, context_lines: int = 2) -> str:
    """Render planned insertions as a diff-style preview.

    Every operation becomes one hunk headed by the 1-based line of its
    offset. Insertions after a line show that line as the last leading
    context line; insertions before a line show it as the first trailing
    one.

    Args:
        content: Original document text.
        operations: Planned insertions.
        path: Path shown in the preview header.
        context_lines: Number of context lines on each side.

    Returns:
        Preview text.
    """
    lines = content.split('\n')
    if len(lines) > 1 and not lines[-1]:
        lines.pop()

    preview = [
        f'--- {path}',
        f'+++ {path} {PREVIEW_SUFFIX}',
        '',
    ]

    for operation in sorted(operations, key=lambda item: item.offset):
        number = content[:operation.offset].count('\n') + 1
        anchor = min(number, len(lines)) - 1

        if operation.insert_after:
            leading = lines[max(0, anchor - context_lines + 1):anchor + 1]
            trailing = lines[anchor + 1:anchor + 1 + context_lines]
        else:
            leading = lines[max(0, anchor - context_lines):anchor]
            trailing = lines[anchor:anchor + context_lines]

        preview.append(f'@@ line {number} @@')
        preview.extend(f' {line}' for line in leading)
        preview.extend(f'+{line}' for line in operation.content.split('\n'))
        preview.extend(f' {line}' for line in trailing)
        preview.append('')

    return '\n'.join(preview)
