"""Comment formats and markup dialects by file extension.

Each documentation format embeds inline statements in its own comment
syntax and is scanned with its own recognition patterns. This module
maps file extensions to both. Lookups always succeed: unknown extensions
fall back to HTML comments and the Markdown dialect.
"""

from pathlib import PurePosixPath, PureWindowsPath
from types import MappingProxyType

from pydantic import Field

from inline_steps.models import SchemaModel
from inline_steps.names import Dialect, FormatName  # noqa: TC001

DEFAULT_FORMAT: FormatName = 'htmlComment'
DEFAULT_DIALECT: Dialect = 'markdown'


class CommentFormat(SchemaModel):
    """Literal tokens wrapping inline statements in one file format."""

    name: FormatName
    extensions: tuple[str, ...] = Field(default=())

    test_open: str
    test_close: str
    test_end_open: str
    test_end_close: str
    step_open: str
    step_close: str


COMMENT_FORMATS: MappingProxyType[str, CommentFormat] = MappingProxyType({
    'htmlComment': CommentFormat(
        name='htmlComment',
        extensions=('.md', '.markdown', '.html', '.htm'),
        test_open='<!-- test ',
        test_close=' -->',
        test_end_open='<!-- test end',
        test_end_close=' -->',
        step_open='<!-- step ',
        step_close=' -->',
    ),
    'jsxComment': CommentFormat(
        name='jsxComment',
        extensions=('.mdx', '.jsx', '.tsx'),
        test_open='{/* test ',
        test_close=' */}',
        test_end_open='{/* test end',
        test_end_close=' */}',
        step_open='{/* step ',
        step_close=' */}',
    ),
    'xmlProcessingInstruction': CommentFormat(
        name='xmlProcessingInstruction',
        extensions=('.xml', '.dita', '.ditamap'),
        test_open='<?doc-detective test ',
        test_close=' ?>',
        test_end_open='<?doc-detective test end',
        test_end_close=' ?>',
        step_open='<?doc-detective step ',
        step_close=' ?>',
    ),
    'asciidocComment': CommentFormat(
        name='asciidocComment',
        extensions=('.adoc', '.asciidoc', '.asc'),
        test_open='// (test ',
        test_close=')',
        test_end_open='// (test end',
        test_end_close=')',
        step_open='// (step ',
        step_close=')',
    ),
})

DIALECT_EXTENSIONS: MappingProxyType[Dialect, tuple[str, ...]] = MappingProxyType({
    'markdown': ('.md', '.markdown', '.mdx'),
    'html': ('.html', '.htm'),
    'asciidoc': ('.adoc', '.asciidoc', '.asc'),
    'xml': ('.xml', '.dita', '.ditamap'),
})


def get_extension(path: str) -> str:
    """Return the extension of a path including the leading dot.

    Both POSIX and Windows separators are accepted, since source paths
    come from the host process verbatim.

    Args:
        path: File path or bare file name.

    Returns:
        The extension (for example `.md`), or an empty string.
    """
    if '\\' in path:
        return PureWindowsPath(path).suffix

    return PurePosixPath(path).suffix


def _normalize(extension_or_path: str | None) -> str:
    """Lower-case an extension, extracting it from a path if needed."""
    value = (extension_or_path or '').lower()
    if value.startswith('.') and '/' not in value and '\\' not in value and value.count('.') == 1:
        return value

    return get_extension(value)


def get_comment_format(extension: str | None) -> CommentFormat:
    """Resolve the comment format for a file extension or path.

    Args:
        extension: Extension with its leading dot, or a file path.

    Returns:
        Matching comment format, HTML comments when nothing matches.
    """
    extension = _normalize(extension)

    for comment_format in COMMENT_FORMATS.values():
        if extension in comment_format.extensions:
            return comment_format

    return COMMENT_FORMATS[DEFAULT_FORMAT]


def resolve_comment_format(name: str | None, extension: str | None) -> CommentFormat:
    """Resolve an explicitly named comment format, else by extension.

    Args:
        name: Optional comment format name requested by a caller.
        extension: Extension with its leading dot, or a file path.

    Returns:
        The named format when it exists, otherwise the format matching
        the extension.
    """
    if name and name in COMMENT_FORMATS:
        return COMMENT_FORMATS[name]

    return get_comment_format(extension)


def get_dialect(extension: str | None) -> Dialect:
    """Resolve the markup dialect for a file extension or path.

    Args:
        extension: Extension with its leading dot, or a file path.

    Returns:
        Matching dialect name, `markdown` when nothing matches.
    """
    extension = _normalize(extension)

    for dialect, extensions in DIALECT_EXTENSIONS.items():
        if extension in extensions:
            return dialect

    return DEFAULT_DIALECT
