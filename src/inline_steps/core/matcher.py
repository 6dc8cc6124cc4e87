"""Markup recognition for documentation sources.

The matcher scans raw document text with dialect-specific regular
expressions and reports spans that correspond to test actions: links
to check, emphasized UI text to find or click, navigation phrases,
quoted input and images.

Recognition is lexical and therefore approximate. Patterns are fixed
and bounded; no parsing of the markup language takes place.
"""

import logging
import re
from bisect import bisect_right
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from pydantic import Field

from inline_steps.errors import ErrorContext, PatternError
from inline_steps.models import SchemaModel
from inline_steps.names import Dialect  # noqa: TC001

if TYPE_CHECKING:
    from inline_steps.schema import PatternDescriptor

logger = logging.getLogger(__name__)

#: JavaScript named group syntax, not followed by a lookbehind marker.
JS_NAMED_GROUP = re.compile(r'\(\?<(?![=!])')

_LINK_TAIL = r'\]\(\s*(https?://[^\s)]+)(?:\s+"[^"]*")?\s*\)'


class MarkupPattern(SchemaModel):
    """A compiled recognition pattern.

    Attributes:
        name: Pattern name reported on matches.
        regex: Compiled expression, searched globally.
        actions: Actions a match of this pattern can represent.
        capture_groups: Logical field name to group index; index `0`
            refers to the whole match.
    """

    name: str
    regex: re.Pattern[str]
    actions: tuple[str, ...] = Field(min_length=1)
    capture_groups: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_descriptor(cls, descriptor: 'PatternDescriptor') -> 'MarkupPattern':
        """Compile a caller-supplied pattern descriptor.

        Args:
            descriptor: Custom pattern declaration.

        Returns:
            Compiled pattern capturing its value as field `value`.

        Raises:
            PatternError: If the expression does not compile or refers
                to a group it does not define.
        """
        source = JS_NAMED_GROUP.sub('(?P<', descriptor.regex)

        try:
            regex = re.compile(source)
        except re.error as base:
            raise PatternError(
                f'Invalid custom pattern {descriptor.name!r}: {base}',
                context=ErrorContext(element=descriptor.model_dump(by_alias=True)),
            ) from base

        value_group = descriptor.value_group
        if value_group > regex.groups and 'value_group' not in descriptor.model_fields_set:
            value_group = 0

        if value_group > regex.groups:
            raise PatternError(
                f'Custom pattern {descriptor.name!r} has no group {descriptor.value_group}',
                context=ErrorContext(element=descriptor.model_dump(by_alias=True)),
            )

        return cls(
            name=descriptor.name,
            regex=regex,
            actions=(descriptor.action,),
            capture_groups={'value': value_group},
        )


class ContentMatch(SchemaModel):
    """A located span of markup recognized as a test action.

    Matches are produced read-only by the matcher and consumed by the
    step binder.
    """

    pattern_name: str
    actions: tuple[str, ...]
    capture_groups: dict[str, int]
    match_text: str
    captures: tuple[str | None, ...]
    offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)
    line_number: int = Field(ge=1)

    @property
    def action(self) -> str:
        """Primary action implied by the match."""
        return self.actions[0]

    def group(self, index: int) -> str | None:
        """Return the text of a capture group (`0` is the whole match)."""
        if index == 0:
            return self.match_text

        if 0 < index <= len(self.captures):
            return self.captures[index - 1]

        return None

    @property
    def fields(self) -> dict[str, str | None]:
        """Captured text by logical field name."""
        return {
            name: self.group(index)
            for name, index in self.capture_groups.items()
        }

    @property
    def value(self) -> str:
        """Text compared against step values.

        This is the first mapped capture group, or the whole match text
        when the pattern maps no group or the group did not participate.
        """
        index = next(iter(self.capture_groups.values()), 0)

        return self.group(index) or self.match_text

    def contains(self, other: 'ContentMatch') -> bool:
        """Check whether this match fully contains another one."""
        return self.offset <= other.offset and self.end_offset >= other.end_offset


def _pattern(name: str, regex: str, action: str, field: str) -> MarkupPattern:
    """Build a built-in pattern capturing one field from group 1."""
    return MarkupPattern(
        name=name,
        regex=re.compile(regex),
        actions=(action,),
        capture_groups={field: 1},
    )


#: Built-in recognition patterns by dialect.
DEFAULT_PATTERNS: MappingProxyType[Dialect, tuple[MarkupPattern, ...]] = MappingProxyType({
    'markdown': (
        _pattern(
            'checkHyperlink',
            rf'(?<!!)\[[^\]]+{_LINK_TAIL}',
            'checkLink', 'url',
        ),
        _pattern(
            'clickOnscreenText',
            r'\b(?:[Cc]lick|[Tt]ap|[Ll]eft-click|[Cc]hoose|[Ss]elect|[Cc]heck)\b'
            r'\s+\*\*((?:(?!\*\*).)+)\*\*',
            'click', 'text',
        ),
        _pattern(
            'findOnscreenText',
            r'\*\*((?:(?!\*\*).)+)\*\*',
            'find', 'text',
        ),
        _pattern(
            'goToUrl',
            r'\b(?:[Gg]o\s+to|[Oo]pen|[Nn]avigate\s+to|[Vv]isit|[Aa]ccess|[Pp]roceed\s+to|[Ll]aunch)\b'
            rf'\s+\[[^\]]+{_LINK_TAIL}',
            'goTo', 'url',
        ),
        _pattern(
            'typeText',
            r'\b(?:[Pp]ress|[Ee]nter|[Tt]ype)\b\s+"([^"]+)"',
            'type', 'keys',
        ),
        _pattern(
            'screenshotImage',
            r'!\[[^\]]*\]\(\s*([^\s)]+)(?:\s+"[^"]*")?\s*\)',
            'screenshot', 'path',
        ),
    ),
    'html': (
        _pattern(
            'checkHyperlink',
            r'<a\s+[^>]*href="(https?://[^"]+)"[^>]*>',
            'checkLink', 'url',
        ),
        _pattern(
            'clickOnscreenText',
            r'\b(?:[Cc]lick|[Tt]ap)\b\s+<(?:strong|b)>((?:(?!</(?:strong|b)>).)+)</(?:strong|b)>',
            'click', 'text',
        ),
        _pattern(
            'findOnscreenText',
            r'<(?:strong|b)>((?:(?!</(?:strong|b)>).)+)</(?:strong|b)>',
            'find', 'text',
        ),
        _pattern(
            'goToUrl',
            r'\b(?:[Gg]o\s+to|[Oo]pen|[Nn]avigate\s+to|[Vv]isit)\b'
            r'\s+<a\s+[^>]*href="(https?://[^"]+)"[^>]*>',
            'goTo', 'url',
        ),
        _pattern(
            'screenshotImage',
            r'<img\s+[^>]*src="([^"]+)"[^>]*>',
            'screenshot', 'path',
        ),
    ),
    'asciidoc': (
        _pattern(
            'checkHyperlink',
            r'(https?://[^\s\[]+)\[[^\]]*\]',
            'checkLink', 'url',
        ),
        _pattern(
            'clickOnscreenText',
            r'\b(?:[Cc]lick|[Tt]ap)\b\s+\*([^*]+)\*',
            'click', 'text',
        ),
        _pattern(
            'findOnscreenText',
            r'\*([^*]+)\*',
            'find', 'text',
        ),
        _pattern(
            'screenshotImage',
            r'image::?([^\s\[]+)\[[^\]]*\]',
            'screenshot', 'path',
        ),
    ),
    'xml': (
        _pattern(
            'checkHyperlink',
            r'<xref\s+[^>]*href="(https?://[^"]+)"[^>]*>',
            'checkLink', 'url',
        ),
        _pattern(
            'clickUiControl',
            r'(?:[Cc]lick|[Tt]ap|[Ss]elect)\s+(?:the\s+)?<uicontrol>([^<]+)</uicontrol>',
            'click', 'text',
        ),
        _pattern(
            'findUiControl',
            r'<uicontrol>([^<]+)</uicontrol>',
            'find', 'text',
        ),
        _pattern(
            'screenshotImage',
            r'<image\s+[^>]*href="([^"]+)"[^>]*>',
            'screenshot', 'path',
        ),
    ),
})


def line_starts(content: str) -> list[int]:
    """Return the offset at which every line of a text starts."""
    return [0, *(index + 1 for index, char in enumerate(content) if char == '\n')]


def line_number(starts: list[int], offset: int) -> int:
    """Return the 1-based line containing an offset."""
    return bisect_right(starts, offset)


def deduplicate(matches: Iterable[ContentMatch]) -> list[ContentMatch]:
    """Drop matches contained in other matches.

    Matches must be sorted by start offset. A match contained in an
    already kept one is discarded; a new match removes every kept match
    it contains. Identical spans keep the earliest discovered match.

    Args:
        matches: Matches sorted ascending by start offset.

    Returns:
        Pairwise non-containing matches in ascending start order.
    """
    kept: list[ContentMatch] = []

    for match in matches:
        if any(existing.contains(match) for existing in kept):
            continue

        kept = [existing for existing in kept if not match.contains(existing)]
        kept.append(match)

    return kept


def find_content_matches(content: str,
                         patterns: Iterable[MarkupPattern]) -> list[ContentMatch]:
    """Find all recognizable spans of a document.

    Args:
        content: Raw document text.
        patterns: Patterns to run, in discovery order.

    Returns:
        Deduplicated matches sorted ascending by start offset.
    """
    starts = line_starts(content)
    found: list[ContentMatch] = []

    for pattern in patterns:
        for hit in pattern.regex.finditer(content):
            if hit.end() == hit.start():
                continue
            found.append(ContentMatch(
                pattern_name=pattern.name,
                actions=pattern.actions,
                capture_groups=pattern.capture_groups,
                match_text=hit.group(0),
                captures=hit.groups(),
                offset=hit.start(),
                end_offset=hit.end(),
                line_number=line_number(starts, hit.start()),
            ))

    found.sort(key=lambda match: match.offset)
    matches = deduplicate(found)

    logger.debug('Found %d content matches (%d before deduplication)', len(matches), len(found))

    return matches


class MarkupMatcher:
    """Per-invocation pattern table with matching entry point.

    The table starts from the built-in dialect patterns; extra patterns
    are appended after the built-ins of their dialect.
    """

    def __init__(self, extra: Mapping[Dialect, Iterable[MarkupPattern]] | None = None) -> None:
        """Initialize the matcher.

        Args:
            extra: Additional compiled patterns by dialect.
        """
        self.patterns: dict[Dialect, list[MarkupPattern]] = {
            dialect: list(patterns)
            for dialect, patterns in DEFAULT_PATTERNS.items()
        }

        for dialect, patterns in (extra or {}).items():
            self.add_patterns(dialect, patterns)

    def add_patterns(self, dialect: Dialect, patterns: Iterable[MarkupPattern]) -> None:
        """Append patterns to a dialect table."""
        self.patterns.setdefault(dialect, []).extend(patterns)

    def add_descriptors(self, dialect: Dialect,
                        descriptors: Iterable['PatternDescriptor']) -> None:
        """Compile custom pattern descriptors and append them.

        Raises:
            PatternError: If a descriptor does not compile.
        """
        self.add_patterns(dialect, [
            MarkupPattern.from_descriptor(descriptor)
            for descriptor in descriptors
        ])

    def patterns_for(self, dialect: Dialect) -> list[MarkupPattern]:
        """Return the patterns of a dialect, Markdown when unknown."""
        return self.patterns.get(dialect) or self.patterns['markdown']

    def match(self, content: str, dialect: Dialect) -> list[ContentMatch]:
        """Find content matches of a document in a dialect."""
        return find_content_matches(content, self.patterns_for(dialect))
