"""Tests for markup recognition."""

import re

import pytest

from inline_steps.core import ContentMatch, MarkupMatcher, MarkupPattern
from inline_steps.core.matcher import deduplicate, find_content_matches
from inline_steps.errors import PatternError
from inline_steps.schema import PatternDescriptor


def make_match(offset: int, end_offset: int, name: str = 'test') -> ContentMatch:
    """Build a bare content match spanning an offset range."""
    return ContentMatch(
        pattern_name=name,
        actions=('find',),
        capture_groups={},
        match_text='x' * (end_offset - offset),
        captures=(),
        offset=offset,
        end_offset=end_offset,
        line_number=1,
    )


@pytest.mark.parametrize('content, dialect, expected', (
    pytest.param(
        'Click **Submit** to continue.',
        'markdown',
        [('clickOnscreenText', 'click', 'Submit')],
        id='markdown click',
    ),
    pytest.param(
        'The **Status** panel shows progress.',
        'markdown',
        [('findOnscreenText', 'find', 'Status')],
        id='markdown find',
    ),
    pytest.param(
        'See [the docs](https://example.com/docs "Docs") for more.',
        'markdown',
        [('checkHyperlink', 'checkLink', 'https://example.com/docs')],
        id='markdown link',
    ),
    pytest.param(
        'Go to [the site](https://example.com).',
        'markdown',
        [('goToUrl', 'goTo', 'https://example.com')],
        id='markdown navigation',
    ),
    pytest.param(
        'Type "hello world" in the search box.',
        'markdown',
        [('typeText', 'type', 'hello world')],
        id='markdown typing',
    ),
    pytest.param(
        '![Logo](images/logo.png)',
        'markdown',
        [('screenshotImage', 'screenshot', 'images/logo.png')],
        id='markdown image',
    ),
    pytest.param(
        '<p>Click <strong>Save</strong> then visit <a href="https://example.com">home</a>.</p>',
        'html',
        [
            ('clickOnscreenText', 'click', 'Save'),
            ('goToUrl', 'goTo', 'https://example.com'),
        ],
        id='html',
    ),
    pytest.param(
        'Click *Save* and see https://example.com[Example].',
        'asciidoc',
        [
            ('clickOnscreenText', 'click', 'Save'),
            ('checkHyperlink', 'checkLink', 'https://example.com'),
        ],
        id='asciidoc',
    ),
    pytest.param(
        '<p>Click the <uicontrol>OK</uicontrol> button. '
        'See <xref href="https://example.com" format="html"/>.</p>',
        'xml',
        [
            ('clickUiControl', 'click', 'OK'),
            ('checkHyperlink', 'checkLink', 'https://example.com'),
        ],
        id='dita',
    ),
    pytest.param(
        'Nothing to recognize here.',
        'markdown',
        [],
        id='no matches',
    ),
))
def test_dialect_patterns(matcher: MarkupMatcher, content: str,
                          dialect: str, expected: list[tuple[str, str, str]]) -> None:
    """Recognize action spans in every dialect."""
    matches = matcher.match(content, dialect)  # type: ignore[arg-type]

    assert [(match.pattern_name, match.action, match.value) for match in matches] == expected


def test_match_location(matcher: MarkupMatcher) -> None:
    """Report offsets and 1-based line numbers of matches."""
    content = 'Intro\n\nClick **Save**.\n'

    match, = matcher.match(content, 'markdown')

    assert match.line_number == 3
    assert content[match.offset:match.end_offset] == match.match_text == 'Click **Save**'
    assert match.fields == {'text': 'Save'}


def test_unknown_dialect_uses_markdown(matcher: MarkupMatcher) -> None:
    """Fall back to Markdown patterns for unknown dialects."""
    assert matcher.patterns_for('latex') == matcher.patterns['markdown']  # type: ignore[arg-type]


def test_matches_are_sorted_and_non_containing(matcher: MarkupMatcher) -> None:
    """Return matches sorted by offset without containment."""
    content = (
        'Open [the console](https://console.example.com) and click **Create**.\n'
        'The **Name** field and [help](https://example.com/help) are shown.\n'
        '![Result](result.png)\n'
    )

    matches = matcher.match(content, 'markdown')
    offsets = [match.offset for match in matches]

    assert offsets == sorted(offsets)
    assert len(matches) == 5

    for left in matches:
        for right in matches:
            if left is not right:
                assert not left.contains(right)


@pytest.mark.parametrize('spans, expected', (
    pytest.param([(0, 20), (5, 10)], [(0, 20)], id='contained later'),
    pytest.param([(0, 5), (0, 10)], [(0, 10)], id='containing later'),
    pytest.param([(0, 5), (3, 8)], [(0, 5), (3, 8)], id='overlapping'),
    pytest.param([(0, 5), (6, 9)], [(0, 5), (6, 9)], id='disjoint'),
))
def test_deduplicate(spans: list[tuple[int, int]], expected: list[tuple[int, int]]) -> None:
    """Drop matches contained in other matches."""
    kept = deduplicate(make_match(*span) for span in spans)

    assert [(match.offset, match.end_offset) for match in kept] == expected


def test_deduplicate_identical_spans() -> None:
    """Keep the earliest discovered match of identical spans."""
    kept = deduplicate([make_match(0, 5, 'first'), make_match(0, 5, 'second')])

    assert [match.pattern_name for match in kept] == ['first']


def test_zero_width_matches_are_skipped() -> None:
    """Ignore empty matches of permissive expressions."""
    pattern = MarkupPattern(name='empty', regex=re.compile(r'x*'), actions=('find',))

    assert find_content_matches('abc', [pattern]) == []


def test_custom_pattern(matcher: MarkupMatcher) -> None:
    """Append custom patterns with JavaScript-style named groups."""
    matcher.add_descriptors('markdown', [
        PatternDescriptor.model_validate({
            'name': 'keyboardShortcode',
            'regex': r'\{\{kbd (?<key>\w+)\}\}',
            'action': 'type',
        }),
    ])

    match, = matcher.match('Press {{kbd Enter}} to submit.', 'markdown')

    assert match.pattern_name == 'keyboardShortcode'
    assert match.action == 'type'
    assert match.value == 'Enter'


def test_custom_pattern_without_groups() -> None:
    """Use the whole match when a pattern has no capture group."""
    pattern = MarkupPattern.from_descriptor(PatternDescriptor(regex='TODO', action='find'))

    match, = find_content_matches('A TODO item', [pattern])

    assert match.value == 'TODO'
    assert pattern.capture_groups == {'value': 0}


@pytest.mark.parametrize('data', (
    pytest.param({'regex': '([', 'action': 'find'}, id='invalid expression'),
    pytest.param({'regex': '(a)', 'action': 'find', 'valueGroup': 3}, id='missing group'),
))
def test_invalid_custom_pattern(data: dict) -> None:
    """Reject custom patterns that can not be used."""
    with pytest.raises(PatternError) as error:
        MarkupPattern.from_descriptor(PatternDescriptor.model_validate(data))

    assert error.value.exit_code == 2
