"""Assignment of structured steps to recognized content spans.

Steps are bound greedily in declared order: each step takes the best
scoring content match not yet used by an earlier step, provided the
score reaches a minimum. A step that reaches no match is reported as
unmatched together with a place where its marker can still be inserted.

The scoring constants are empirical. Changing any of them changes which
span a step binds to, so they are kept as module constants rather than
settings.
"""

import logging
from collections.abc import Sequence
from typing import Any

from pydantic import Field

from inline_steps.models import SchemaModel
from inline_steps.steps import Step, comparable_text, find_action

from .matcher import ContentMatch  # noqa: TC001

logger = logging.getLogger(__name__)

EXACT_SCORE = 1.0
CONTAINS_SCORE = 0.8
WORDS_WEIGHT = 0.5
BASELINE_SCORE = 0.3

ORDER_BONUS = 0.2
ORDER_PENALTY = 0.1

MIN_SCORE = 0.3


class BoundAssignment(SchemaModel):
    """Binding of one step to at most one content match."""

    step: dict[str, Any]
    step_index: int = Field(ge=0)
    match: ContentMatch | None = None
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    unmatched: bool = False
    suggested_offset: int | None = Field(default=None, ge=0)

    @property
    def action(self) -> str | None:
        """Action of the bound step."""
        return find_action(self.step)

    @property
    def anchor_offset(self) -> int:
        """Offset at which the step marker is anchored."""
        if self.match is not None:
            return self.match.end_offset

        return self.suggested_offset or 0

    @property
    def start_offset(self) -> int:
        """Offset at which the step's content begins."""
        if self.match is not None:
            return self.match.offset

        return self.suggested_offset or 0


def text_similarity(expected: str, found: str) -> float:
    """Score how well a step text corresponds to matched text.

    Args:
        expected: Text declared by the step.
        found: Text captured from the document.

    Returns:
        1.0 for equal texts, 0.8 when one contains the other, half the
        share of common words when some words are shared, else 0.3.
    """
    if expected == found:
        return EXACT_SCORE

    if expected in found or found in expected:
        return CONTAINS_SCORE

    expected_words = expected.lower().split()
    found_words = found.lower().split()

    common = [word for word in expected_words if word in found_words]
    if common:
        return WORDS_WEIGHT * len(common) / max(len(expected_words), len(found_words))

    return BASELINE_SCORE


def similarity(step: Step, match: ContentMatch) -> float:
    """Score a step against a content match, ignoring position.

    Args:
        step: Step mapping.
        match: Candidate content match.

    Returns:
        0 when the actions differ, otherwise a text similarity score;
        steps without comparable text score the 0.3 baseline.
    """
    if find_action(step) != match.action:
        return 0.0

    if (text := comparable_text(step)) is None:
        return BASELINE_SCORE

    return text_similarity(text, match.value)


def bind_steps(steps: Sequence[Step],
               matches: Sequence[ContentMatch]) -> list[BoundAssignment]:
    """Bind an ordered step sequence to content matches.

    Every step after the first gets a bonus for candidates starting after
    the previously bound match and a penalty otherwise. The highest score
    wins; the first candidate wins ties. A match is used at most once.

    Args:
        steps: Steps of one test, in declared order.
        matches: Content matches sorted by start offset.

    Returns:
        One assignment per step, in the same order.
    """
    assignments: list[BoundAssignment] = []
    used: set[int] = set()
    previous_end: int | None = None

    for index, step in enumerate(steps):
        best_index: int | None = None
        best_score = 0.0

        for position, match in enumerate(matches):
            if position in used:
                continue

            score = similarity(step, match)
            if index > 0:
                reference = -1 if previous_end is None else previous_end
                score += ORDER_BONUS if match.offset > reference else -ORDER_PENALTY

            if score > best_score:
                best_index, best_score = position, score

        if best_index is not None and best_score >= MIN_SCORE:
            used.add(best_index)
            match = matches[best_index]
            previous_end = match.end_offset
            assignments.append(BoundAssignment(
                step=dict(step),
                step_index=index,
                match=match,
                score=min(best_score, EXACT_SCORE),
            ))
            logger.debug('Step %d bound to %r (score %.2f)', index, match.match_text, best_score)
            continue

        assignments.append(BoundAssignment(
            step=dict(step),
            step_index=index,
            unmatched=True,
            suggested_offset=previous_end or 0,
        ))
        logger.debug('Step %d unmatched (best score %.2f)', index, best_score)

    return assignments
