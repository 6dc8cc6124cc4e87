"""Planning of document edits for bound tests.

The planner turns the assignments of one test into insert operations:
an optional test-start marker, one marker per step, and an optional
test-end marker. Operations are anchored to offsets of the original
document and carry whether they go before or after the anchored line.
"""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from pydantic import Field

from inline_steps.errors import ErrorContext, SerializationError
from inline_steps.models import SchemaModel
from inline_steps.names import OperationKind  # noqa: TC001

from .binder import BoundAssignment, bind_steps

if TYPE_CHECKING:
    from inline_steps.schema import TestDeclaration, TestSpec

    from .matcher import ContentMatch
    from .serializer import Serializer

logger = logging.getLogger(__name__)


class EditOperation(SchemaModel):
    """A single line insertion into a document.

    Attributes:
        offset: Character offset selecting the anchored line.
        content: Text to insert (one or more lines, no trailing newline).
        insert_after: Insert after the anchored line instead of before it.
        kind: Classification used for diagnostics.
        unmatched: The operation belongs to an unmatched step.
        matched_to: Matched text the step was bound to, if any.
    """

    offset: int = Field(ge=0)
    content: str
    insert_after: bool = False
    kind: OperationKind = 'step'
    unmatched: bool = False
    matched_to: str | None = None


class TestPlan(SchemaModel):
    """Assignments and operations planned for one test."""

    __test__ = False

    test_id: str | None = None
    assignments: tuple[BoundAssignment, ...] = ()
    operations: tuple[EditOperation, ...] = ()

    @property
    def unmatched(self) -> list[BoundAssignment]:
        """Assignments of steps that were not bound."""
        return [item for item in self.assignments if item.unmatched]


def plan_test(test: 'TestDeclaration', assignments: Sequence[BoundAssignment],
              serializer: 'Serializer') -> list[EditOperation]:
    """Plan the operations of one test.

    Args:
        test: Test declaration providing marker fields.
        assignments: Step assignments in declared order.
        serializer: Renderer for statements.

    Returns:
        Operations in planning order: test start, steps, test end.

    Raises:
        SerializationError: If a step can not be rendered.
    """
    operations: list[EditOperation] = []
    if not assignments:
        return operations

    if test.has_marker:
        operations.append(EditOperation(
            offset=assignments[0].start_offset,
            content=serializer.test(test.declaration()),
            insert_after=False,
            kind='testStart',
        ))

    for assignment in assignments:
        try:
            content = serializer.step(assignment.step)
        except SerializationError as base:
            raise SerializationError(base.message, context=ErrorContext(
                test_id=test.test_id,
                step_num=assignment.step_index,
                element=assignment.step,
            )) from base

        operations.append(EditOperation(
            offset=assignment.anchor_offset,
            content=content,
            insert_after=not assignment.unmatched,
            kind='step',
            unmatched=assignment.unmatched,
            matched_to=assignment.match.match_text if assignment.match else None,
        ))

    if test.has_marker:
        operations.append(EditOperation(
            offset=assignments[-1].anchor_offset + 1,
            content=serializer.test_end(),
            insert_after=True,
            kind='testEnd',
        ))

    return operations


def plan_spec(spec: 'TestSpec', matches: Sequence['ContentMatch'],
              serializer: 'Serializer') -> list[TestPlan]:
    """Bind and plan every test of a specification.

    Tests are processed independently against the same match list;
    tests without steps are skipped.

    Args:
        spec: Test specification.
        matches: Content matches of the document.
        serializer: Renderer for statements.

    Returns:
        One plan per test with steps, in specification order.
    """
    plans: list[TestPlan] = []

    for test in spec.tests:
        if not test.steps:
            continue

        assignments = bind_steps(test.steps, matches)
        operations = plan_test(test, assignments, serializer)

        plans.append(TestPlan(
            test_id=test.test_id,
            assignments=tuple(assignments),
            operations=tuple(operations),
        ))

        logger.debug('Planned %d operations for test %r', len(operations), test.test_id)

    return plans
