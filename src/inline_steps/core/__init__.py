"""Injection pipeline.

The pipeline turns a test specification and a documentation source into
inline step statements:

- the matcher recognizes markup spans that correspond to test actions;
- the binder assigns every step to at most one recognized span;
- the planner turns assignments into insert operations;
- the serializer renders statements in the comment format of the source;
- the patcher applies operations or renders a preview.

The primary public entry point is `InlineInjector`, which runs all of
these stages for one request.
"""

from .binder import BoundAssignment, bind_steps
from .injector import InlineInjector
from .matcher import ContentMatch, MarkupMatcher, MarkupPattern
from .patcher import batch_update, render_preview
from .planner import EditOperation, TestPlan, plan_spec, plan_test
from .serializer import Serializer

__all__ = (
    'BoundAssignment',
    'ContentMatch',
    'EditOperation',
    'InlineInjector',
    'MarkupMatcher',
    'MarkupPattern',
    'Serializer',
    'TestPlan',
    'batch_update',
    'bind_steps',
    'plan_spec',
    'plan_test',
    'render_preview',
)
