"""Declarative models for test specifications and wire messages.

Defines the immutable Pydantic models a host exchanges with the tool:
test declarations and specifications, custom pattern descriptors,
request and response messages, and the per-action step schemas used by
schema-backed validation.
"""

from .actions import ACTION_TYPES, BaseStep, build_step_union, build_steps
from .messages import (
    ErrorResponse,
    InjectConfig,
    InjectOptions,
    InjectRequest,
    InjectResponse,
    UnmatchedGroup,
    UnmatchedStep,
    ValidateOptions,
    ValidateRequest,
    ValidationIssue,
    ValidationReport,
    ValidationSummary,
)
from .patterns import PatternDescriptor
from .specs import TestDeclaration, TestSpec

__all__ = (
    'ACTION_TYPES',
    'BaseStep',
    'ErrorResponse',
    'InjectConfig',
    'InjectOptions',
    'InjectRequest',
    'InjectResponse',
    'PatternDescriptor',
    'TestDeclaration',
    'TestSpec',
    'UnmatchedGroup',
    'UnmatchedStep',
    'ValidateOptions',
    'ValidateRequest',
    'ValidationIssue',
    'ValidationReport',
    'ValidationSummary',
    'build_step_union',
    'build_steps',
)
