"""Request and response messages exchanged with a host process.

A host sends one request and receives one response; both are JSON
objects with camel-case field names. Error responses share the
`success` flag with regular responses and carry the exit code the host
should terminate with.
"""

from typing import Any, Literal

from pydantic import Field, field_validator

from inline_steps.errors import EXIT_INPUT
from inline_steps.models import MessageModel
from inline_steps.names import DIALECTS, Dialect, FormatName, SyntaxOption

from .patterns import PatternDescriptor  # noqa: TC001


class InjectOptions(MessageModel):
    """Per-request injection options."""

    apply: bool = Field(
        default=False,
        title='Apply flag',
        description='Return the patched document instead of a preview.',
    )

    syntax: SyntaxOption | None = Field(
        default=None,
        title='Payload syntax',
        description=(
            'Payload syntax of inserted statements. `auto` follows the '
            'statements already present in the document. Falls back to '
            'the configured default when omitted.'
        ),
    )

    comment_format: FormatName | None = Field(
        default=None,
        title='Comment format',
        description='Comment format overriding the one implied by the file extension.',
    )


class InjectConfig(MessageModel):
    """Per-request matcher configuration."""

    custom_patterns: dict[Dialect, list[PatternDescriptor]] = Field(
        default_factory=dict,
        title='Custom patterns',
        description='Additional recognition patterns by markup dialect.',
    )

    @field_validator('custom_patterns', mode='before')
    @classmethod
    def known_dialects(cls, value: Any) -> Any:  # noqa: ANN401
        """Drop patterns of dialects no source format maps to."""
        if value is None:
            return {}

        if isinstance(value, dict):
            return {key: item for key, item in value.items() if key in DIALECTS}

        return value


class InjectRequest(MessageModel):
    """Request to bind a test specification to a documentation source."""

    action: Literal['inject'] = 'inject'

    spec: dict[str, Any] = Field(
        title='Test specification',
        description='A test declaration, or a specification with a `tests` array.',
    )

    source_content: str = Field(
        min_length=1,
        title='Source content',
        description='Full text of the documentation source.',
    )

    source_path: str = Field(
        min_length=1,
        title='Source path',
        description='Path of the source, used to detect its format.',
    )

    options: InjectOptions = Field(default_factory=InjectOptions)

    config: InjectConfig = Field(default_factory=InjectConfig)

    @field_validator('options', 'config', mode='before')
    @classmethod
    def empty_sections(cls, value: Any) -> Any:  # noqa: ANN401
        """Read null option sections as empty ones."""
        if value is None:
            return {}

        return value


class ValidateOptions(MessageModel):
    """Per-request validation options."""

    format: Literal['json', 'human'] = Field(
        default='json',
        title='Report format',
        description='`human` adds a formatted text report to the response.',
    )

    mode: Literal['structural', 'schema', 'auto'] | None = Field(
        default=None,
        title='Validation mode',
    )


class ValidateRequest(MessageModel):
    """Request to validate a test specification."""

    action: Literal['validate'] = 'validate'

    spec: dict[str, Any] = Field(
        title='Test specification',
    )

    options: ValidateOptions = Field(default_factory=ValidateOptions)

    @field_validator('options', mode='before')
    @classmethod
    def empty_options(cls, value: Any) -> Any:  # noqa: ANN401
        """Read null options as empty ones."""
        if value is None:
            return {}

        return value


class UnmatchedStep(MessageModel):
    """A step that could not be bound to any content span."""

    step_index: int
    action: str | None
    suggested_line: int


class UnmatchedGroup(MessageModel):
    """Unmatched steps of one test."""

    test_id: str | None
    steps: list[UnmatchedStep]


class InjectResponse(MessageModel):
    """Successful injection result.

    `result` holds the patched document when `applied` is set, otherwise
    a diff-style preview of the planned insertions.
    """

    success: Literal[True] = True
    result: str
    applied: bool
    step_count: int
    unmatched_steps: list[UnmatchedGroup] = Field(default_factory=list)
    exit_code: int = 0


class ErrorResponse(MessageModel):
    """Failed request."""

    success: Literal[False] = False
    error: str
    exit_code: int = EXIT_INPUT


class ValidationIssue(MessageModel):
    """A single validation problem, located as precisely as known."""

    message: str
    test_index: int | None = None
    test_id: str | None = None
    step_index: int | None = None
    step_id: str | None = None
    action: str | None = None


class ValidationSummary(MessageModel):
    """Counters of a validation run."""

    tests_validated: int = 0
    steps_validated: int = 0
    steps_passed: int = 0
    steps_failed: int = 0


class ValidationReport(MessageModel):
    """Outcome of validating a test specification.

    `formatted` holds a human-readable rendering when the request asked
    for one.
    """

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    schema_validation: bool = False
    summary: ValidationSummary = Field(default_factory=ValidationSummary)
    formatted: str | None = None

    @property
    def exit_code(self) -> int:
        """Exit code a host should report for this outcome."""
        return 0 if self.valid else 1

    def dump(self) -> dict:
        """Serialize the report using wire names, with its exit code."""
        return {**super().dump(), 'exitCode': self.exit_code}
