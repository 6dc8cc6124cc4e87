"""Injection engine and request handling.

This module wires the pipeline stages together: it resolves the comment
format and markup dialect of a source, builds the pattern table from
built-in, plugin and request patterns, binds and plans every test of a
specification, and either patches the source or renders a preview.

`InlineInjector.handle` is the single entry point for hosts: it accepts
one JSON request and always returns one JSON-compatible response,
never raising.
"""

import logging
from collections.abc import Mapping
from json import JSONDecodeError, loads
from typing import Any

from pydantic import ValidationError

from inline_steps.errors import EXIT_INTERNAL, InlineStepsError, InputError
from inline_steps.formats import get_dialect, get_extension, resolve_comment_format
from inline_steps.schema import (
    ErrorResponse,
    InjectConfig,
    InjectRequest,
    InjectResponse,
    TestSpec,
    UnmatchedGroup,
    UnmatchedStep,
    ValidateRequest,
    ValidationReport,
)
from inline_steps.settings import Settings
from inline_steps.validation import format_report, get_validator

from .loader import PatternLoaderMixin
from .matcher import MarkupMatcher
from .patcher import batch_update, render_preview
from .planner import TestPlan, plan_spec
from .serializer import Serializer, resolve_syntax

logger = logging.getLogger(__name__)


def suggested_line(content: str, offset: int) -> int:
    """Return the 1-based line number of an offset."""
    return content[:offset].count('\n') + 1


def unmatched_groups(content: str, plans: list[TestPlan]) -> list[UnmatchedGroup]:
    """Group unmatched steps by test for reporting.

    Args:
        content: Original document text.
        plans: Planned tests.

    Returns:
        One group per test with at least one unmatched step.
    """
    return [
        UnmatchedGroup(
            test_id=plan.test_id,
            steps=[
                UnmatchedStep(
                    step_index=item.step_index,
                    action=item.action,
                    suggested_line=suggested_line(content, item.anchor_offset),
                )
                for item in plan.unmatched
            ],
        )
        for plan in plans
        if plan.unmatched
    ]


class InlineInjector(PatternLoaderMixin):
    """Binds test specifications to documentation sources.

    The injector is stateful only in its pattern table: plugin patterns
    are loaded once at construction time, request patterns are added
    per call and never leak into later calls.
    """

    def __init__(self, settings: Settings | None = None,
                 strict: bool | None = None,
                 load_plugins: bool = True) -> None:
        """Initialize the injector.

        Args:
            settings: Process-wide defaults; read from the environment
                when omitted.
            strict: Whether plugin loading issues raise instead of
                emitting warnings. Falls back to the settings.
            load_plugins: Whether to load entry point plugins.

        Raises:
            PluginError: If a plugin can not be loaded on strict mode.
        """
        self.settings = settings or Settings()
        self.strict_mode = self.settings.strict if strict is None else strict

        self.clear_plugins()
        if load_plugins:
            self.load_plugins()

    def build_matcher(self, config: InjectConfig | None = None) -> MarkupMatcher:
        """Build the pattern table of one request.

        Args:
            config: Request configuration with custom patterns.

        Returns:
            Matcher with built-in, plugin and request patterns.

        Raises:
            PatternError: If a request pattern does not compile.
        """
        matcher = MarkupMatcher(self.plugin_patterns)

        if config is not None:
            for dialect, descriptors in config.custom_patterns.items():
                matcher.add_descriptors(dialect, descriptors)

        return matcher

    def inject(self, request: InjectRequest | Mapping[str, Any]) -> InjectResponse:
        """Run the injection pipeline for one request.

        Args:
            request: Injection request, or its decoded JSON form.

        Returns:
            Patched document or preview, with unmatched steps.

        Raises:
            InputError: If the request or its specification is malformed.
            SerializationError: If a step can not be rendered.
        """
        if not isinstance(request, InjectRequest):
            try:
                request = InjectRequest.model_validate(request)
            except ValidationError as base:
                raise InputError.from_pydantic_error(
                    base,
                    message='Invalid inject request',
                ) from base

        spec = TestSpec.coerce(request.spec)
        content = request.source_content

        extension = get_extension(request.source_path)
        comment_format = resolve_comment_format(request.options.comment_format, extension)
        syntax = resolve_syntax(request.options.syntax, content, self.settings.syntax)
        dialect = get_dialect(extension)

        matcher = self.build_matcher(request.config)
        matches = matcher.match(content, dialect)

        serializer = Serializer(comment_format, syntax)
        plans = plan_spec(spec, matches, serializer)
        operations = [operation for plan in plans for operation in plan.operations]

        if request.options.apply:
            result = batch_update(content, operations)
        else:
            result = render_preview(
                content, operations, request.source_path,
                context_lines=self.settings.context_lines,
            )

        step_count = sum(1 for operation in operations if operation.kind == 'step')

        logger.info(
            'Injected %d steps into %s (%s, %s syntax, %d matches)',
            step_count, request.source_path, comment_format.name, syntax, len(matches),
        )

        return InjectResponse(
            result=result,
            applied=request.options.apply,
            step_count=step_count,
            unmatched_steps=unmatched_groups(content, plans),
        )

    def validate(self, request: ValidateRequest | Mapping[str, Any]) -> ValidationReport:
        """Validate the specification of one request.

        Args:
            request: Validation request, or its decoded JSON form.

        Returns:
            Validation report, formatted for humans when requested.

        Raises:
            InputError: If the request is malformed.
        """
        if not isinstance(request, ValidateRequest):
            try:
                request = ValidateRequest.model_validate(request)
            except ValidationError as base:
                raise InputError.from_pydantic_error(
                    base,
                    message='Invalid validate request',
                ) from base

        validator = get_validator(request.options.mode or self.settings.validator)
        report = validator.validate_spec(request.spec)

        if request.options.format == 'human':
            report = report.model_copy(update={'formatted': format_report(report)})

        return report

    def dispatch(self, payload: str | bytes | Mapping[str, Any]) -> InjectResponse | ValidationReport:
        """Decode a request and route it by its `action` field.

        Requests without an action are injection requests.

        Raises:
            InlineStepsError: If the request fails.
        """
        if isinstance(payload, str | bytes):
            if not payload.strip():
                raise InputError('No input provided')
            try:
                payload = loads(payload)
            except JSONDecodeError as base:
                raise InputError.from_json_error(base) from base

        if not isinstance(payload, Mapping):
            raise InputError('Request must be a JSON object')

        action = payload.get('action', 'inject')
        if action == 'inject':
            return self.inject(payload)

        if action == 'validate':
            return self.validate(payload)

        raise InputError(f'Unknown request action: {action!r}')

    def handle(self, payload: str | bytes | Mapping[str, Any]) -> dict[str, Any]:
        """Process one request and return its response.

        This method never raises: failures become error responses with
        exit code 2 for malformed input and 1 for anything else. A
        failed request never returns a partially patched document.

        Args:
            payload: Request as JSON text or a decoded mapping.

        Returns:
            JSON-compatible response using wire names.
        """
        try:
            return self.dispatch(payload).dump()

        except InlineStepsError as error:
            logger.info('Request failed: %s', error.message)
            return ErrorResponse(error=error.message, exit_code=error.exit_code).dump()

        except Exception as error:
            logger.exception('Unexpected error while handling a request')
            return ErrorResponse(
                error=f'Unexpected error: {error}',
                exit_code=EXIT_INTERNAL,
            ).dump()

