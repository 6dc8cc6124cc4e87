"""Validation of test specifications.

Two validator variants share one interface:

- `StructuralValidator` checks that every step names a known action and
  that the action value has the expected shape;
- `SchemaValidator` validates every step against the generated step
  models of `inline_steps.schema.actions`.

Both walk a specification the same way and produce a `ValidationReport`.
A report describes problems of the specification; malformed requests
are reported as `InputError` instead.
"""

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, ClassVar, Literal

from pydantic import PydanticUserError, ValidationError

from inline_steps.errors import StepError
from inline_steps.names import KNOWN_ACTIONS
from inline_steps.schema import ValidationIssue, ValidationReport, ValidationSummary, build_steps
from inline_steps.steps import action_key
from inline_steps.values import is_mapping, is_sequence

logger = logging.getLogger(__name__)

#: Selectable validator variants.
type ValidatorMode = Literal['structural', 'schema', 'auto']

#: Keys of legacy step formats that never identify an action.
LEGACY_KEYS = frozenset({
    'contexts',
    'id',
})


def _is_text(value: Any) -> bool:  # noqa: ANN401
    return isinstance(value, str)


def _is_number(value: Any) -> bool:  # noqa: ANN401
    return isinstance(value, int | float) and not isinstance(value, bool)


def _has(field: str) -> Callable[[Any], bool]:
    """Build a check for an object with a non-empty field."""
    return lambda value: is_mapping(value) and bool(value.get(field))


def _any_of(*checks: Callable[[Any], bool]) -> Callable[[Any], bool]:
    return lambda value: any(check(value) for check in checks)


#: Value shape check and message of each action checked structurally.
STRUCTURAL_RULES: MappingProxyType[str, tuple[Callable[[Any], bool], str]] = MappingProxyType({
    'checkLink': (
        _any_of(_is_text, _has('url')),
        'checkLink requires a URL string or object with url property',
    ),
    'click': (
        _any_of(_is_text, is_mapping),
        'click requires a string (text) or object (with selector)',
    ),
    'dragAndDrop': (
        lambda value: _has('source')(value) and _has('target')(value),
        'dragAndDrop requires an object with source and target properties',
    ),
    'find': (
        _any_of(_is_text, is_mapping),
        'find requires a string (text) or object (with selector)',
    ),
    'goTo': (
        _any_of(_is_text, _has('url')),
        'goTo requires a URL string or object with url property',
    ),
    'httpRequest': (
        _has('url'),
        'httpRequest requires an object with url property',
    ),
    'loadCookie': (
        _is_text,
        'loadCookie requires a file path string',
    ),
    'loadVariables': (
        _is_text,
        'loadVariables requires a file path string',
    ),
    'record': (
        _any_of(_is_text, is_mapping),
        'record requires a string (path) or object',
    ),
    'runCode': (
        _has('code'),
        'runCode requires an object with code property',
    ),
    'runShell': (
        _has('command'),
        'runShell requires an object with command property',
    ),
    'saveCookie': (
        _is_text,
        'saveCookie requires a file path string',
    ),
    'screenshot': (
        _any_of(_is_text, is_mapping),
        'screenshot requires a string (path) or object (with path)',
    ),
    'type': (
        _has('keys'),
        'type requires an object with keys property',
    ),
    'wait': (
        _any_of(_is_number, is_mapping),
        'wait requires a number (ms) or object (with selector/state)',
    ),
})


class Validator:
    """Base class of specification validators.

    Subclasses implement `check_step`; walking the specification and
    collecting counters is shared.
    """

    mode: ClassVar[str] = 'structural'
    schema_validation: ClassVar[bool] = False

    def check_step(self, action: str, step: Mapping[str, Any]) -> list[str]:
        """Check a step whose action is known.

        Args:
            action: Action key of the step.
            step: Step mapping.

        Returns:
            Error messages, empty when the step is valid.
        """
        raise NotImplementedError

    def validate_step(self, step: Any) -> tuple[str | None, list[str]]:  # noqa: ANN401
        """Validate a single step.

        Args:
            step: Decoded step.

        Returns:
            The detected action, if any, and the error messages.
        """
        if not is_mapping(step):
            return None, ['Step must be an object']

        data = {key: value for key, value in step.items() if key not in LEGACY_KEYS}

        try:
            action = action_key(data)
        except StepError as error:
            return None, [error.message]

        if action not in KNOWN_ACTIONS:
            return action, [f'Unknown action: "{action}". Known actions: {", ".join(KNOWN_ACTIONS)}']

        return action, self.check_step(action, data)

    def validate_spec(self, spec: Any) -> ValidationReport:  # noqa: ANN401
        """Validate a test specification.

        A bare test declaration (an object with `steps` but no `tests`)
        is validated as a single-test specification.

        Args:
            spec: Decoded specification.

        Returns:
            Validation report.
        """
        if not is_mapping(spec):
            return self.report(['Test specification must be an object'])

        if 'tests' not in spec and 'steps' in spec:
            spec = {'tests': [spec]}

        tests = spec.get('tests')
        if not is_sequence(tests):
            return self.report(['Test specification must have a "tests" array'])

        if not tests:
            return self.report(['Test specification must have at least one test'])

        errors: list[ValidationIssue] = []
        counters = {'tests': 0, 'steps': 0, 'passed': 0, 'failed': 0}

        for test_index, test in enumerate(tests):
            counters['tests'] += 1

            if not is_mapping(test):
                errors.append(ValidationIssue(
                    message=f'Test {test_index} must be an object',
                    test_index=test_index,
                ))
                continue

            test_id = test.get('testId')
            test_id = None if test_id is None else str(test_id)
            label = f'Test {test_index} ({test_id or "unnamed"})'

            steps = test.get('steps')
            if not is_sequence(steps):
                errors.append(ValidationIssue(
                    message=f'{label} must have a "steps" array',
                    test_index=test_index,
                    test_id=test_id,
                ))
                continue

            if not steps:
                errors.append(ValidationIssue(
                    message=f'{label} must have at least one step',
                    test_index=test_index,
                    test_id=test_id,
                ))
                continue

            for step_index, step in enumerate(steps):
                counters['steps'] += 1

                action, messages = self.validate_step(step)
                if not messages:
                    counters['passed'] += 1
                    continue

                counters['failed'] += 1
                step_id = step.get('stepId') if is_mapping(step) else None
                errors.extend(
                    ValidationIssue(
                        message=message,
                        test_index=test_index,
                        test_id=test_id,
                        step_index=step_index,
                        step_id=None if step_id is None else str(step_id),
                        action=action,
                    )
                    for message in messages
                )

        logger.debug('Validated %d steps in %s mode, %d failed',
                     counters['steps'], self.mode, counters['failed'])

        return ValidationReport(
            valid=not errors,
            errors=errors,
            schema_validation=self.schema_validation,
            summary=ValidationSummary(
                tests_validated=counters['tests'],
                steps_validated=counters['steps'],
                steps_passed=counters['passed'],
                steps_failed=counters['failed'],
            ),
        )

    def report(self, messages: list[str]) -> ValidationReport:
        """Build a failed report for a specification that can not be walked."""
        return ValidationReport(
            valid=False,
            errors=[ValidationIssue(message=message) for message in messages],
            schema_validation=self.schema_validation,
        )


class StructuralValidator(Validator):
    """Validator checking the shape of action values."""

    mode: ClassVar[str] = 'structural'
    schema_validation: ClassVar[bool] = False

    def check_step(self, action: str, step: Mapping[str, Any]) -> list[str]:
        """Check the action value against its structural rule."""
        if (rule := STRUCTURAL_RULES.get(action)) is None:
            return []

        check, message = rule
        if check(step[action]):
            return []

        return [message]


class SchemaValidator(Validator):
    """Validator backed by the generated step models."""

    mode: ClassVar[str] = 'schema'
    schema_validation: ClassVar[bool] = True

    def check_step(self, action: str, step: Mapping[str, Any]) -> list[str]:
        """Validate the step against the model of its action."""
        model = build_steps()[action]

        try:
            model.model_validate(step)

        except ValidationError as error:
            return [
                f'{".".join(str(part) for part in item["loc"])}: {item["msg"]}'
                if item['loc'] else item['msg']
                for item in error.errors(include_url=False, include_input=False)
            ]

        return []


def get_validator(mode: ValidatorMode | None = None) -> Validator:
    """Select a validator variant.

    Args:
        mode: `structural` (default), `schema`, or `auto` which uses
            schema validation when the step models can be built.

    Returns:
        Validator instance.
    """
    if mode == 'schema':
        return SchemaValidator()

    if mode == 'auto':
        try:
            build_steps()
        except PydanticUserError as error:
            logger.warning('Step models unavailable, using structural validation: %s', error)
            return StructuralValidator()
        return SchemaValidator()

    return StructuralValidator()


def format_report(report: ValidationReport) -> str:
    """Render a validation report for humans.

    Args:
        report: Validation report.

    Returns:
        Multi-line text with a verdict, counters and located errors.
    """
    summary = report.summary
    lines = [
        '✓ Validation PASSED' if report.valid else '✗ Validation FAILED',
        f'  Mode: {"schema" if report.schema_validation else "structural"} validation',
        f'  Tests validated: {summary.tests_validated}',
        f'  Steps validated: {summary.steps_validated}',
        f'  Steps passed: {summary.steps_passed}',
        f'  Steps failed: {summary.steps_failed}',
    ]

    if report.errors:
        lines.extend(('', 'Errors:'))
        for number, error in enumerate(report.errors, start=1):
            lines.extend(('', f'  {number}. {error.message}'))
            if error.test_id:
                lines.append(f'     Test: {error.test_id}')
            if error.step_id:
                lines.append(f'     Step: {error.step_id}')
            if error.action:
                lines.append(f'     Action: {error.action}')

    return '\n'.join(lines)
