"""Test declaration and test specification models.

A test specification groups test declarations; a test declaration is an
ordered list of steps plus the metadata written into the test-start
marker. Specifications come from hosts and editors that may add keys of
their own, so unknown keys are ignored rather than rejected.
"""

from typing import Any, Self

from pydantic import Field, ValidationError, field_validator

from inline_steps.errors import InputError
from inline_steps.models import MessageModel
from inline_steps.values import is_mapping


class TestDeclaration(MessageModel):
    """A single test: identification, options and ordered steps.

    The order of `steps` is the execution order. It is preserved through
    binding, planning and serialization.
    """

    __test__ = False

    test_id: str | None = Field(
        default=None,
        title='Test identifier',
    )

    description: str | None = Field(
        default=None,
        title='Test description',
    )

    detect_steps: bool | None = Field(
        default=None,
        title='Detect steps flag',
        description='Whether the test runner should also detect steps from markup.',
    )

    run_on: list[Any] | None = Field(
        default=None,
        title='Execution targets',
    )

    steps: list[dict[str, Any]] = Field(
        default_factory=list,
        title='Steps',
        description='Ordered step objects, each with exactly one action key.',
    )

    @field_validator('test_id', mode='before')
    @classmethod
    def coerce_test_id(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept numeric test identifiers."""
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)

        return value

    @field_validator('steps', mode='before')
    @classmethod
    def coerce_steps(cls, value: Any) -> Any:  # noqa: ANN401
        """Read null steps as an empty list."""
        if value is None:
            return []

        return value

    @property
    def has_marker(self) -> bool:
        """Whether the test is wrapped in start and end markers."""
        return bool(self.test_id or self.description)

    def declaration(self) -> dict[str, Any]:
        """Return the fields serialized into the test-start marker.

        Returns:
            Mapping with `testId`, `description`, `detectSteps` and
            `runOn`, each present only when set.
        """
        values: dict[str, Any] = {}

        if self.test_id:
            values['testId'] = self.test_id
        if self.description:
            values['description'] = self.description
        if self.detect_steps is not None:
            values['detectSteps'] = self.detect_steps
        if self.run_on:
            values['runOn'] = self.run_on

        return values


class TestSpec(MessageModel):
    """A collection of test declarations."""

    __test__ = False

    tests: list[TestDeclaration] = Field(
        default_factory=list,
        title='Tests',
    )

    @field_validator('tests', mode='before')
    @classmethod
    def coerce_tests(cls, value: Any) -> Any:  # noqa: ANN401
        """Read null tests as an empty list."""
        if value is None:
            return []

        return value

    @classmethod
    def coerce(cls, data: Any) -> Self:  # noqa: ANN401
        """Build a specification from a spec or a bare test declaration.

        Args:
            data: Decoded JSON/YAML object, either `{tests: [...]}` or a
                single test declaration.

        Returns:
            Validated specification.

        Raises:
            InputError: If the data is not an object or does not validate.
        """
        if isinstance(data, cls):
            return data

        if isinstance(data, TestDeclaration):
            return cls(tests=[data])

        if not is_mapping(data):
            raise InputError('Test specification must be an object')

        try:
            if 'tests' in data:
                return cls.model_validate(data)
            return cls(tests=[TestDeclaration.model_validate(data)])

        except ValidationError as base:
            raise InputError.from_pydantic_error(
                base,
                message='Invalid test specification',
            ) from base
