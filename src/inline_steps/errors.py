"""Core exception hierarchy.

This module defines the error and warning types raised by the injection
pipeline. Every error carries the process exit code a host should report
for it, so request handlers can turn failures into error responses
without inspecting exception types one by one.
"""

from json import JSONDecodeError  # noqa: TC003
from os import linesep
from typing import TYPE_CHECKING, Any, ClassVar, TypedDict

from yaml import dump

from inline_steps.values import MAPPINGS, PRIMITIVES, SEQUENCES

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint
    from typing import Self

if TYPE_CHECKING:
    from pydantic import ValidationError

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_FILENAME = '<source>'
FORMAT_INDENT = 4

#: Exit code for malformed or missing input.
EXIT_INPUT = 2
#: Exit code for failures while processing a well-formed request.
EXIT_INTERNAL = 1


class ErrorContext(TypedDict, total=False):
    """Container describing where an error happened.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Path of the documentation source being processed.
    filename: str | None
    #: Zero-based line number in the source.
    line_num: int | None

    #: Identifier of the test being processed.
    test_id: str | None
    #: Zero-based position of the step within its test.
    step_num: int | None

    #: Underlying exception that triggered formatting.
    error: Exception | None
    #: Element (step, test, pattern) associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting injection errors.

    Produces a message followed by an optional location line and a YAML
    rendering of the element that caused the failure.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        location = cls.get_location_string(context, indent=FORMAT_INDENT)
        snippet = cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)
        if not location and not snippet:
            return message

        return f'{message}{linesep}{location}{snippet}'.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source and test location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            Location lines, or an empty string when nothing is known.
        """
        indent = cls._ensure_indent(indent)
        message = ''

        filename = context.get('filename')
        line_num = context.get('line_num')
        if filename or line_num is not None:
            message += f'{indent}in "{filename or FORMAT_FILENAME}"'
            if line_num is not None:
                message += f', line {line_num + 1}'
            message += linesep

        test_id = context.get('test_id')
        step_num = context.get('step_num')
        if test_id or step_num is not None:
            message += f'{indent}on test {test_id or "<unnamed>"}'
            if step_num is not None:
                message += f', step {step_num + 1}'
            message += linesep

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Render the failing element as an indented YAML snippet.

        Args:
            context: Error context containing the element.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet, or an empty string.
        """
        indent = cls._ensure_indent(indent)

        element = context.get('element')
        if element is None:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_yaml(element, indent)
        snippet += linesep

        return snippet

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Replace values that do not come from decoded JSON or YAML.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, PRIMITIVES):
            return value

        if isinstance(value, MAPPINGS):
            return {
                str(key): cls._filter_unsafe(item)
                for key, item in value.items()
            }

        if isinstance(value, SEQUENCES):
            return [cls._filter_unsafe(item) for item in value]

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to an indented YAML string."""
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            allow_unicode=True,
        )

        return linesep.join(
            f'{indent}{line}'
            for line in data.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input to a string of spaces."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class PluginWarning(UserWarning):
    """Warning emitted for non-fatal plugin issues.

    Used when a pattern plugin can not be loaded or declares conflicting
    patterns, and strict mode is disabled.
    """


class InlineStepsError(Exception, ErrorFormatter):
    """Base exception for all inline-steps errors.

    Attributes:
        exit_code: Process exit code reported for this failure.
    """

    exit_code: ClassVar[int] = EXIT_INTERNAL

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Optional location and element data.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)


class InputError(InlineStepsError):
    """Error raised for missing, malformed or unparsable input.

    Input errors are reported before any processing starts and never
    produce partial output.
    """

    exit_code: ClassVar[int] = EXIT_INPUT

    @classmethod
    def from_json_error(cls, error: JSONDecodeError) -> 'Self':
        """Create an input error from a JSON decoding failure.

        Args:
            error: Exception raised by the JSON decoder.

        Returns:
            InputError pointing at the offending line.
        """
        error_context = ErrorContext(line_num=error.lineno - 1, error=error)

        return cls(f'Invalid JSON input: {error.msg}', context=error_context)

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            message: str | None = None) -> 'Self':
        """Create an input error from a Pydantic validation failure.

        The first reported problem is used to build the message; missing
        fields are listed together.

        Args:
            error: ValidationError raised by Pydantic.
            message: Optional message prefix.

        Returns:
            InputError describing the validation failure.
        """
        details = error.errors(include_url=False, include_input=False)

        missing = [
            '.'.join(str(part) for part in item['loc'])
            for item in details
            if item['type'] == 'missing'
        ]
        if missing:
            text = f'Missing required fields ({", ".join(missing)})'
        elif details:
            item = details[0]
            location = '.'.join(str(part) for part in item['loc'])
            text = f'{location}: {item["msg"]}' if location else item['msg']
        else:
            text = 'Validation error'

        if message:
            text = f'{message}: {text}'

        return cls(text, context=ErrorContext(error=error))


class PatternError(InputError):
    """Error raised when a custom markup pattern can not be compiled."""


class StepError(InlineStepsError):
    """Error raised when a step does not identify exactly one action."""


class SerializationError(InlineStepsError):
    """Error raised when a step or test can not be rendered inline.

    Serialization failures abort the whole request: a document is never
    patched with a subset of its operations.
    """


class PluginError(InlineStepsError):
    """Error raised for fatal plugin failures in strict mode."""

    def __init__(self, message: str, *,
                 entrypoint: 'EntryPoint | None' = None) -> None:
        """Initialize a plugin error.

        Args:
            message: Human-readable error description.
            entrypoint: Optional plugin entry point associated with the error.
        """
        self.entrypoint = entrypoint

        super().__init__(message)
