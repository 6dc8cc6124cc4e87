"""Schema models for step actions.

Each known action is described by the type of its value. Step models
are generated from these descriptions: every generated model shares the
step metadata fields and adds exactly one action field, so a step with
an unknown or missing action can never validate.

Option objects accept fields beyond the ones declared here, since test
runners grow options faster than this catalogue does; only the fields
an action can not work without are required.
"""

from functools import cache
from types import MappingProxyType
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, create_model

from inline_steps.models import SchemaModel


class ActionOptions(BaseModel):
    """Base model for object-valued actions."""

    model_config = ConfigDict(
        frozen=True,
        extra='allow',
    )


class UrlOptions(ActionOptions):
    """Options of actions addressing a URL."""

    url: str = Field(min_length=1)
    origin: str | None = None


class ElementOptions(ActionOptions):
    """Options of actions addressing an on-screen element."""

    selector: str | None = None
    element_text: str | None = Field(default=None, alias='elementText')
    timeout: int | None = Field(default=None, ge=0)


class TypeOptions(ActionOptions):
    """Options of the `type` action."""

    keys: str | list[str]
    selector: str | None = None


class HttpRequestOptions(UrlOptions):
    """Options of the `httpRequest` action."""

    method: str | None = None
    status_codes: list[int] | None = Field(default=None, alias='statusCodes')


class RunShellOptions(ActionOptions):
    """Options of the `runShell` action."""

    command: str = Field(min_length=1)
    args: list[str] | None = None


class RunCodeOptions(ActionOptions):
    """Options of the `runCode` action."""

    language: str = Field(min_length=1)
    code: str = Field(min_length=1)


class PathOptions(ActionOptions):
    """Options of actions writing a file."""

    path: str | None = None
    directory: str | None = None


class DragAndDropOptions(ActionOptions):
    """Options of the `dragAndDrop` action."""

    source: str | dict[str, Any]
    target: str | dict[str, Any]


#: Value type of each known action.
ACTION_TYPES: MappingProxyType[str, Any] = MappingProxyType({
    'checkLink': str | UrlOptions,
    'click': str | ElementOptions,
    'dragAndDrop': DragAndDropOptions,
    'find': str | ElementOptions,
    'goTo': str | UrlOptions,
    'httpRequest': HttpRequestOptions,
    'loadCookie': str,
    'loadVariables': str,
    'record': str | bool | PathOptions,
    'runCode': RunCodeOptions,
    'runShell': RunShellOptions,
    'saveCookie': str,
    'screenshot': str | bool | PathOptions,
    'stopRecord': bool | dict[str, Any],
    'type': str | list[str] | TypeOptions,
    'wait': int | float | str | bool | dict[str, Any],
})


class BaseStep(SchemaModel):
    """Metadata shared by every step, regardless of its action."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
        populate_by_name=True,
    )

    step_id: str | None = Field(
        default=None,
        alias='stepId',
        title='Step identifier',
    )

    description: str | None = Field(
        default=None,
        title='Step description',
    )

    unsafe: bool | None = Field(
        default=None,
        title='Unsafe flag',
        description='The step must not run without explicit approval.',
    )

    outputs: dict[str, Any] | None = Field(
        default=None,
        title='Declared outputs',
    )

    variables: dict[str, Any] | None = Field(
        default=None,
        title='Declared variables',
    )

    breakpoint: bool | None = Field(
        default=None,
        title='Debug stop flag',
    )

    schema_tag: str | None = Field(
        default=None,
        alias='$schema',
        title='Schema tag',
    )

    source_location: Any = Field(
        default=None,
        alias='sourceLocation',
        exclude=True,
        title='Resolved source location',
        json_schema_extra={'x-internal': True},
    )


def build_step(action: str, value_type: Any) -> type[BaseStep]:  # noqa: ANN401
    """Build the step model of one action.

    Args:
        action: Action key.
        value_type: Type of the action value.

    Returns:
        Generated subclass of `BaseStep` requiring the action field.
    """
    return create_model(  # type: ignore[call-overload,no-any-return]
        f'{action}_Step',
        __base__=BaseStep,
        **{action: (value_type, Field(title=f'{action} action'))},
    )


@cache
def build_steps() -> MappingProxyType[str, type[BaseStep]]:
    """Build and cache step models for every known action.

    Returns:
        Read-only mapping of action key to generated step model.
    """
    return MappingProxyType({
        action: build_step(action, value_type)
        for action, value_type in ACTION_TYPES.items()
    })


@cache
def build_step_union() -> type[RootModel[Any]]:
    """Build a root model accepting a step with any known action."""
    return create_model(
        'Step',
        __base__=RootModel,
        root=Union[tuple(build_steps().values())],  # noqa: UP007
    )
