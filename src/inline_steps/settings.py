"""Runtime settings resolved from the environment.

Settings provide defaults for options a request may leave out. Every
value can be overridden per request; the environment only changes what
happens when a request is silent.

Environment variables use the `INLINE_STEPS_` prefix, for example
`INLINE_STEPS_SYNTAX=yaml` or `INLINE_STEPS_STRICT=true`.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from inline_steps.models import SettingsModel
from inline_steps.names import SyntaxOption  # noqa: TC001

ENV_PREFIX = 'INLINE_STEPS_'


class Settings(SettingsModel):
    """Process-wide defaults for injection and validation."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        frozen=True,
        extra='ignore',
    )

    syntax: SyntaxOption = Field(
        default='json',
        title='Default payload syntax',
        description='Payload syntax used when a request does not choose one.',
    )

    validator: Literal['structural', 'schema', 'auto'] = Field(
        default='structural',
        title='Step validator',
        description=(
            'Validation variant used for test specifications. '
            '`auto` prefers schema-backed validation when available.'
        ),
    )

    strict: bool = Field(
        default=False,
        title='Strict plugin loading',
        description=(
            'Raise on plugin loading and pattern conflicts instead of '
            'emitting warnings.'
        ),
    )

    context_lines: int = Field(
        default=2,
        ge=0,
        title='Preview context lines',
        description='Lines of context shown around each previewed insertion.',
    )
