"""Declarative pattern plugin definition.

Installed distributions may teach the matcher to recognize additional
markup. A plugin groups custom pattern descriptors by markup dialect and
is exposed through the `inline_steps_plugins` entry point group:

    [project.entry-points.inline_steps_plugins]
    widgets = "my_package.patterns:plugin"

The plugin model itself is purely declarative. It is consumed by the
pattern loader, which compiles the descriptors and appends them after
the built-in patterns of their dialect.
"""

from pydantic import Field

from inline_steps.models import SchemaModel
from inline_steps.names import Dialect  # noqa: TC001
from inline_steps.schema import PatternDescriptor  # noqa: TC001

__all__ = (
    'PatternDescriptor',
    'Plugin',
)


class Plugin(SchemaModel):
    """Declarative container for pattern extensions."""

    name: str = Field(
        pattern=r'^[A-Za-z_][A-Za-z0-9_-]*$',
        title='Plugin name',
        description='Name used in diagnostics and conflict detection.',
    )

    patterns: dict[Dialect, list[PatternDescriptor]] = Field(
        default_factory=dict,
        title='Patterns',
        description='Custom recognition patterns by markup dialect.',
    )
