"""Pattern plugin discovery and loading infrastructure.

This module defines a mixin responsible for discovering, loading and
registering pattern plugins exposed via Python entry points.

A plugin that fails to load is reported and skipped. Strict mode turns
every such report into an error.
"""

import logging
from typing import TYPE_CHECKING
from warnings import warn

from pydantic import ValidationError

from inline_steps.errors import PatternError, PluginError, PluginWarning
from inline_steps.extensions import Plugin

from .matcher import DEFAULT_PATTERNS, MarkupPattern

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint

    from inline_steps.names import Dialect
    from inline_steps.schema import PatternDescriptor

logger = logging.getLogger(__name__)

#: Entry point group scanned for pattern plugins.
ENTRYPOINT_GROUP = 'inline_steps_plugins'


class PatternLoaderMixin:
    """Mixin defining pattern plugin loading behavior.

    Attributes:
        strict_mode: If True, any plugin loading issue raises an error.
            If False, issues are emitted as warnings and loading continues.
        plugin_patterns: Compiled plugin patterns by dialect, in loading
            order.
    """

    strict_mode: bool = False

    plugin_patterns: dict['Dialect', list[MarkupPattern]]

    def add_pattern(self, dialect: 'Dialect', descriptor: 'PatternDescriptor',
                    entrypoint: 'EntryPoint | None' = None,
                    namespace: str | None = None) -> None:
        """Compile and register a plugin pattern.

        Args:
            dialect: Markup dialect the pattern applies to.
            descriptor: Declarative pattern definition.
            entrypoint: Entry point the pattern was loaded from, if any.
            namespace: Name of the contributing plugin.

        Raises:
            PluginError: If the pattern is invalid or shadows an existing
                one on strict mode.
        """
        source = entrypoint.value if entrypoint else namespace or 'builtins'

        try:
            pattern = MarkupPattern.from_descriptor(descriptor)

        except PatternError as base:
            if error := self.emit_plugin_issue(
                f'Pattern {descriptor.name!r} from {source!r} is invalid: {base.message}',
                entrypoint,
            ):
                raise error from base
            return

        registered = [*DEFAULT_PATTERNS.get(dialect, ()), *self.plugin_patterns.get(dialect, ())]
        if any(item.name == pattern.name for item in registered) and (error := self.emit_plugin_issue(
            f'Pattern {pattern.name!r} from {source!r} is shadowing an existing one in {dialect!r}',
            entrypoint,
        )):
            raise error

        self.plugin_patterns.setdefault(dialect, []).append(pattern)

    def emit_plugin_issue(self, message: str,
                          entrypoint: 'EntryPoint | None' = None) -> Exception | None:
        """Emit a plugin warning or return the exception.

        Args:
            message: Warning message to emit.
            entrypoint: Entry point the issue relates to, if applicable.

        Returns:
            PluginError on strict mode, otherwise `None`
                with producing a PluginWarning.
        """
        if self.strict_mode:
            return PluginError(message, entrypoint=entrypoint)

        warn(message, category=PluginWarning, stacklevel=2)

        return None

    def _load_plugin(self, entrypoint: 'EntryPoint') -> None:
        """Load and register a single plugin entry point.

        Args:
            entrypoint: Entry point describing the plugin to load.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        try:
            plugin = entrypoint.load()

        except ValidationError as base:
            if error := self.emit_plugin_issue(
                f'Failed to validate entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return

        except Exception as base:
            if error := self.emit_plugin_issue(
                f'Failed to load entrypoint {entrypoint.name!r}',
                entrypoint,
            ):
                raise error from base
            return

        if not isinstance(plugin, Plugin):
            if error := self.emit_plugin_issue(
                f'Loaded from entrypoint {entrypoint.name!r} object is not a plugin',
                entrypoint,
            ):
                raise error
            return

        for dialect, descriptors in plugin.patterns.items():
            for descriptor in descriptors:
                self.add_pattern(dialect, descriptor, entrypoint, namespace=plugin.name)

        logger.debug('Loaded pattern plugin %r from %r', plugin.name, entrypoint.value)

    def clear_plugins(self) -> None:
        """Clear all registered plugin patterns."""
        self.plugin_patterns = {}

    def load_plugins(self) -> None:
        """Load plugins via entry points and register their patterns.

        Discovers plugins from the `inline_steps_plugins` entry point group.

        Raises:
            PluginError: If any loading issues occur on strict mode.
        """
        from importlib.metadata import entry_points  # noqa: PLC0415

        for entrypoint in entry_points().select(group=ENTRYPOINT_GROUP):
            self._load_plugin(entrypoint)
