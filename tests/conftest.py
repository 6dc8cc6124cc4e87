"""Tests configurations and fixtures."""

from importlib.metadata import EntryPoint, EntryPoints
from typing import TYPE_CHECKING

import pytest

from inline_steps.core import InlineInjector, MarkupMatcher
from inline_steps.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockerFixture, MockType

if TYPE_CHECKING:
    from inline_steps.extensions import Plugin


@pytest.fixture
def matcher() -> MarkupMatcher:
    """Provide a matcher with the built-in patterns only."""
    return MarkupMatcher()


@pytest.fixture
def injector() -> InlineInjector:
    """Provide an injector isolated from installed plugins and the environment.

    Plugin discovery is disabled and settings are fixed, so tests do not
    depend on what happens to be installed next to the package.
    """
    return InlineInjector(
        settings=Settings(syntax='json', validator='structural', strict=False, context_lines=2),
        load_plugins=False,
    )


@pytest.fixture
def patch_entrypoints(mocker: 'MockerFixture') -> 'Callable[..., MockType]':
    """Provide a factory for mocking `importlib.metadata.entry_points`.

    Returns a callable that patches `entry_points()` to simulate
    discovery of plugins in the `inline_steps_plugins` entry point group.

    The returned factory allows configuring:
    - a successfully loadable plugin,
    - or an exception raised during plugin loading,
    - or an empty entry point list.
    """
    def patch(*plugins: 'Plugin | object', raises: Exception | None = None) -> 'MockType':
        """Patch `entry_points` with a controlled plugin configuration.

        Args:
            plugins: Objects to be returned by `EntryPoint.load()`.
                If empty, no entry points are registered.
            raises: Exception to raise when `EntryPoint.load()` is called.
                Used to simulate plugin load failures.

        Returns:
            A mock patch object produced by `mocker.patch` that replaces
            `importlib.metadata.entry_points` for the duration of the test.
        """
        entrypoints = []
        for plugin in plugins:
            ep = mocker.Mock(spec=EntryPoint)
            ep.group = 'inline_steps_plugins'
            ep.name = 'tests'
            ep.value = 'tests.plugins:patterns'
            ep.load.return_value = plugin
            if raises is not None:
                ep.load.side_effect = raises
            entrypoints.append(ep)

        return mocker.patch(
            'importlib.metadata.entry_points',
            return_value=EntryPoints(entrypoints),
        )

    return patch
