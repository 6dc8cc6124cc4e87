"""Tests for pattern plugin loading."""

from typing import TYPE_CHECKING

import pydantic
import pytest

from inline_steps.core import InlineInjector
from inline_steps.errors import PluginError, PluginWarning
from inline_steps.extensions import PatternDescriptor, Plugin
from inline_steps.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Callable

if TYPE_CHECKING:
    from pytest_mock import MockType

SETTINGS = Settings(syntax='json', validator='structural', strict=False, context_lines=2)


def keyboard_plugin(name: str = 'kbdShortcode', regex: str = r'\{\{kbd (\w+)\}\}') -> Plugin:
    """Build a plugin recognizing one keyboard shortcode."""
    return Plugin(name='keyboard', patterns={'markdown': [
        PatternDescriptor(name=name, regex=regex, action='type'),
    ]})


def test_base_loading(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Bind steps to spans recognized by plugin patterns."""
    patch_entrypoints(keyboard_plugin())

    injector = InlineInjector(settings=SETTINGS)
    response = injector.inject({
        'spec': {'steps': [{'type': 'Enter'}]},
        'sourceContent': 'Press {{kbd Enter}} to submit.',
        'sourcePath': 'guide.md',
        'options': {'apply': True},
    })

    assert [pattern.name for pattern in injector.plugin_patterns['markdown']] == ['kbdShortcode']
    assert response.unmatched_steps == []
    assert response.result == 'Press {{kbd Enter}} to submit.\n<!-- step {"type":"Enter"} -->'


def test_loading_without_plugins(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Start with built-in patterns only when nothing is installed."""
    patch_entrypoints()

    assert InlineInjector(settings=SETTINGS).plugin_patterns == {}


def test_loading_skip_with_failed_entrypoint(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Skip plugins that fail during loading."""
    patch_entrypoints(None, raises=SyntaxError)
    with pytest.warns(PluginWarning, match=r'^Failed to load entrypoint'):
        injector = InlineInjector(settings=SETTINGS)

    assert injector.plugin_patterns == {}


def test_loading_fail_with_failed_entrypoint(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Fail on plugins that fail during loading with strict mode."""
    patch_entrypoints(None, raises=SyntaxError)
    with pytest.raises(PluginError, match=r'^Failed to load entrypoint') as error:
        InlineInjector(settings=SETTINGS, strict=True)

    assert error.value.entrypoint is not None
    assert error.value.entrypoint.value == 'tests.plugins:patterns'


def test_loading_fail_with_not_valid_entrypoint(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Fail on plugins that fail validation during loading with strict mode."""
    try:
        Plugin(name='not a name')
    except pydantic.ValidationError as exception:
        error = exception

    patch_entrypoints(None, raises=error)
    with pytest.raises(PluginError, match=r'^Failed to validate entrypoint'):
        InlineInjector(settings=SETTINGS, strict=True)


def test_loading_skip_with_invalid_plugin(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Skip loaded objects that are not plugins."""
    patch_entrypoints({})
    with pytest.warns(PluginWarning, match=r'object is not a plugin$'):
        InlineInjector(settings=SETTINGS)


def test_strict_mode_from_settings(patch_entrypoints: 'Callable[..., MockType]',
                                   monkeypatch: pytest.MonkeyPatch) -> None:
    """Read strict mode from the environment."""
    monkeypatch.setenv('INLINE_STEPS_STRICT', 'true')

    patch_entrypoints({})
    with pytest.raises(PluginError, match=r'object is not a plugin$'):
        InlineInjector()


def test_invalid_pattern(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Skip plugin patterns that do not compile."""
    patch_entrypoints(keyboard_plugin(regex='{{kbd ('))
    with pytest.warns(PluginWarning, match=r"^Pattern 'kbdShortcode' from 'tests.plugins:patterns' is invalid"):
        injector = InlineInjector(settings=SETTINGS)

    assert injector.plugin_patterns == {}


def test_strict_invalid_pattern(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Fail on plugin patterns that do not compile with strict mode."""
    patch_entrypoints(keyboard_plugin(regex='{{kbd ('))
    with pytest.raises(PluginError, match=r'is invalid: Invalid custom pattern'):
        InlineInjector(settings=SETTINGS, strict=True)


def test_patterns_shadowing(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Warn about plugin patterns reusing a registered name."""
    patch_entrypoints(keyboard_plugin(name='findOnscreenText'))
    with pytest.warns(PluginWarning, match=r"is shadowing an existing one in 'markdown'$"):
        injector = InlineInjector(settings=SETTINGS)

    assert [pattern.name for pattern in injector.plugin_patterns['markdown']] == ['findOnscreenText']


def test_patterns_strict_shadowing(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Fail on plugin patterns reusing a registered name with strict mode."""
    patch_entrypoints(keyboard_plugin(name='findOnscreenText'))
    with pytest.raises(PluginError, match=r'is shadowing an existing one'):
        InlineInjector(settings=SETTINGS, strict=True)


def test_plugins_do_not_leak(patch_entrypoints: 'Callable[..., MockType]') -> None:
    """Keep plugin patterns per injector."""
    patch_entrypoints(keyboard_plugin())
    InlineInjector(settings=SETTINGS)

    assert InlineInjector(settings=SETTINGS, load_plugins=False).plugin_patterns == {}


@pytest.mark.parametrize('name', (
    pytest.param('', id='empty'),
    pytest.param('two words', id='space'),
    pytest.param('1st', id='leading digit'),
))
def test_plugin_name(name: str) -> None:
    """Reject plugin names unusable in diagnostics."""
    with pytest.raises(pydantic.ValidationError):
        Plugin(name=name)
