"""Step inspection helpers.

A step is a plain mapping with exactly one action key (`click`, `find`,
`goTo`, ...) and any number of metadata keys. Every component that needs
to know what a step does goes through the helpers in this module, so the
set of keys that never identify an action is defined in one place.
"""

from collections.abc import Mapping
from typing import Any

from inline_steps.errors import ErrorContext, StepError
from inline_steps.names import INTERNAL_KEYS, NON_ACTION_KEYS
from inline_steps.values import is_mapping, is_primitive, is_sequence

#: A decoded step object.
type Step = Mapping[str, Any]

#: Object fields holding the text a step acts on, by priority.
TEXT_FIELDS = (
    'keys',
    'url',
    'elementText',
    'text',
    'path',
    'selector',
)


def action_keys(step: Step) -> list[str]:
    """List the keys of a step that may identify its action."""
    return [key for key in step if key not in NON_ACTION_KEYS]


def find_action(step: Step) -> str | None:
    """Return the first action key of a step, if any.

    This lenient form is used for scoring and reporting, where a broken
    step should lose rather than abort the request.

    Args:
        step: Step mapping.

    Returns:
        The action name, or `None` when the step has no action key.
    """
    keys = action_keys(step)

    return keys[0] if keys else None


def action_key(step: Step) -> str:
    """Return the single action key of a step.

    Args:
        step: Step mapping.

    Returns:
        The action name.

    Raises:
        StepError: If the step has no action key or several of them.
    """
    keys = action_keys(step)

    if not keys:
        raise StepError(
            'Step has no action defined',
            context=ErrorContext(element=dict(step)),
        )

    if len(keys) > 1:
        raise StepError(
            f'Step defines several actions: {", ".join(keys)}',
            context=ErrorContext(element=dict(step)),
        )

    return keys[0]


def action_value(step: Step) -> Any:  # noqa: ANN401
    """Return the value of the step action, or `None`."""
    if (key := find_action(step)) is None:
        return None

    return step[key]


def comparable_text(step: Step) -> str | None:
    """Extract the text a step is expected to find in a document.

    String action values are used as is. For object values the first
    text field present is used; a list of keys is joined with spaces.

    Args:
        step: Step mapping.

    Returns:
        The text to compare against document content, or `None` if the
        action value carries no text.
    """
    value = action_value(step)

    if isinstance(value, str):
        return value

    if not is_mapping(value):
        return None

    for field in TEXT_FIELDS:
        item = value.get(field)
        if isinstance(item, str) and item:
            return item
        if is_sequence(item) and item and all(isinstance(part, str) for part in item):
            return ' '.join(item)

    return None


def has_metadata(step: Step) -> bool:
    """Check whether a step carries metadata worth serializing.

    Empty collections and false flags do not count; `$schema` never
    counts.
    """
    return bool(
        step.get('stepId')
        or step.get('description')
        or step.get('unsafe') is True
        or step.get('outputs')
        or step.get('variables')
        or step.get('breakpoint') is True,
    )


def is_simple(step: Step) -> bool:
    """Check whether a step can render as `{action: value}` alone."""
    key = find_action(step)
    if key is None or len(action_keys(step)) > 1:
        return False

    return not has_metadata(step) and is_primitive(step[key])


def strip_internal(step: Step) -> dict[str, Any]:
    """Copy a step without keys used only by loaders."""
    return {
        key: value
        for key, value in step.items()
        if key not in INTERNAL_KEYS
    }
