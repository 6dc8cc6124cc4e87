"""Value categories shared by serializers and error formatting.

Steps and test declarations arrive as decoded JSON or YAML, so every
value is one of a small set of plain Python types. This module names
those categories once so that the payload renderers, the binder and the
error formatter classify values the same way.
"""

from collections.abc import Mapping, Sequence
from typing import Any

#: A primitive value renders inline in every payload syntax.
type Primitive = str | int | float | bool

#: Any value a decoded step may contain.
type Value = Primitive | Sequence['Value'] | Mapping[str, 'Value'] | None

MAPPINGS = (dict,)
PRIMITIVES = (str, int, float, bool)
SEQUENCES = (list, tuple)


def is_primitive(value: Any) -> bool:  # noqa: ANN401
    """Check whether a value is a string, number or boolean.

    Args:
        value: Value to classify.

    Returns:
        `True` for strings, numbers and booleans, `False` otherwise
        (including `None`).
    """
    return isinstance(value, PRIMITIVES)


def is_mapping(value: Any) -> bool:  # noqa: ANN401
    """Check whether a value is a decoded object."""
    return isinstance(value, MAPPINGS)


def is_sequence(value: Any) -> bool:  # noqa: ANN401
    """Check whether a value is a decoded array."""
    return isinstance(value, SEQUENCES)
