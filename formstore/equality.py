"""Shallow equality helpers used to gate store emissions.

Two levels of comparison are provided:
- ``is_same``: strict equality. Immutable scalars of the same type compare by
  value, everything else compares by identity.
- ``shallow_equal``: one level of structure. Mappings and lists/tuples are
  equal when their entries are pairwise ``is_same``.

Comparison never recurses: a nested container whose outer reference changed
is reported as changed even if its contents are equal.

Examples:
    >>> is_same("a", "a")
    True
    >>> is_same(1, True)
    False
    >>> shallow_equal({"a": 1}, {"a": 1})
    True
    >>> shallow_equal({"a": [1]}, {"a": [1]})
    False
"""

import datetime
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

_SCALAR_TYPES = (
    str,
    bytes,
    int,
    float,
    complex,
    bool,
    type(None),
    Decimal,
    Enum,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    UUID,
)


def is_same(a: Any, b: Any) -> bool:
    """Strict equality: identity, or equal immutable scalars of the same type."""
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    return isinstance(a, _SCALAR_TYPES) and a == b


def shallow_equal(a: Any, b: Any) -> bool:
    """Compare two values one level deep.

    Args:
        a: First value (mapping, list/tuple or scalar)
        b: Second value

    Returns:
        True if the values are the same, or are containers of the same kind
        whose entries are pairwise ``is_same``.
    """
    if is_same(a, b):
        return True

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b or not is_same(value, b[key]):
                return False
        return True

    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(is_same(x, y) for x, y in zip(a, b))

    return False


__all__ = [
    "is_same",
    "shallow_equal",
]
