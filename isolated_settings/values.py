"""Type-directed access to stored values.

Stored values are untyped. ``downcast`` answers "is this value usable as a
``T``" the way a checked cast would: no coercion between numeric types, no
``bool`` posing as ``int``, and ``None`` only where ``T`` itself defaults to
``None``.
"""

from __future__ import annotations

from typing import Any, Tuple, Type, TypeVar

import numpy as np


T = TypeVar("T")

_ZERO_DEFAULT_TYPES = (bool, int, float, complex)


def default_of(type_: Type[T]) -> Any:
    """Return the default value of ``type_`` (zero for numbers, else None)."""
    if isinstance(type_, type) and (issubclass(type_, _ZERO_DEFAULT_TYPES) or issubclass(type_, np.generic)):
        try:
            return type_()
        except TypeError:
            return None
    return None


def downcast(value: Any, type_: Type[T]) -> Tuple[bool, Any]:
    """Try to view ``value`` as a ``type_``.

    Returns ``(True, value)`` on success and ``(False, default_of(type_))``
    otherwise. Never raises for a bad conversion.
    """
    if type_ is object or type_ is Any:
        return True, value
    if not isinstance(type_, type):
        return False, None
    if value is None:
        return default_of(type_) is None, default_of(type_)
    if isinstance(value, bool) and type_ is not bool and issubclass(type_, int):
        return False, default_of(type_)
    if isinstance(value, type_):
        return True, value
    return False, default_of(type_)
