"""Object-keyed and pair-shaped views over a settings store.

Both views share the store's mapping; they only translate arguments and
errors. The object-keyed view is lenient where a plain dictionary would be
(looking up, testing or removing a non-string key is not an error) and strict
where accepting the key would corrupt the mapping (adding or assigning under a
non-string key raises).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterator, List, Optional, Tuple

from .errors import NullKeyError, WrongKeyTypeError

if TYPE_CHECKING:
    from .store import SettingsStore


class _Missing:
    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


# Returned by ``ObjectKeyView[key]`` when the key can never be in the store.
MISSING = _Missing()


def _extract_key(key: Any) -> Optional[str]:
    """Return ``key`` if it is a string, None for other objects."""
    if key is None:
        raise NullKeyError("key")
    return key if isinstance(key, str) else None


class ObjectKeyView:
    """Dictionary surface that accepts keys of any type."""

    is_fixed_size = False
    is_read_only = False

    def __init__(self, store: "SettingsStore") -> None:
        self._store = store

    def add(self, key: Any, value: Any) -> None:
        s = _extract_key(key)
        if s is None:
            raise WrongKeyTypeError(key)
        self._store.add(s, value)

    def remove(self, key: Any) -> None:
        s = _extract_key(key)
        if s is None:
            return
        self._store.remove(s)

    def contains(self, key: Any) -> bool:
        s = _extract_key(key)
        return s is not None and self._store.contains(s)

    __contains__ = contains

    def clear(self) -> None:
        self._store.clear()

    def __getitem__(self, key: Any) -> Any:
        s = _extract_key(key)
        if s is None:
            return MISSING
        return self._store[s]

    def __setitem__(self, key: Any, value: Any) -> None:
        s = _extract_key(key)
        if s is None:
            raise WrongKeyTypeError(key)
        self._store[s] = value

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self._store.items()))


class PairCollectionView:
    """Collection of ``(key, value)`` pairs; membership and removal go by key."""

    is_read_only = False

    def __init__(self, store: "SettingsStore") -> None:
        self._store = store

    def add(self, pair: Tuple[str, Any]) -> None:
        key, value = pair
        self._store.add(key, value)

    def contains(self, pair: Tuple[str, Any]) -> bool:
        key, _ = pair
        return self._store.contains(key)

    __contains__ = contains

    def remove(self, pair: Tuple[str, Any]) -> bool:
        key, _ = pair
        return self._store.remove(key)

    def clear(self) -> None:
        self._store.clear()

    def copy_to(self, array: List[Any], index: int = 0) -> None:
        """Write every pair into ``array`` starting at ``index``."""
        if index < 0:
            raise IndexError(f"index {index} is negative")
        if len(array) - index < len(self._store):
            raise IndexError(
                f"{len(self._store)} pair(s) do not fit in an array of {len(array)} at index {index}"
            )
        for offset, pair in enumerate(self._store.items()):
            array[index + offset] = pair

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[Tuple[str, Any]]:
        return iter(list(self._store.items()))
