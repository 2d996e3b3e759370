"""The settings dictionary bound to one container.

The whole mapping is persisted as a single blob under a well-known entry name.
Loading is forgiving (a corrupt blob reads as "no settings"), saving is not.

Not safe for concurrent mutation from several threads without external
locking.
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, Optional, Tuple, Type, TypeVar

from . import serialization
from .config import LOCAL_SETTINGS_NAME, SerializationMode, default_config
from .errors import DuplicateKeyError, KeyNotFoundError, NullKeyError, SettingsDecodeError, WrongKeyTypeError
from .storage import Container
from .values import default_of, downcast
from .views import ObjectKeyView, PairCollectionView


logger = logging.getLogger(__name__)

T = TypeVar("T")


def check_key(key: Any) -> str:
    """Validate a key for the string-keyed surface."""
    if key is None:
        raise NullKeyError("key")
    if not isinstance(key, str):
        raise WrongKeyTypeError(key)
    return key


class SettingsStore(MutableMapping):
    """Persistent ``str -> Any`` mapping.

    ``mode`` is fixed when the store is created; it defaults to the mode of
    :func:`~isolated_settings.config.default_config`.

    Use the store as a context manager to save it when the block exits
    normally::

        with SettingsStore(container) as settings:
            settings["theme"] = "dark"
    """

    def __init__(
        self,
        container: Container,
        mode: Optional[SerializationMode] = None,
        entry_name: str = LOCAL_SETTINGS_NAME,
    ) -> None:
        self._container = container
        self._mode = SerializationMode(mode) if mode is not None else default_config().mode
        self._entry_name = entry_name
        self._settings: Dict[str, Any] = self._load()

    def __repr__(self) -> str:
        return f"SettingsStore({self._container!r}, mode={self._mode.value}, count={len(self._settings)})"

    @property
    def container(self) -> Container:
        return self._container

    @property
    def mode(self) -> SerializationMode:
        return self._mode

    @property
    def entry_name(self) -> str:
        return self._entry_name

    # Persistence ---------------------------------------------------------
    def _load(self) -> Dict[str, Any]:
        if not self._container.exists(self._entry_name):
            logger.debug("No %s in %r, starting empty", self._entry_name, self._container)
            return {}

        with self._container.open_read(self._entry_name) as fh:
            blob = fh.read()
        try:
            data = serialization.decode(blob, self._mode)
        except SettingsDecodeError as exc:
            logger.warning("Discarding unreadable settings in %r: %s", self._container, exc)
            return {}
        logger.info("Loaded %d setting(s) from %r", len(data), self._container)
        return data

    def reload(self) -> None:
        """Replace the in-memory state with what the container holds now."""
        self._settings = self._load()

    def save(self) -> None:
        """Write every entry to the container. Errors propagate."""
        blob = serialization.encode(self._settings, self._mode)
        with self._container.create_or_truncate(self._entry_name) as fh:
            fh.write(blob)
            fh.flush()
        logger.info("Saved %d setting(s) to %r", len(self._settings), self._container)

    def __enter__(self) -> "SettingsStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # Changes made inside a failing block are kept in memory but not written.
        if exc_type is None:
            self.save()

    # Dictionary operations ----------------------------------------------
    def add(self, key: str, value: Any) -> None:
        key = check_key(key)
        if key in self._settings:
            raise DuplicateKeyError(key)
        self._settings[key] = value

    def remove(self, key: str) -> bool:
        key = check_key(key)
        if key not in self._settings:
            return False
        del self._settings[key]
        return True

    def contains(self, key: str) -> bool:
        return check_key(key) in self._settings

    def try_get_value(self, key: str, type_: Type[T] = object) -> Tuple[bool, Any]:
        """Look up ``key`` as a ``type_``.

        Returns ``(found, value)``. A missing key or a value that is not a
        ``type_`` gives ``(False, <default of type_>)``.
        """
        key = check_key(key)
        if key not in self._settings:
            return False, default_of(type_)
        return downcast(self._settings[key], type_)

    def clear(self) -> None:
        self._settings.clear()

    @property
    def count(self) -> int:
        return len(self._settings)

    def __getitem__(self, key: str) -> Any:
        key = check_key(key)
        try:
            return self._settings[key]
        except KeyError:
            raise KeyNotFoundError(key) from None

    def __setitem__(self, key: str, value: Any) -> None:
        self._settings[check_key(key)] = value

    def __delitem__(self, key: str) -> None:
        if not self.remove(key):
            raise KeyNotFoundError(key)

    def __contains__(self, key: object) -> bool:
        return self.contains(key)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[str]:
        return iter(self._settings)

    def __len__(self) -> int:
        return len(self._settings)

    # Legacy-shaped surfaces ---------------------------------------------
    @property
    def untyped(self) -> ObjectKeyView:
        return ObjectKeyView(self)

    @property
    def pairs(self) -> PairCollectionView:
        return PairCollectionView(self)

