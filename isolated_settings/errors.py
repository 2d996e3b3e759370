"""Error taxonomy for the settings store."""

from __future__ import annotations


class SettingsError(Exception):
    """Base class for every error raised by this package."""


class NullKeyError(SettingsError, ValueError):
    """Raised when a key argument is None."""

    def __init__(self, argument: str = "key") -> None:
        super().__init__(f"{argument} must not be None")
        self.argument = argument


class DuplicateKeyError(SettingsError, KeyError):
    """Raised when adding a key that is already present."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"an item with the key {self.key!r} has already been added"


class KeyNotFoundError(SettingsError, KeyError):
    """Raised when reading or deleting a key that is not present."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"the key {self.key!r} was not present in the settings"


class WrongKeyTypeError(SettingsError, TypeError):
    """Raised when a key is not a string on a surface that rejects it."""

    def __init__(self, key: object) -> None:
        super().__init__(f"wrong type given for the key argument: {type(key).__name__}")
        self.key = key


class SettingsEncodeError(SettingsError, ValueError):
    """Raised when a value cannot be written with the selected codec."""


class SettingsDecodeError(SettingsError, ValueError):
    """Raised when a persisted blob cannot be decoded."""
