"""Configuration for settings stores.

A store captures its serialization mode when it is constructed. The process
default below only affects stores created after it changes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional


LOCAL_SETTINGS_NAME = "__LocalSettings"


class SerializationMode(enum.Enum):
    """Encoding used for the persisted blob."""

    # Compact pickle of the whole mapping; tied to the interpreter/library versions.
    NATIVE = "native"
    # Type-tagged XML, readable by other tools.
    PORTABLE = "portable"


def _settings_home() -> Path:
    return Path.home() / ".isolated_settings"


@dataclass(frozen=True)
class SettingsConfig:
    """Settings shared by the registry and the stores it creates.

    ``application`` and ``site`` override the identities derived from the
    running program; ``site`` plays the role of an activation context.
    """

    mode: SerializationMode = SerializationMode.NATIVE
    entry_name: str = LOCAL_SETTINGS_NAME
    home: Path = field(default_factory=_settings_home)
    application: Optional[str] = None
    site: Optional[str] = None

    def with_mode(self, mode: SerializationMode) -> "SettingsConfig":
        return replace(self, mode=SerializationMode(mode))


_default_config: Optional[SettingsConfig] = None


def default_config() -> SettingsConfig:
    global _default_config
    if _default_config is None:
        _default_config = SettingsConfig()
    return _default_config


def set_default_config(config: Optional[SettingsConfig]) -> None:
    """Replace the process default. ``None`` restores the built-in defaults."""
    global _default_config
    _default_config = config
