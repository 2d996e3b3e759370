"""Persistent, dictionary-shaped settings for Python applications.

Settings live in a per-application or per-site container under the user's
home folder and are written as one blob per container.

Design goals:
  * Resilient loads (an unreadable blob reads as empty settings)
  * Atomic, explicit saves (``save()`` or a ``with`` block)
  * Dictionary semantics with strict key checks
"""

from .config import LOCAL_SETTINGS_NAME, SerializationMode, SettingsConfig, default_config, set_default_config
from .errors import (
    DuplicateKeyError,
    KeyNotFoundError,
    NullKeyError,
    SettingsDecodeError,
    SettingsEncodeError,
    SettingsError,
    WrongKeyTypeError,
)
from .registry import SettingsRegistry, application_settings, default_registry, set_default_registry, site_settings
from .storage import Container, DirectoryContainer, MemoryContainer
from .store import SettingsStore
from .views import MISSING, ObjectKeyView, PairCollectionView

__version__ = "0.1.0"

__all__ = [
    "LOCAL_SETTINGS_NAME",
    "MISSING",
    "Container",
    "DirectoryContainer",
    "DuplicateKeyError",
    "KeyNotFoundError",
    "MemoryContainer",
    "NullKeyError",
    "ObjectKeyView",
    "PairCollectionView",
    "SerializationMode",
    "SettingsConfig",
    "SettingsDecodeError",
    "SettingsEncodeError",
    "SettingsError",
    "SettingsRegistry",
    "SettingsStore",
    "WrongKeyTypeError",
    "application_settings",
    "default_config",
    "default_registry",
    "set_default_config",
    "set_default_registry",
    "site_settings",
]
