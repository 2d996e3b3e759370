"""Process-wide application and site settings.

Each scope's store is created on first access and then reused. Creation is an
unsynchronized check-then-act: two threads racing on the first access may each
build a store over the same container, and either one is a valid result.
"""

from __future__ import annotations

import logging
import re
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List, Optional

from .config import SettingsConfig, default_config
from .storage import Container, DirectoryContainer
from .store import SettingsStore


logger = logging.getLogger(__name__)

ContainerFactory = Callable[[], Container]

_UNSAFE_COMPONENT_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_component(name: str) -> str:
    cleaned = _UNSAFE_COMPONENT_RE.sub("_", name).strip("._")
    return cleaned or "python"


def _main_module_name() -> Optional[str]:
    main = sys.modules.get("__main__")
    spec = getattr(main, "__spec__", None)
    name = getattr(spec, "name", None)
    if name:
        # python -m pkg runs pkg.__main__
        return name[: -len(".__main__")] if name.endswith(".__main__") else name
    path = getattr(main, "__file__", None)
    if path:
        return Path(path).stem
    return None


def application_identity(config: SettingsConfig) -> str:
    """Name of the running application: configured, else derived from ``__main__``."""
    return _safe_component(config.application or _main_module_name() or "python")


def assembly_identity() -> str:
    """Top-level package (or script) the running program was started from."""
    name = _main_module_name() or "python"
    return _safe_component(name.split(".")[0])


def site_identity(config: SettingsConfig) -> str:
    """Configured site, falling back to the assembly when none is set."""
    if config.site:
        return _safe_component(config.site)
    return assembly_identity()


class SettingsRegistry:
    """Holds the application-scope and site-scope stores.

    ``application_container`` and ``site_container`` replace the default
    directory containers under ``config.home``.
    """

    def __init__(
        self,
        config: Optional[SettingsConfig] = None,
        application_container: Optional[ContainerFactory] = None,
        site_container: Optional[ContainerFactory] = None,
    ) -> None:
        self.config = config or default_config()
        self._application_container = application_container or self._default_application_container
        self._site_container = site_container or self._default_site_container
        self._application: Optional[SettingsStore] = None
        self._site: Optional[SettingsStore] = None

    def _default_application_container(self) -> Container:
        return DirectoryContainer(self.config.home / "application" / application_identity(self.config))

    def _default_site_container(self) -> Container:
        return DirectoryContainer(self.config.home / "site" / site_identity(self.config))

    def _create(self, scope: str, factory: ContainerFactory) -> SettingsStore:
        container = factory()
        store = SettingsStore(container, mode=self.config.mode, entry_name=self.config.entry_name)
        logger.debug("Created %s settings over %r", scope, container)
        return store

    @property
    def application_settings(self) -> SettingsStore:
        if self._application is None:
            self._application = self._create("application", self._application_container)
        return self._application

    @property
    def site_settings(self) -> SettingsStore:
        if self._site is None:
            self._site = self._create("site", self._site_container)
        return self._site

    def stores(self) -> List[SettingsStore]:
        """Stores created so far."""
        return [s for s in (self._application, self._site) if s is not None]

    def save_all(self) -> None:
        stores = self.stores()
        for store in stores:
            store.save()
        logger.info("Saved %d settings scope(s)", len(stores))

    @contextmanager
    def session(self) -> Iterator["SettingsRegistry"]:
        """Save every created store when the block exits normally."""
        yield self
        self.save_all()

    def reset(self) -> None:
        """Forget the memoized stores without saving them."""
        self._application = None
        self._site = None


_default_registry: Optional[SettingsRegistry] = None


def default_registry() -> SettingsRegistry:
    global _default_registry
    if _default_registry is None:
        _default_registry = SettingsRegistry()
    return _default_registry


def set_default_registry(registry: Optional[SettingsRegistry]) -> None:
    """Install ``registry`` as the process default; ``None`` rebuilds it lazily."""
    global _default_registry
    _default_registry = registry


def application_settings() -> SettingsStore:
    """Per-application, per-user settings."""
    return default_registry().application_settings


def site_settings() -> SettingsStore:
    """Per-site (or per-assembly), per-user settings."""
    return default_registry().site_settings
