"""Process-wide registry handle.

Call `create_context` once while the host starts; it returns the same handle on
every later call. Accessors raise `UninitializedRegistry` before that.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from langcfg.config import Settings
from langcfg.host import PluginHost
from langcfg.utils.config_registry import ConfigRegistry
from langcfg.utils.errors import UninitializedRegistry
from langcfg.utils.lang_registry import LangRegistry
from langcfg.utils.logger import configure


@dataclass(frozen=True)
class Registries:
    host: PluginHost
    configs: ConfigRegistry
    langs: LangRegistry

    def load_directories(self, config_dir: str = "", lang_dir: str = "lang") -> None:
        """Register the config and language files found in the two directories."""
        self.configs.register_directory(config_dir)
        self.langs.add_all_from_directory(lang_dir)

    def shutdown(self) -> None:
        """Flush configs and language files back to disk."""
        self.configs.shutdown()
        self.langs.shutdown()


_context: Optional[Registries] = None
_context_lock = threading.Lock()


def create_context(host: Optional[PluginHost] = None, settings: Optional[Settings] = None) -> Registries:
    """Create the registries (once), register the files in the configured
    config and language directories, and return the handle."""
    global _context
    with _context_lock:
        if _context is not None:
            return _context
        if settings is None:
            settings = Settings()
        configure(settings.LOG_LEVEL)
        if host is None:
            host = PluginHost.from_settings(settings)
        _context = Registries(
            host=host,
            configs=ConfigRegistry(host),
            langs=LangRegistry(host, default_locale=settings.DEFAULT_LOCALE),
        )
        _context.load_directories(settings.CONFIG_DIR, settings.LANG_DIR)
        return _context


def get_context() -> Registries:
    if _context is None:
        raise UninitializedRegistry()
    return _context


def get_config_registry() -> ConfigRegistry:
    return get_context().configs


def get_lang_registry() -> LangRegistry:
    return get_context().langs
