"""Registry of named YAML config documents.

Registration is first-wins: a second document under an existing name is
ignored. Bulk load/save never stop on a single failing document; the
document itself logs the failure.
"""
from __future__ import annotations

import threading
from pathlib import PurePath
from typing import Dict, List, Optional, Union

from langcfg.host import PluginHost
from langcfg.utils.documents import YamlDocument
from langcfg.utils.errors import DirectoryUnavailable
from langcfg.utils.logger import get_logger

log = get_logger("langcfg.configs")


class ConfigRegistry:
    def __init__(self, host: PluginHost):
        self.host = host
        self._entries: Dict[str, YamlDocument] = {}
        self._lock = threading.RLock()

    def register(self, name: str, document: YamlDocument) -> YamlDocument:
        """Register `document` under `name` unless the name is taken.

        A newly registered document is loaded silently right away. Returns the
        document bound to `name` afterwards (the existing one on a duplicate).
        """
        with self._lock:
            existing = self._entries.get(name)
            if existing is not None:
                log.debug("Config %s already registered, keeping %r", name, existing)
                return existing
            self._entries[name] = document
            document.load(verbose=False)
            return document

    def get(self, name: str) -> Optional[YamlDocument]:
        return self._entries.get(name)

    def find(self, name: str) -> Optional[YamlDocument]:
        """Case-insensitive lookup by file name (or registration name).

        Ambiguous when several configs share a file name; the first registered wins.
        """
        wanted = name.lower()
        with self._lock:
            for key, document in self._entries.items():
                if document.name.lower() == wanted or key.lower() == wanted:
                    return document
        return None

    def load_all(self, verbose: bool = True) -> int:
        """Load every config; returns how many loaded successfully."""
        with self._lock:
            return sum(1 for document in self._entries.values() if document.load(verbose))

    def save_all(self, verbose: bool = True) -> int:
        """Save every config; returns how many saved successfully."""
        with self._lock:
            return sum(1 for document in self._entries.values() if document.save(verbose))

    def register_directory(self, path: Union[str, PurePath] = "") -> Dict[str, YamlDocument]:
        """Register every config file directly inside `path` (relative to the data folder).

        The file name without extension becomes the registration name. Returns
        only the configs added by this call.
        """
        with self._lock:
            try:
                files = self.host.list_files(path)
            except DirectoryUnavailable as exc:
                log.warning("%s; no configs registered", exc)
                return {}
            added: Dict[str, YamlDocument] = {}
            for file in files:
                name = self.host.strip_extension(file.name)
                document = YamlDocument(self.host, file)
                if self.register(name, document) is document:
                    added[name] = document
            return added

    def shutdown(self) -> None:
        """Save everything back to disk; call once when the host stops."""
        with self._lock:
            if not self._entries:
                return
            saved = self.save_all(verbose=False)
            log.info("Saved %d of %d configs!", saved, len(self._entries))

    def documents(self) -> List[YamlDocument]:
        return list(self._entries.values())

    def names(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
