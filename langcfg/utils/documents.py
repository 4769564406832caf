"""YAML backed documents with dotted-path access.

A `YamlDocument` owns one file below the plugin data folder. On first use the
file is bootstrapped from the bundled resource of the same relative name (or
created empty). Loading and saving never raise: failures are logged and the
previous state is kept.

`LangDocument` adds the per-document placeholder cache used by the language
registry: every load marks the cache stale, the next lookup rebuilds it from
the document's placeholder section.
"""
from __future__ import annotations

import copy
from pathlib import Path, PurePath
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple, Union

import yaml

from langcfg.host import PluginHost
from langcfg.utils.errors import DocumentLoadFailure, DocumentSaveFailure
from langcfg.utils.logger import get_logger

log = get_logger("langcfg.documents")

SEPARATOR = "."
_MISSING = object()


def _split(path: str) -> List[str]:
    return [part for part in str(path).split(SEPARATOR) if part]


def _normalize(node: Any) -> Any:
    """Stringify mapping keys so every section is addressable by dotted path."""
    if isinstance(node, dict):
        return {str(k): _normalize(v) for k, v in node.items()}
    if isinstance(node, list):
        return [_normalize(v) for v in node]
    return node


def _walk_leaves(node: Mapping[str, Any], prefix: str = "") -> Iterator[Tuple[str, Any]]:
    for key, value in node.items():
        full = f"{prefix}{SEPARATOR}{key}" if prefix else key
        if isinstance(value, dict) and value:
            yield from _walk_leaves(value, full)
        else:
            yield full, value


def _walk_keys(node: Mapping[str, Any], prefix: str = "") -> Iterator[str]:
    for key, value in node.items():
        full = f"{prefix}{SEPARATOR}{key}" if prefix else key
        yield full
        if isinstance(value, dict):
            yield from _walk_keys(value, full)


def _as_string(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


class YamlDocument:
    """A YAML file below the plugin data folder.

    Args:
        host: the plugin host providing the data folder and bundled resources
        path: path of the bundled resource; also the destination (relative to
            the data folder) unless `destination` is given
        destination: optional explicit destination path
    """

    def __init__(self, host: PluginHost, path: Union[str, PurePath], destination: Union[str, PurePath, None] = None):
        self.host = host
        self.source_path = host.relative(path)
        self.destination = host.resolve(destination if destination is not None else path)
        self.name = self.destination.name
        self.reload_count = 0
        self._data: Dict[str, Any] = {}

    @property
    def path(self) -> Path:
        return self.destination

    @property
    def loaded(self) -> bool:
        return self.reload_count > 0

    @property
    def stem(self) -> str:
        return self.host.strip_extension(self.name)

    # ----- file handling

    def ensure_file(self) -> None:
        """Create the destination file if missing, copying the bundled resource when shipped."""
        if self.destination.exists():
            return
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        resource = self.host.get_resource(self.source_path)
        if resource is None:
            self.destination.touch()
            return
        try:
            self.destination.write_bytes(resource)
        except OSError:
            log.exception("Error copying data from %s to destination %s", self.source_path, self.destination)
            raise

    def _read(self) -> Dict[str, Any]:
        try:
            self.ensure_file()
            raw = yaml.safe_load(self.destination.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise DocumentLoadFailure(self.name, exc) from exc
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise DocumentLoadFailure(self.name, TypeError(f"top level must be a mapping, got {type(raw).__name__}"))
        return _normalize(raw)

    def _write(self) -> None:
        tmp = self.destination.with_name(self.destination.name + ".tmp")
        try:
            text = yaml.safe_dump(self._data, allow_unicode=True, sort_keys=False, default_flow_style=False)
            self.destination.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(self.destination)
        except (OSError, yaml.YAMLError) as exc:
            if tmp.exists():
                tmp.unlink()
            raise DocumentSaveFailure(self.name, exc) from exc

    def load(self, verbose: bool = True) -> bool:
        """Load the file into memory. Returns False (and keeps the old state) on failure."""
        try:
            data = self._read()
        except DocumentLoadFailure as exc:
            log.warning("Error loading data from %s!", self.name)
            log.error("%s", exc, exc_info=exc.cause)
            return False
        self._data = data
        self.reload_count += 1
        if verbose:
            log.info("Loaded data from %s!", self.name)
        return True

    def save(self, verbose: bool = True) -> bool:
        """Write the in-memory tree to disk. Returns False (file untouched) on failure.

        A document that never loaded successfully is not saved, so an
        unparsable file is left for the owner to fix instead of being emptied.
        """
        if not self.loaded:
            log.warning("Not saving %s: it was never loaded successfully", self.name)
            return False
        try:
            self._write()
        except DocumentSaveFailure as exc:
            log.warning("Error saving data to %s!", self.name)
            log.error("%s", exc, exc_info=exc.cause)
            return False
        if verbose:
            log.info("Saved data to %s!", self.name)
        return True

    def update_from_source(self, verbose: bool = True) -> List[str]:
        """Merge keys from the bundled resource that are missing in this document.

        Returns the dotted paths that were added. The document is not saved.
        """
        resource = self.host.get_resource(self.source_path)
        if resource is None:
            return []
        try:
            defaults = _normalize(yaml.safe_load(resource.decode("utf-8")) or {})
        except (UnicodeDecodeError, yaml.YAMLError):
            log.exception("Bundled resource %s could not be parsed", self.source_path)
            return []
        if not isinstance(defaults, dict):
            return []
        added = []
        for path, value in _walk_leaves(defaults):
            if not self.contains(path):
                self.set(path, copy.deepcopy(value))
                added.append(path)
        if verbose and added:
            log.info("Added %d missing keys to %s from bundled defaults", len(added), self.name)
        return added

    # ----- dotted path access

    def _lookup(self, path: str) -> Any:
        parts = _split(path)
        if not parts:
            return _MISSING
        node: Any = self._data
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node

    def get(self, path: str, default: Any = None) -> Any:
        value = self._lookup(path)
        return default if value is _MISSING else value

    def get_string(self, path: str, default: Optional[str] = None) -> Optional[str]:
        value = self._lookup(path)
        if value is _MISSING:
            return default
        s = _as_string(value)
        return default if s is None else s

    def contains(self, path: str) -> bool:
        return self._lookup(path) is not _MISSING

    __contains__ = contains

    def set(self, path: str, value: Any) -> None:
        """Set `path` to `value`, creating sections on the way. None removes the key."""
        parts = _split(path)
        if not parts:
            raise KeyError("empty path")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                if value is None:
                    return
                child = {}
                node[part] = child
            node = child
        if value is None:
            node.pop(parts[-1], None)
        else:
            node[parts[-1]] = _normalize(value)

    def get_section(self, path: str, deep: bool = False) -> Set[str]:
        """Keys of the section at `path` (dotted and recursive when `deep`)."""
        section = self._data if not _split(path) else self._lookup(path)
        if not isinstance(section, dict):
            return set()
        if deep:
            return set(_walk_keys(section))
        return set(section.keys())

    def get_values(self, path: str = "", deep: bool = False) -> Dict[str, Any]:
        """Values of the section at `path`; whole document for an empty path.

        With `deep` the result is flattened to dotted leaf paths.
        """
        section = self._data if not _split(path) else self._lookup(path)
        if not isinstance(section, dict):
            return {}
        if deep:
            return {k: copy.deepcopy(v) for k, v in _walk_leaves(section)}
        return copy.deepcopy(section)

    def get_parent_path(self, path: str) -> Optional[str]:
        """Path of the section containing the section at `path`.

        Returns "" for top level sections and None when `path` is not a section.
        """
        if not isinstance(self._lookup(path), dict):
            return None
        return SEPARATOR.join(_split(path)[:-1])

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}[path={self.destination},name={self.name}]"


class PlaceholderCache:
    """`%token%` -> value map derived from a document's placeholder section."""

    def __init__(self):
        self._stale = True
        self._replacements: Dict[str, str] = {}
        self.rebuilds = 0

    def is_stale(self) -> bool:
        return self._stale

    def mark_stale(self) -> None:
        self._stale = True

    def mark_fresh(self) -> None:
        self._stale = False

    @property
    def replacements(self) -> Dict[str, str]:
        return dict(self._replacements)

    def rebuild(self, document: YamlDocument, path: str) -> None:
        # build aside and swap so concurrent rebuilds end in the same state
        fresh: Dict[str, str] = {}
        section = document.get(path)
        if isinstance(section, dict):
            for key, value in section.items():
                if isinstance(value, str):
                    fresh[f"%{key}%"] = value
        self._replacements = fresh
        self.rebuilds += 1
        self.mark_fresh()

    def apply(self, text: str) -> str:
        for token, value in self._replacements.items():
            text = text.replace(token, value)
        return text


class LangDocument(YamlDocument):
    """A language resource file with its own placeholder section."""

    def __init__(self, host: PluginHost, path: Union[str, PurePath], destination: Union[str, PurePath, None] = None,
                 placeholder_path: Optional[str] = None):
        super().__init__(host, path, destination)
        self.placeholder_path = placeholder_path or host.placeholder_path
        self.placeholders = PlaceholderCache()

    def load(self, verbose: bool = True) -> bool:
        self.placeholders.mark_stale()
        ok = super().load(verbose)
        # again after the swap so a rebuild racing the read is redone
        self.placeholders.mark_stale()
        return ok

    def refresh_placeholders(self) -> bool:
        """Rebuild the placeholder map if it is stale. Returns True when rebuilt."""
        if not self.placeholders.is_stale():
            return False
        self.placeholders.rebuild(self, self.placeholder_path)
        return True

    def apply_placeholders(self, text: str) -> str:
        self.refresh_placeholders()
        return self.placeholders.apply(text)
