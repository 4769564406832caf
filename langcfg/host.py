"""Plugin host adapter.

The registries never touch the filesystem directly through absolute paths;
they ask a `PluginHost` for the plugin data folder and for bundled default
resources. A real host (bot, game server wrapper) builds one from its own
settings via `PluginHost.from_settings`.
"""
from __future__ import annotations

from pathlib import Path, PurePath
from typing import List, Optional, Union

from langcfg.config import Settings
from langcfg.utils.errors import DirectoryUnavailable

PathLike = Union[str, PurePath]


class PluginHost:
    def __init__(self, name: str, data_folder: PathLike, resource_root: Optional[PathLike] = None,
                 extension: str = ".yml", placeholder_path: str = "placeholders"):
        self.name = name
        self.data_folder = Path(data_folder)
        self.resource_root = Path(resource_root) if resource_root is not None else None
        self.extension = extension
        self.placeholder_path = placeholder_path

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PluginHost":
        if settings is None:
            settings = Settings()
        return cls(
            settings.PLUGIN_NAME,
            settings.DATA_DIR,
            settings.RESOURCE_DIR,
            extension=settings.CONFIG_EXTENSION,
            placeholder_path=settings.PLACEHOLDER_PATH,
        )

    def resolve(self, path: PathLike) -> Path:
        """Resolve `path` below the data folder unless it already points there."""
        p = Path(path)
        try:
            p.relative_to(self.data_folder)
            return p
        except ValueError:
            pass
        if p.is_absolute():
            # anchor absolute paths from elsewhere under the data folder
            p = Path(*p.parts[1:])
        return self.data_folder / p

    def relative(self, path: PathLike) -> Path:
        """Path relative to the data folder (used as the bundled resource name)."""
        p = Path(path)
        try:
            return p.relative_to(self.data_folder)
        except ValueError:
            return p

    def get_resource(self, path: PathLike) -> Optional[bytes]:
        """Return the bundled resource at `path`, or None if it is not shipped."""
        if self.resource_root is None:
            return None
        name = str(path).replace("\\", "/").lstrip("/")
        candidate = self.resource_root / name
        if not candidate.is_file():
            return None
        return candidate.read_bytes()

    def list_files(self, path: PathLike) -> List[Path]:
        """List regular files with the configured extension directly in `path`.

        Raises DirectoryUnavailable when the directory is missing or unreadable.
        """
        directory = self.resolve(path)
        if not directory.is_dir():
            raise DirectoryUnavailable(directory)
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            raise DirectoryUnavailable(directory) from exc
        return [e for e in entries if e.is_file() and e.name.endswith(self.extension)]

    def strip_extension(self, file_name: str) -> str:
        if file_name.endswith(self.extension):
            return file_name[: -len(self.extension)]
        return file_name

    def __repr__(self) -> str:
        return f"PluginHost(name={self.name!r}, data_folder={str(self.data_folder)!r})"
