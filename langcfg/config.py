"""Environment driven settings for the config and language registries.

Every value comes from a ``LANGCFG_*`` variable (a local .env file is read
first): where the data folder and bundled defaults live, which subfolders
hold config and language files, the fallback locale, the placeholder section
name, the config file extension and the log level.
"""
from typing import Optional, List
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Settings holder for the registries.

    Values are read once at import time; tests and hosts may override them
    on an instance.
    """

    PLUGIN_NAME: str = os.getenv("LANGCFG_PLUGIN_NAME", "langcfg")
    DATA_DIR: Path = Path(os.getenv("LANGCFG_DATA_DIR", str(Path.cwd() / "data")))
    # Bundled default resources copied on first run (optional)
    RESOURCE_DIR: Optional[Path] = Path(os.getenv("LANGCFG_RESOURCE_DIR")) if os.getenv("LANGCFG_RESOURCE_DIR") else None

    # Directory layout below DATA_DIR
    LANG_DIR: str = os.getenv("LANGCFG_LANG_DIR", "lang")
    CONFIG_DIR: str = os.getenv("LANGCFG_CONFIG_DIR", "")

    # Language files
    DEFAULT_LOCALE: str = os.getenv("LANGCFG_DEFAULT_LOCALE", "en")
    PLACEHOLDER_PATH: str = os.getenv("LANGCFG_PLACEHOLDER_PATH", "placeholders")
    CONFIG_EXTENSION: str = os.getenv("LANGCFG_CONFIG_EXTENSION", ".yml")

    LOG_LEVEL: str = os.getenv("LANGCFG_LOG_LEVEL", "INFO").upper()

    def validate(self) -> List[str]:
        """Validate the settings.

        Returns:
            A list of human readable problems (empty if all good).
        """
        problems: List[str] = []
        if not str(self.PLUGIN_NAME).strip():
            problems.append("PLUGIN_NAME must not be empty")
        if not self.CONFIG_EXTENSION.startswith(".") or len(self.CONFIG_EXTENSION) < 2:
            problems.append(f"CONFIG_EXTENSION must look like '.yml', got {self.CONFIG_EXTENSION!r}")
        if not self.PLACEHOLDER_PATH.strip():
            problems.append("PLACEHOLDER_PATH must not be empty")
        if not self.DEFAULT_LOCALE.strip():
            problems.append("DEFAULT_LOCALE must not be empty")
        if self.RESOURCE_DIR is not None and not Path(self.RESOURCE_DIR).is_dir():
            problems.append(f"RESOURCE_DIR {self.RESOURCE_DIR} is not a directory")
        if self.LOG_LEVEL not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            problems.append(f"Unknown LOG_LEVEL {self.LOG_LEVEL!r}")
        return problems
