"""Exceptions raised inside langcfg.

Only `UninitializedRegistry` is meant to reach callers; the others are raised
by low level helpers and caught (and logged) by the registries.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional


class LangCfgError(Exception):
    """Base class for all langcfg errors."""


class MissingLocaleCode(LangCfgError, LookupError):
    def __init__(self, code: str):
        super().__init__(f"No locale found for language code: {code}")
        self.code = code


class DocumentLoadFailure(LangCfgError):
    def __init__(self, name: str, cause: Optional[BaseException] = None):
        super().__init__(f"Error loading data from {name}: {cause}")
        self.name = name
        self.cause = cause


class DocumentSaveFailure(LangCfgError):
    def __init__(self, name: str, cause: Optional[BaseException] = None):
        super().__init__(f"Error saving data to {name}: {cause}")
        self.name = name
        self.cause = cause


class DirectoryUnavailable(LangCfgError):
    def __init__(self, path: Path):
        super().__init__(f"Directory {path} does not exist or is not readable")
        self.path = path


class UninitializedRegistry(LangCfgError, RuntimeError):
    def __init__(self, what: str = "registries"):
        super().__init__(f"langcfg {what} have not been initialized; call create_context() first")
