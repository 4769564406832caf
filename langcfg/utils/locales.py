"""Locale tags and the language-code index.

The index groups every locale the interpreter knows about (from
`locale.locale_alias`) together with every locale a Discord client can report
(`discord.Locale`, which has tags such as es-419 that glibc lacks) by its
language code so that a single language file
such as ``en.yml`` can be bound to en-US, en-GB, en-AU and friends at once.
It is built once per process and never mutated afterwards.
"""
from __future__ import annotations

import enum
import itertools
import locale
import re
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

import discord

from langcfg.utils.errors import MissingLocaleCode
from langcfg.utils.logger import get_logger

log = get_logger("langcfg.locales")

_LANGUAGE_RE = re.compile(r"^[a-zA-Z]{2,8}$")
_SCRIPT_RE = re.compile(r"^[a-zA-Z]{4}$")
_REGION_RE = re.compile(r"^(?:[a-zA-Z]{2}|\d{3})$")


@dataclass(frozen=True, order=True)
class LocaleTag:
    language: str
    region: str = ""
    script: str = ""
    variant: str = ""

    @classmethod
    def parse(cls, value: Any) -> "LocaleTag":
        """Parse 'en', 'en-US', 'en_us', 'zh-Hant-TW', 'sr_RS.UTF-8@latin' and similar.

        Raises ValueError if no language code can be extracted.
        """
        if isinstance(value, LocaleTag):
            return value
        if isinstance(value, Lang):
            return value.tag
        text = str(value).strip()
        # POSIX style: drop encoding and modifier
        text = text.split("@", 1)[0].split(".", 1)[0]
        parts = [p for p in re.split(r"[-_]", text) if p]
        if not parts or not _LANGUAGE_RE.match(parts[0]):
            raise ValueError(f"Not a locale tag: {value!r}")
        language = parts[0].lower()
        rest = parts[1:]
        script = region = ""
        if rest and _SCRIPT_RE.match(rest[0]):
            script = rest.pop(0).title()
        if rest and _REGION_RE.match(rest[0]):
            region = rest.pop(0).upper()
        variant = "-".join(rest).lower()
        return cls(language, region, script, variant)

    @classmethod
    def try_parse(cls, value: Any) -> Optional["LocaleTag"]:
        if value is None:
            return None
        try:
            return cls.parse(value)
        except ValueError:
            return None

    def same_language(self, other: "LocaleTag") -> bool:
        return self.language.lower() == other.language.lower()

    def __str__(self) -> str:
        return "-".join(p for p in (self.language, self.script, self.region, self.variant) if p)


class Lang(enum.Enum):
    """Commonly used locales."""

    ENGLISH = "en-us"
    SPANISH = "es-es"
    FRENCH = "fr-fr"
    GERMAN = "de-de"
    ITALIAN = "it-it"
    DUTCH = "nl-nl"
    PORTUGUESE = "pt-pt"
    RUSSIAN = "ru-ru"
    JAPANESE = "ja-jp"
    CHINESE = "zh-cn"
    KOREAN = "ko-kr"

    @property
    def tag(self) -> LocaleTag:
        return LocaleTag.parse(self.value)


class LocaleIndex:
    """Immutable mapping of language code -> every known tag of that language."""

    def __init__(self, groups: Mapping[str, Iterable[LocaleTag]]):
        self._groups: Dict[str, FrozenSet[LocaleTag]] = {
            code.lower(): frozenset(tags) for code, tags in groups.items()
        }

    @classmethod
    def build(cls, extra: Iterable[Any] = ()) -> "LocaleIndex":
        """Group the interpreter's known locales (plus `extra`) by language code."""
        grouped: Dict[str, set] = defaultdict(set)
        sources = itertools.chain(locale.locale_alias.values(), (m.value for m in Lang), extra)
        for raw in sources:
            tag = LocaleTag.try_parse(raw)
            if tag is None:
                continue
            grouped[tag.language].add(tag)
            # the bare language is a valid tag too
            grouped[tag.language].add(LocaleTag(tag.language))
        return cls(grouped)

    def tags_for_language(self, code: str) -> FrozenSet[LocaleTag]:
        """All tags sharing `code`; empty (and a warning) if the code is unknown."""
        try:
            return self.require(code)
        except MissingLocaleCode as exc:
            log.warning("%s", exc)
            return frozenset()

    def require(self, code: str) -> FrozenSet[LocaleTag]:
        tags = self._groups.get(str(code).strip().lower())
        if not tags:
            raise MissingLocaleCode(code)
        return tags

    def languages(self) -> FrozenSet[str]:
        return frozenset(self._groups)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.strip().lower() in self._groups

    def __len__(self) -> int:
        return len(self._groups)


_INDEX: Optional[LocaleIndex] = None
_INDEX_LOCK = threading.Lock()


def default_index() -> LocaleIndex:
    """Process wide index, built on first use."""
    global _INDEX
    if _INDEX is None:
        with _INDEX_LOCK:
            if _INDEX is None:
                _INDEX = LocaleIndex.build(extra=(loc.value for loc in discord.Locale))
    return _INDEX
