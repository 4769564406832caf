"""Language registry: locale -> language file resolution and string lookup.

Lookup order for a requested locale:

1. the file bound to that exact locale tag,
2. the file bound to the default locale,
3. the first file ever bound.

The resolved string gets the global replacements applied first and the
document's own ``%placeholder%`` values second. Both are plain sequential
`str.replace` passes, so a value introduced by one replacement may be matched
by a later token.
"""
from __future__ import annotations

import threading
from pathlib import PurePath
from typing import Any, Dict, List, Optional, Union

from langcfg.host import PluginHost
from langcfg.utils.documents import LangDocument
from langcfg.utils.errors import DirectoryUnavailable, MissingLocaleCode
from langcfg.utils.locales import Lang, LocaleIndex, LocaleTag, default_index
from langcfg.utils.logger import get_logger

log = get_logger("langcfg.langs")

LocaleLike = Union[LocaleTag, Lang, str]


class LangRegistry:
    def __init__(self, host: PluginHost, default_locale: LocaleLike = "en", index: Optional[LocaleIndex] = None):
        self.host = host
        self.index = index if index is not None else default_index()
        self._langs: Dict[LocaleTag, LangDocument] = {}
        self._replacements: Dict[str, str] = {}
        self._default = LocaleTag.parse(default_locale)
        self._lock = threading.RLock()

    # ----- global replacements

    def replace(self, token: str, value: str) -> None:
        """Replace every literal `token` with `value` in all looked-up strings."""
        self._replacements[token] = value

    def remove_replacement(self, token: str) -> None:
        self._replacements.pop(token, None)

    @property
    def replacements(self) -> Dict[str, str]:
        return dict(self._replacements)

    # ----- default locale

    @property
    def default_locale(self) -> LocaleTag:
        return self._default

    def set_default_locale(self, locale: LocaleLike, document: Optional[LangDocument] = None) -> None:
        """Make `locale` the fallback locale.

        With a document, `locale` is (re)bound to it even if already bound.
        """
        tag = LocaleTag.parse(locale)
        with self._lock:
            if document is not None:
                self._langs[tag] = document
            self._default = tag
            if document is not None:
                document.load(verbose=False)

    def default_document(self) -> Optional[LangDocument]:
        return self._langs.get(self._default)

    # ----- binding

    def add_language(self, document: LangDocument, locale: LocaleLike, *extra: LocaleLike) -> List[LocaleTag]:
        """Bind `document` to one or more exact locale tags.

        Tags that are already bound keep their file. Returns the tags bound by
        this call; the document is loaded silently if there is at least one.
        """
        tags = [LocaleTag.parse(loc) for loc in (locale, *extra)]
        return self._bind(document, tags)

    def add_language_by_code(self, document: LangDocument, code: str, *extra_codes: str) -> List[LocaleTag]:
        """Bind `document` to every known locale of the given language codes.

        e.g. ``"en"`` -> en, en-US, en-GB, en-CA, ... Unknown codes are skipped
        with a warning.
        """
        tags: List[LocaleTag] = []
        for c in (code, *extra_codes):
            try:
                tags.extend(sorted(self.index.require(c)))
            except MissingLocaleCode as exc:
                log.warning("%s", exc)
        return self._bind(document, tags)

    def _bind(self, document: LangDocument, tags: List[LocaleTag]) -> List[LocaleTag]:
        with self._lock:
            bound = []
            for tag in tags:
                if tag not in self._langs:
                    self._langs[tag] = document
                    bound.append(tag)
            if bound:
                document.load(verbose=False)
            return bound

    def add_all_from_directory(self, path: Union[str, PurePath]) -> Dict[LocaleTag, LangDocument]:
        """Bind every language file directly inside `path` (relative to the data folder).

        Files are named after their language code (``en.yml``, ``de.yml``); a
        regional name such as ``en_US.yml`` still binds all of English. Files
        are not copied from bundled resources, this is meant for languages the
        server owner adds without code changes.
        """
        with self._lock:
            try:
                files = self.host.list_files(path)
            except DirectoryUnavailable as exc:
                log.warning("%s; no language files loaded", exc)
                return {}
            added: Dict[LocaleTag, LangDocument] = {}
            for file in files:
                stem = self.host.strip_extension(file.name)
                tag = LocaleTag.try_parse(stem)
                if tag is None:
                    log.warning("No locale found for file: %s", file.name)
                    continue
                tags = self.index.tags_for_language(tag.language)
                if not tags:
                    continue
                document = LangDocument(self.host, file)
                for bound in self._bind(document, sorted(tags)):
                    added[bound] = document
            return added

    # ----- bulk operations

    def documents(self) -> List[LangDocument]:
        """Distinct documents in binding order."""
        seen = set()
        unique = []
        for document in list(self._langs.values()):
            if id(document) not in seen:
                seen.add(id(document))
                unique.append(document)
        return unique

    def load_all(self, verbose: bool = True) -> int:
        with self._lock:
            loaded = sum(1 for document in self.documents() if document.load(verbose))
            if self._default not in self._langs:
                log.warning("No language file bound to the default locale %s!", self._default)
            return loaded

    def save_all(self, verbose: bool = True) -> int:
        with self._lock:
            return sum(1 for document in self.documents() if document.save(verbose))

    def shutdown(self) -> None:
        with self._lock:
            documents = self.documents()
            if not documents:
                return
            saved = self.save_all(verbose=False)
            log.info("Saved %d of %d language files!", saved, len(documents))

    # ----- lookup

    def select_document(self, locale: Optional[LocaleLike] = None) -> Optional[LangDocument]:
        """Pick the language file for `locale` (see module docstring for the order)."""
        langs = self._langs
        if not langs:
            return None
        tag = LocaleTag.try_parse(locale)
        if tag is not None:
            document = langs.get(tag)
            if document is not None:
                return document
        document = langs.get(self._default)
        if document is not None:
            return document
        return next(iter(list(langs.values())), None)

    def resolve_string(self, locale: Optional[LocaleLike], key: str, fallback: Optional[str] = None) -> str:
        """Look up `key` for `locale` with replacements applied.

        Returns `fallback` (or the key itself) unchanged when there is no
        language file or the key is missing.
        """
        if fallback is None:
            fallback = key
        document = self.select_document(locale)
        if document is None:
            log.info("No lang file could be loaded for request: %s, using default value!", key)
            return fallback
        text = document.get_string(key)
        if text is None:
            return fallback
        for token, value in list(self._replacements.items()):
            text = text.replace(token, value)
        return document.apply_placeholders(text)

    def resolve_for(self, holder: Any, key: str, fallback: Optional[str] = None) -> str:
        """Like `resolve_string` using ``holder.locale`` (a player, member or interaction)."""
        return self.resolve_string(getattr(holder, "locale", None), key, fallback)

    # ----- introspection

    def all_languages(self) -> Dict[LocaleTag, LangDocument]:
        with self._lock:
            return dict(self._langs)

    def find(self, file_name: str) -> Optional[LangDocument]:
        """Language file by its file name, case-insensitive."""
        wanted = file_name.lower()
        for document in self.documents():
            if document.name.lower() == wanted:
                return document
        return None

    def __contains__(self, locale: object) -> bool:
        tag = LocaleTag.try_parse(locale)
        return tag is not None and tag in self._langs

    def __len__(self) -> int:
        return len(self._langs)
