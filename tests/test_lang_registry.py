import logging
import threading

from langcfg.host import PluginHost
from langcfg.utils.documents import LangDocument
from langcfg.utils.lang_registry import LangRegistry
from langcfg.utils.locales import LocaleIndex, LocaleTag

EN, EN_US, EN_GB = LocaleTag("en"), LocaleTag("en", "US"), LocaleTag("en", "GB")
DE, DE_DE, DE_AT = LocaleTag("de"), LocaleTag("de", "DE"), LocaleTag("de", "AT")
FR = LocaleTag("fr")

INDEX = LocaleIndex({"en": [EN, EN_US, EN_GB], "de": [DE, DE_DE, DE_AT], "fr": [FR]})


def _registry(tmp_path, default="en"):
    host = PluginHost("test", tmp_path / "data")
    return LangRegistry(host, default_locale=default, index=INDEX)


def _lang(reg, name, text=""):
    path = reg.host.data_folder / "lang" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return LangDocument(reg.host, f"lang/{name}")


def test_add_language_by_code_binds_every_tag(tmp_path):
    reg = _registry(tmp_path)
    doc = _lang(reg, "en.yml", "hello: Hello\n")
    bound = reg.add_language_by_code(doc, "en")
    assert set(bound) == INDEX.tags_for_language("en")
    for tag in INDEX.tags_for_language("en"):
        assert reg.all_languages()[tag] is doc
    assert doc.get("hello") == "Hello"


def test_add_language_by_code_skips_unknown(tmp_path, caplog):
    reg = _registry(tmp_path)
    doc = _lang(reg, "mixed.yml")
    with caplog.at_level(logging.WARNING, logger="langcfg"):
        bound = reg.add_language_by_code(doc, "xx", "de")
    assert set(bound) == {DE, DE_DE, DE_AT}
    assert "No locale found for language code: xx" in caplog.text


def test_add_language_is_first_wins(tmp_path):
    reg = _registry(tmp_path)
    doc_a = _lang(reg, "a.yml")
    doc_b = _lang(reg, "b.yml")
    assert reg.add_language(doc_a, "en-US") == [EN_US]
    assert reg.add_language(doc_b, "en_us", "en-GB") == [EN_GB]
    assert reg.all_languages()[EN_US] is doc_a
    assert reg.all_languages()[EN_GB] is doc_b


def test_set_default_locale_overwrites(tmp_path):
    reg = _registry(tmp_path)
    doc_a = _lang(reg, "a.yml", "k: A\n")
    doc_b = _lang(reg, "b.yml", "k: B\n")
    reg.add_language(doc_a, "de")
    reg.set_default_locale("de", doc_b)
    assert reg.all_languages()[DE] is doc_b
    assert reg.default_locale == DE
    assert reg.default_document() is doc_b
    assert reg.resolve_string(None, "k") == "B"


def test_fallback_resolution(tmp_path):
    reg = _registry(tmp_path)
    doc_en = _lang(reg, "en.yml", "k: english\n")
    reg.add_language(doc_en, "en")
    assert reg.select_document("fr") is doc_en
    assert reg.select_document("en") is doc_en
    assert reg.select_document(None) is doc_en
    assert reg.resolve_string("fr", "k", "?") == "english"


def test_first_inserted_document_when_default_unbound(tmp_path):
    reg = _registry(tmp_path, default="fr")
    doc_de = _lang(reg, "de.yml")
    doc_en = _lang(reg, "en.yml")
    reg.add_language(doc_de, "de")
    reg.add_language(doc_en, "en")
    assert reg.select_document("it") is doc_de
    assert reg.select_document("not a locale!") is doc_de


def test_empty_registry_returns_fallback_without_substitution(tmp_path, caplog):
    reg = _registry(tmp_path)
    reg.replace("%name%", "World")
    with caplog.at_level(logging.INFO, logger="langcfg"):
        assert reg.resolve_string("en", "greeting", "RAW_%name%") == "RAW_%name%"
    assert "No lang file could be loaded" in caplog.text
    assert reg.select_document("en") is None


def test_placeholders_round_trip(tmp_path):
    reg = _registry(tmp_path)
    doc = _lang(reg, "en.yml", "placeholders:\n  name: World\ngreeting: Hello %name%!\n")
    reg.add_language_by_code(doc, "en")
    assert reg.resolve_string("en-GB", "greeting", "?") == "Hello World!"


def test_missing_key_returns_fallback_verbatim(tmp_path):
    reg = _registry(tmp_path)
    doc = _lang(reg, "en.yml", "placeholders:\n  name: World\n")
    reg.add_language(doc, "en")
    reg.replace("RAW", "cooked")
    assert reg.resolve_string("en", "missing.key", "RAW_%name%") == "RAW_%name%"
    assert reg.resolve_string("en", "missing.key") == "missing.key"


def test_global_replacements_apply_before_document_placeholders(tmp_path):
    reg = _registry(tmp_path)
    doc = _lang(reg, "en.yml", (
        "placeholders:\n"
        "  name: World\n"
        "  other: '%%g%%'\n"
        "version: v%%version%%\n"
        "chained: '%a%'\n"
        "late: '%other%'\n"
    ))
    reg.add_language(doc, "en")
    reg.replace("%%version%%", "1.0")
    reg.replace("%a%", "%name%")
    reg.replace("%%g%%", "G")
    assert reg.resolve_string("en", "version") == "v1.0"
    # global output is visible to the document placeholders
    assert reg.resolve_string("en", "chained") == "World"
    # document output is not revisited by the global map
    assert reg.resolve_string("en", "late") == "%%g%%"


def test_placeholder_map_rebuilt_once_per_load(tmp_path):
    reg = _registry(tmp_path)
    doc = _lang(reg, "en.yml", "placeholders:\n  name: World\ngreeting: Hi %name%\n")
    reg.add_language(doc, "en")
    for _ in range(5):
        assert reg.resolve_string("en", "greeting") == "Hi World"
    assert doc.placeholders.rebuilds == 1
    doc.path.write_text("placeholders:\n  name: There\ngreeting: Hi %name%\n", encoding="utf-8")
    reg.load_all(verbose=False)
    for _ in range(3):
        assert reg.resolve_string("en", "greeting") == "Hi There"
    assert doc.placeholders.rebuilds == 2


def test_bulk_operations_touch_each_document_once(tmp_path, caplog):
    reg = _registry(tmp_path)
    doc = _lang(reg, "en.yml", "k: v\n")
    reg.add_language_by_code(doc, "en")
    assert len(reg) == 3
    assert reg.documents() == [doc]
    before = doc.reload_count
    with caplog.at_level(logging.INFO, logger="langcfg"):
        assert reg.load_all() == 1
        assert reg.save_all() == 1
    assert doc.reload_count == before + 1
    assert caplog.text.count("Loaded data from en.yml") == 1
    assert caplog.text.count("Saved data to en.yml") == 1


def test_load_all_warns_without_default(tmp_path, caplog):
    reg = _registry(tmp_path, default="fr")
    reg.add_language(_lang(reg, "en.yml"), "en")
    with caplog.at_level(logging.WARNING, logger="langcfg"):
        reg.load_all(verbose=False)
    assert "default locale fr" in caplog.text


def test_add_all_from_directory(tmp_path, caplog):
    reg = _registry(tmp_path)
    _lang(reg, "en.yml", "k: english\n")
    _lang(reg, "de.yml", "k: deutsch\n")
    _lang(reg, "xx.yml", "k: unknown\n")
    (reg.host.data_folder / "lang" / "notes.txt").write_text("nope", encoding="utf-8")
    (reg.host.data_folder / "lang" / "nested").mkdir()
    (reg.host.data_folder / "lang" / "nested" / "fr.yml").write_text("k: francais\n", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="langcfg"):
        added = reg.add_all_from_directory("lang")
    assert set(added) == {EN, EN_US, EN_GB, DE, DE_DE, DE_AT}
    assert added[EN] is added[EN_GB]
    assert added[DE] is not added[EN]
    assert len(reg.documents()) == 2
    assert reg.resolve_string("de-AT", "k") == "deutsch"
    assert reg.resolve_string("fr", "k") == "english"
    assert "xx" in caplog.text


def test_add_all_from_missing_directory(tmp_path):
    reg = _registry(tmp_path)
    assert reg.add_all_from_directory("lang") == {}
    assert len(reg) == 0


def test_resolve_for_uses_holder_locale(tmp_path):
    class Player:
        locale = "de_AT"

    reg = _registry(tmp_path)
    reg.add_language(_lang(reg, "en.yml", "k: english\n"), "en")
    reg.add_language_by_code(_lang(reg, "de.yml", "k: deutsch\n"), "de")
    assert reg.resolve_for(Player(), "k") == "deutsch"
    assert reg.resolve_for(object(), "k") == "english"


def test_find_and_shutdown(tmp_path, caplog):
    reg = _registry(tmp_path)
    doc = _lang(reg, "En.yml", "k: v\n")
    reg.add_language(doc, "en")
    assert reg.find("en.YML") is doc
    assert reg.find("de.yml") is None
    assert "en" in reg and "de" not in reg
    doc.set("added", "later")
    with caplog.at_level(logging.INFO, logger="langcfg"):
        reg.shutdown()
    assert "added: later" in doc.path.read_text(encoding="utf-8")
    assert "Saved 1 of 1 language files" in caplog.text


def test_latin_american_spanish_uses_spanish_file(tmp_path):
    host = PluginHost("test", tmp_path / "data")
    reg = LangRegistry(host, default_locale="en")
    reg.add_language_by_code(_lang(reg, "en.yml", "hi: Hello\n"), "en")
    reg.add_language_by_code(_lang(reg, "es.yml", "hi: Hola\n"), "es")
    assert reg.resolve_string("es-419", "hi") == "Hola"
    assert reg.resolve_string("es_ES", "hi") == "Hola"


def test_fallback_while_another_thread_binds(tmp_path):
    reg = _registry(tmp_path, default="fr")
    first = _lang(reg, "first.yml")
    reg.add_language(first, "de")
    stop = threading.Event()

    def bind():
        n = 0
        while not stop.is_set():
            reg.add_language(first, f"qa-{n % 1000:03d}")
            n += 1

    worker = threading.Thread(target=bind)
    worker.start()
    try:
        for _ in range(2000):
            assert reg.select_document("it") is first
    finally:
        stop.set()
        worker.join()
