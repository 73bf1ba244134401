"""Tests for the JSON locale file parser."""
import json
from pathlib import Path

import pytest


class TestParseLocale:
    def test_missing_file_is_none(self, tmp_path):
        from ltranslate.parsers.json_parser import parse_locale_data
        assert parse_locale_data(tmp_path / "nope.json") is None

    def test_parse(self, tmp_path, write_json):
        from ltranslate.parsers.json_parser import parse_locale_data
        path = write_json(tmp_path / "en.json", {"b": "Bee", "a": "Ay"})
        data = parse_locale_data(path)
        assert data == {"b": "Bee", "a": "Ay"}
        assert list(data) == ["b", "a"]

    def test_invalid_json(self, tmp_path):
        from ltranslate.parsers.json_parser import LocaleParseError, parse_locale_data
        path = tmp_path / "en.json"
        path.write_text('{"a": "b",', "utf-8")
        with pytest.raises(LocaleParseError, match="en.json"):
            parse_locale_data(path)

    def test_invalid_utf8_names_file(self, tmp_path):
        from ltranslate.parsers.json_parser import LocaleParseError, parse_locale_data
        path = tmp_path / "en.json"
        path.write_bytes(b'{"greeting": "Hell\xff"}')
        with pytest.raises(LocaleParseError, match="en.json"):
            parse_locale_data(path)

    def test_empty_file_is_malformed(self, tmp_path):
        from ltranslate.parsers.json_parser import LocaleParseError, parse_locale_data
        path = tmp_path / "en.json"
        path.write_text("", "utf-8")
        with pytest.raises(LocaleParseError):
            parse_locale_data(path)

    def test_top_level_must_be_object(self, tmp_path, write_json):
        from ltranslate.parsers.json_parser import LocaleParseError, parse_locale_data
        path = write_json(tmp_path / "en.json", ["Hello"])
        with pytest.raises(LocaleParseError, match="expected a JSON object"):
            parse_locale_data(path)

    @pytest.mark.parametrize("value", [1, None, True, ["x"], {"nested": "x"}])
    def test_non_string_value_names_key_and_file(self, tmp_path, write_json, value):
        from ltranslate.parsers.json_parser import LocaleParseError, parse_locale_data
        path = write_json(tmp_path / "de.json", {"ok": "fine", "count": value})
        with pytest.raises(LocaleParseError) as exc:
            parse_locale_data(path)
        assert "'count'" in str(exc.value)
        assert "de.json" in str(exc.value)

    def test_load_locale(self, tmp_path, write_json):
        from ltranslate.parsers.json_parser import Language, load_locale
        path = write_json(tmp_path / "de.json", {"a": "A"})
        doc = load_locale(path, Language("DE", "German"))
        assert doc.data == {"a": "A"}
        assert doc.language.code == "DE"
        assert doc.path == path
        assert load_locale(tmp_path / "fr.json", Language("FR")) is None


class TestSaveLocale:
    def test_save_preserves_order_and_unicode(self, tmp_path):
        from ltranslate.parsers.json_parser import Language, LocaleDocument, save_locale
        doc = LocaleDocument({"z": "Tschüss", "a": "Hallo"}, Language("DE"), tmp_path / "de.json")
        save_locale(doc)
        text = (tmp_path / "de.json").read_text("utf-8")
        assert "Tschüss" in text
        assert text.endswith("\n")
        assert list(json.loads(text)) == ["z", "a"]

    def test_save_is_deterministic(self, tmp_path):
        from ltranslate.parsers.json_parser import Language, LocaleDocument, save_locale
        doc = LocaleDocument({"a": "1", "b": "2"}, Language("DE"), tmp_path / "de.json")
        save_locale(doc)
        first = (tmp_path / "de.json").read_bytes()
        save_locale(doc)
        assert (tmp_path / "de.json").read_bytes() == first

    def test_save_to_override_path_creates_dirs(self, tmp_path):
        from ltranslate.parsers.json_parser import Language, LocaleDocument, save_locale
        doc = LocaleDocument({"a": "1"}, Language("DE"), tmp_path / "de.json")
        out = save_locale(doc, tmp_path / "nested" / "dir" / "copy.json")
        assert out.exists()
        assert not (tmp_path / "de.json").exists()

    def test_no_temp_files_left_behind(self, tmp_path):
        from ltranslate.parsers.json_parser import Language, LocaleDocument, save_locale
        out_dir = tmp_path / "out"
        doc = LocaleDocument({"a": "1"}, Language("DE"), out_dir / "de.json")
        save_locale(doc)
        assert [p.name for p in out_dir.iterdir()] == ["de.json"]

    def test_failed_replace_keeps_previous_file(self, tmp_path, monkeypatch):
        from ltranslate.parsers.json_parser import Language, LocaleDocument, save_locale
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        path = out_dir / "de.json"
        path.write_text('{"a": "old"}', "utf-8")

        def broken_replace(src, dst):
            raise OSError("disk full")

        with monkeypatch.context() as m:
            m.setattr("ltranslate.parsers.os.replace", broken_replace)
            with pytest.raises(OSError):
                save_locale(LocaleDocument({"a": "new"}, Language("DE"), path))
        assert json.loads(path.read_text("utf-8")) == {"a": "old"}
        assert [p.name for p in out_dir.iterdir()] == ["de.json"]


class TestWriteTextAtomic:
    def test_replace_existing(self, tmp_path):
        from ltranslate.parsers import write_text_atomic
        path = tmp_path / "f.txt"
        path.write_text("old", "utf-8")
        write_text_atomic(path, "new")
        assert path.read_text("utf-8") == "new"
        assert len(list(tmp_path.iterdir())) == 1


class TestLanguage:
    def test_equality_by_code(self):
        from ltranslate.parsers.json_parser import Language
        assert Language("DE", "German") == Language("DE", "Deutsch")
        assert Language("DE") != Language("FR")
        assert len({Language("DE", "German"), Language("DE", "")}) == 1

    def test_str(self):
        from ltranslate.parsers.json_parser import Language, SOURCE_LANGUAGE
        assert str(Language("DE", "German")) == "DE (German)"
        assert str(Language("DE")) == "DE"
        assert SOURCE_LANGUAGE.code == "EN"

    def test_text_pairs(self):
        from ltranslate.parsers.json_parser import text_pairs
        assert text_pairs({"a": "x", "b": "x"}, "test") == [("a", "x"), ("b", "x")]
