"""Tests for Settings service and project layout."""
import json

import pytest


@pytest.fixture
def write_settings():
    from ltranslate.services import settings

    def _write(content):
        path = settings._SETTINGS_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content if isinstance(content, str) else json.dumps(content), "utf-8")
        return path
    return _write


class TestSettings:
    def test_get_singleton(self):
        from ltranslate.services.settings import Settings
        assert Settings.get() is Settings.get()

    def test_defaults(self):
        from ltranslate.services.settings import Settings, DEFAULTS
        s = Settings.get()
        for key, default_val in DEFAULTS.items():
            assert s[key] == default_val, f"Default mismatch for {key}"
        assert s["nonexistent"] is None

    def test_file_overrides_defaults(self, write_settings):
        from ltranslate.services.settings import Settings
        write_settings({"formality": "less", "custom": 1})
        s = Settings.get()
        assert s["formality"] == "less"
        assert s["custom"] == 1
        assert s["locales_dir"] == "lang"

    def test_reset_rereads_file(self, write_settings):
        from ltranslate.services.settings import Settings
        assert Settings.get()["default_engine"] == "deepl"
        write_settings({"default_engine": "libretranslate"})
        assert Settings.get()["default_engine"] == "deepl"
        Settings.reset_instance()
        assert Settings.get()["default_engine"] == "libretranslate"

    def test_explicit_path(self, tmp_path):
        from ltranslate.services.settings import Settings
        path = tmp_path / "other.json"
        path.write_text(json.dumps({"locales_dir": "locales"}), "utf-8")
        assert Settings(path)["locales_dir"] == "locales"

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
    def test_unusable_file_falls_back_to_defaults(self, write_settings, content):
        from ltranslate.services.settings import Settings
        write_settings(content)
        assert Settings.get()["default_engine"] == "deepl"

    def test_engine_options(self, write_settings):
        from ltranslate.services.settings import Settings
        assert Settings.get().engine_options() == {"formality": "default"}
        write_settings({"libretranslate_url": "http://lt.local", "default_engine": "libretranslate"})
        Settings.reset_instance()
        s = Settings.get()
        assert s.engine_options() == {"instance": "http://lt.local"}
        assert s.engine_options("deepl") == {"formality": "default"}
        assert s.engine_options("nope") == {}


class TestProjectLayout:
    def test_paths(self, tmp_path):
        from ltranslate.services.settings import ProjectLayout
        layout = ProjectLayout(tmp_path)
        assert layout.app_dir == tmp_path / "ltranslate"
        assert layout.manifest_path == tmp_path / "ltranslate" / "manifest.yaml"
        assert layout.history_path == tmp_path / "ltranslate" / "source-history.json"

    def test_resolve(self, tmp_path):
        from ltranslate.services.settings import ProjectLayout
        layout = ProjectLayout(tmp_path)
        assert layout.resolve("lang/de.json") == tmp_path / "lang" / "de.json"
        absolute = (tmp_path / "x.json").resolve()
        assert layout.resolve(absolute) == absolute

    def test_ensure_app_dir(self, tmp_path):
        from ltranslate.services.settings import ProjectLayout
        layout = ProjectLayout(tmp_path)
        layout.ensure_app_dir()
        layout.ensure_app_dir()
        assert layout.app_dir.is_dir()
