"""Shared fixtures for ltranslate tests."""
import json
import sys
from pathlib import Path

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

# Ensure src is on path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class MemoryKeyring(KeyringBackend):
    """Keyring backend that keeps passwords in a dict."""
    priority = 1

    def __init__(self):
        super().__init__()
        self.passwords = {}

    def get_password(self, service, username):
        return self.passwords.get((service, username))

    def set_password(self, service, username, password):
        self.passwords[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found") from None


class FakeTranslator:
    """Translation function that records every call.

    Translates by prefixing each text with the target code, e.g. "DE:Hello".
    Set ``fail_on`` to a language code to make calls for it raise.
    """

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def __call__(self, texts, target, source):
        self.calls.append((list(texts), target, source))
        if target == self.fail_on:
            raise RuntimeError(f"provider unavailable for {target}")
        return [f"{target}:{t}" for t in texts]

    @property
    def targets(self):
        return [target for _, target, _ in self.calls]


@pytest.fixture
def fake_translator():
    return FakeTranslator()


@pytest.fixture
def write_json():
    def _write(path, data):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
        return path
    return _write


@pytest.fixture
def read_json():
    def _read(path):
        return json.loads(Path(path).read_text("utf-8"))
    return _read


@pytest.fixture
def project_dir(tmp_path, write_json):
    """A project root with an English locale file at lang/en.json."""
    write_json(tmp_path / "lang" / "en.json", {"greeting": "Hello", "farewell": "Bye"})
    return tmp_path


@pytest.fixture(autouse=True)
def isolate_user_config(tmp_path, monkeypatch):
    """Keep settings and API keys away from the real user environment."""
    monkeypatch.setattr("ltranslate.services.settings._SETTINGS_FILE",
                        tmp_path / "config" / "settings.json")
    from ltranslate.services.settings import Settings
    Settings.reset_instance()
    for name in ("DEEPL_API_KEY", "LTRANSLATE_DEEPL_API_KEY", "LTRANSLATE_LIBRETRANSLATE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    keyring.set_keyring(MemoryKeyring())
    yield
    Settings.reset_instance()


@pytest.fixture
def memory_keyring():
    return keyring.get_keyring()
