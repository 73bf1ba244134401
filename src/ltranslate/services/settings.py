"""Settings service: user defaults in ~/.config/ltranslate/settings.json and project paths."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

log = logging.getLogger("ltranslate.settings")

_SETTINGS_FILE = Path.home() / ".config" / "ltranslate" / "settings.json"

APP_DIR_NAME = "ltranslate"
MANIFEST_NAME = "manifest.yaml"
HISTORY_NAME = "source-history.json"

DEFAULTS: dict[str, Any] = {
    # Translation
    "default_engine": "deepl",
    "formality": "default",  # default / more / less / prefer_more / prefer_less
    "libretranslate_url": "https://libretranslate.com",

    # Project
    "locales_dir": "lang",
}


class Settings:
    """User defaults read from a JSON file. Keys missing from the file fall back to DEFAULTS."""

    _instance: Optional[Settings] = None

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else _SETTINGS_FILE
        self._overrides: dict[str, Any] = _read_settings(self.path)

    @classmethod
    def get(cls) -> Settings:
        if cls._instance is None:
            cls._instance = Settings()
        return cls._instance

    @classmethod
    def reset_instance(cls):
        cls._instance = None

    def __getitem__(self, key: str) -> Any:
        return self._overrides.get(key, DEFAULTS.get(key))

    def engine_options(self, engine: Optional[str] = None) -> dict[str, Any]:
        """Keyword options passed to a translation engine (the default one if not given)."""
        engine = engine or self["default_engine"]
        if engine == "deepl":
            return {"formality": self["formality"]}
        if engine == "libretranslate":
            return {"instance": self["libretranslate_url"]}
        return {}


def _read_settings(path: Path) -> dict[str, Any]:
    try:
        stored = json.loads(path.read_text("utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        log.warning("Ignoring unreadable settings file %s: %s", path, e)
        return {}
    return stored if isinstance(stored, dict) else {}


@dataclass(frozen=True)
class ProjectLayout:
    """Where a project keeps its manifest and source snapshot.

    Relative locale paths stored in the manifest are resolved against ``root``.
    """
    root: Path

    @property
    def app_dir(self) -> Path:
        return self.root / APP_DIR_NAME

    @property
    def manifest_path(self) -> Path:
        return self.app_dir / MANIFEST_NAME

    @property
    def history_path(self) -> Path:
        return self.app_dir / HISTORY_NAME

    def resolve(self, path: str | Path) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    def ensure_app_dir(self) -> None:
        self.app_dir.mkdir(parents=True, exist_ok=True)
