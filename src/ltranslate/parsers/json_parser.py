"""JSON locale file parser (flat key → string maps only)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from ltranslate.parsers import write_text_atomic


class LocaleParseError(ValueError):
    """A locale file exists but is not a flat JSON object of strings."""


@dataclass(frozen=True)
class Language:
    """A language known to the translation provider.

    Languages compare and hash by code only; the name is for display.
    """
    code: str
    name: str = field(default="", compare=False)

    def __str__(self) -> str:
        return f"{self.code} ({self.name})" if self.name else self.code


SOURCE_LANGUAGE = Language("EN", "English")


@dataclass
class LocaleDocument:
    """A parsed locale file: its data, its language and where it lives."""
    data: dict[str, str]
    language: Language
    path: Path


def text_pairs(data: Mapping[str, object], label: str) -> list[tuple[str, str]]:
    """Return ``data`` as an ordered list of (key, text) pairs.

    Raises LocaleParseError naming the key and ``label`` for any value that
    is not a string.
    """
    pairs = []
    for key, value in data.items():
        if not isinstance(value, str):
            raise LocaleParseError(
                f"Encountered non-string value for key '{key}' in {label} "
                f"(got {type(value).__name__})."
            )
        pairs.append((key, value))
    return pairs


def parse_locale_data(path: str | Path) -> Optional[dict[str, str]]:
    """Parse the flat string map stored at ``path``.

    Returns None if the file does not exist, which usually means a language
    has been enabled but its file has not been generated yet.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as e:
        raise LocaleParseError(f"Failed to parse locale file '{path}': {e}") from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LocaleParseError(f"Failed to parse locale file '{path}': {e}") from e
    if not isinstance(data, dict):
        raise LocaleParseError(
            f"Failed to parse locale file '{path}': expected a JSON object, "
            f"got {type(data).__name__}."
        )
    text_pairs(data, f"locale file '{path}'")
    return data


def load_locale(path: str | Path, language: Language) -> Optional[LocaleDocument]:
    """Load a locale document, or None if its file is missing."""
    path = Path(path)
    data = parse_locale_data(path)
    if data is None:
        return None
    return LocaleDocument(data=data, language=language, path=path)


def dump_locale_data(data: Mapping[str, str]) -> str:
    return json.dumps(dict(data), ensure_ascii=False, indent=2) + "\n"


def save_locale(document: LocaleDocument, path: Optional[str | Path] = None) -> Path:
    """Save a locale document to its own path, or to ``path`` if given."""
    out = Path(path) if path else document.path
    write_text_atomic(out, dump_locale_data(document.data))
    return out
