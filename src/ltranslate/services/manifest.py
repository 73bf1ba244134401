"""Project manifest: load/save ltranslate/manifest.yaml.

The manifest records the source locale path, the path of every derived
locale file and the display name of every enabled language::

    source_locale_path: lang/en.json
    locale_paths:
      DE: lang/de.json
    language_names:
      DE: German
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import yaml

from ltranslate.parsers import write_text_atomic
from ltranslate.parsers.json_parser import Language


class ManifestError(ValueError):
    """The manifest file exists but cannot be read as a manifest."""


@dataclass
class LocaleManifest:
    """Project configuration shared by every project command."""
    source_locale_path: Path
    locale_paths: dict[str, Path] = field(default_factory=dict)
    languages: list[Language] = field(default_factory=list)

    def add_language(self, language: Language, path: str | Path) -> None:
        self.locale_paths[language.code] = Path(path)
        if language not in self.languages:
            self.languages.append(language)

    def remove_languages(self, languages: Iterable[Language]) -> None:
        """Stop tracking languages. Their files are left on disk."""
        codes = {lang.code for lang in languages}
        self.languages = [lang for lang in self.languages if lang.code not in codes]
        for code in codes:
            self.locale_paths.pop(code, None)

    def to_dict(self) -> dict:
        return {
            "source_locale_path": Path(self.source_locale_path).as_posix(),
            "locale_paths": {code: Path(p).as_posix() for code, p in self.locale_paths.items()},
            "language_names": {lang.code: lang.name for lang in self.languages},
        }

    @classmethod
    def from_dict(cls, data: object) -> LocaleManifest:
        if not isinstance(data, dict):
            raise ManifestError("Manifest must be a mapping.")
        source = data.get("source_locale_path")
        if not isinstance(source, str) or not source:
            raise ManifestError("Manifest is missing 'source_locale_path'.")
        locale_paths = _string_map(data.get("locale_paths"), "locale_paths")
        language_names = _string_map(data.get("language_names"), "language_names")
        return cls(
            source_locale_path=Path(source),
            locale_paths={code: Path(p) for code, p in locale_paths.items()},
            languages=[Language(code, name) for code, name in language_names.items()],
        )


def _string_map(value: object, name: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ManifestError(f"Manifest field '{name}' must be a mapping.")
    result = {}
    for k, v in value.items():
        if not isinstance(k, str) or not isinstance(v, str):
            raise ManifestError(f"Manifest field '{name}' must map strings to strings (entry '{k}').")
        result[k] = v
    return result


def load_manifest(path: str | Path) -> Optional[LocaleManifest]:
    """Load the manifest at ``path``, or None if the project has not been set up."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        return None
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise ManifestError(f"Failed to parse manifest file '{path}': {e}") from e
    try:
        return LocaleManifest.from_dict(data)
    except ManifestError as e:
        raise ManifestError(f"Failed to parse manifest file '{path}': {e}") from e


def save_manifest(manifest: LocaleManifest, path: str | Path) -> None:
    text = yaml.safe_dump(
        manifest.to_dict(), allow_unicode=True, default_flow_style=False, sort_keys=False
    )
    write_text_atomic(path, text)
