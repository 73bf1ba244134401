"""Change detection between two locale snapshots and between two language sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from ltranslate.parsers.json_parser import Language


@dataclass
class LocaleDataDiff:
    """Entries that need translating and entries that need pruning."""
    changed_or_added: dict[str, str] = field(default_factory=dict)
    removed: dict[str, str] = field(default_factory=dict)

    @property
    def changed_count(self) -> int:
        return len(self.changed_or_added)

    @property
    def removed_count(self) -> int:
        return len(self.removed)

    def summary(self) -> str:
        return f"{self.changed_count} changed or added, {self.removed_count} removed"


@dataclass
class LanguageDiff:
    """Languages enabled or disabled between two selections."""
    added: list[Language] = field(default_factory=list)
    removed: list[Language] = field(default_factory=list)


def diff_locale_data(original: Mapping[str, str],
                     current: Mapping[str, str]) -> Optional[LocaleDataDiff]:
    """Compare two versions of the source data.

    Returns None when nothing changed. Changed-or-added entries follow the
    order of ``current``; removed entries follow the order of ``original``.
    A key whose value is replaced by an equal value is not a change.
    """
    if original == current:
        return None

    changed_or_added = {
        k: v for k, v in current.items()
        if k not in original or original[k] != v
    }
    removed = {k: v for k, v in original.items() if k not in current}

    if not changed_or_added and not removed:
        return None
    return LocaleDataDiff(changed_or_added=changed_or_added, removed=removed)


def diff_languages(original: Iterable[Language],
                   current: Iterable[Language]) -> Optional[LanguageDiff]:
    """Compare two language selections by code. Returns None when they match."""
    original = list(original)
    current = list(current)
    original_codes = {lang.code for lang in original}
    current_codes = {lang.code for lang in current}

    added: list[Language] = []
    for lang in current:
        if lang.code not in original_codes and lang not in added:
            added.append(lang)
    removed = [lang for lang in original if lang.code not in current_codes]

    if not added and not removed:
        return None
    return LanguageDiff(added=added, removed=removed)
