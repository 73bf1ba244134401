"""Project sync: keep derived locale files in step with the English source file.

An update diffs the source file against the snapshot taken at the last
successful sync, translates only changed or added entries (one provider call
per language), prunes removed entries and leaves everything else untouched.

Every translation for a run is obtained before anything is written, and the
snapshot and manifest are written last. A run that fails therefore leaves the
snapshot where it was and can simply be repeated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Optional

from ltranslate.parsers.json_parser import (
    SOURCE_LANGUAGE, Language, LocaleDocument, load_locale, save_locale, text_pairs,
)
from ltranslate.services.diff import (
    LanguageDiff, LocaleDataDiff, diff_languages, diff_locale_data,
)
from ltranslate.services.manifest import LocaleManifest, load_manifest, save_manifest
from ltranslate.services.settings import ProjectLayout
from ltranslate.services.translator import TranslateFn, make_translator, translate_pairs

log = logging.getLogger("ltranslate.sync")

_SETUP_HINT = (
    "Ensure you are in the correct working directory and run 'ltranslate project setup' "
    "to install ltranslate into your project if necessary."
)


class SyncError(Exception):
    """Base class for project sync failures."""


class MissingFileError(SyncError):
    """A file the operation depends on does not exist."""


class ManifestDriftError(SyncError):
    """The manifest and the locale files on disk disagree."""


class ProjectError(SyncError):
    """The project is not in a state the operation accepts."""


class PendingChangesError(SyncError):
    """The source file has changes that have not been synced yet."""


@dataclass
class SyncReport:
    """What a sync operation did."""
    diff: Optional[LocaleDataDiff] = None
    language_diff: Optional[LanguageDiff] = None
    translated: list[str] = field(default_factory=list)  # language codes
    texts_sent: int = 0
    written: list[Path] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.written


class ProjectSync:
    """Runs setup, update and language changes for one project directory."""

    def __init__(self, layout: ProjectLayout, translate_fn: Optional[TranslateFn] = None):
        self.layout = layout
        self._translate_fn = translate_fn

    @property
    def translate_fn(self) -> TranslateFn:
        if self._translate_fn is None:
            self._translate_fn = make_translator()
        return self._translate_fn

    # ── Loading ───────────────────────────────────────────────────

    def is_set_up(self) -> bool:
        return self.layout.manifest_path.exists()

    def load_manifest(self) -> LocaleManifest:
        manifest = load_manifest(self.layout.manifest_path)
        if manifest is None:
            raise MissingFileError(f"Missing project data. {_SETUP_HINT}")
        return manifest

    def load_source(self, manifest: LocaleManifest) -> LocaleDocument:
        path = self.layout.resolve(manifest.source_locale_path)
        document = load_locale(path, SOURCE_LANGUAGE)
        if document is None:
            raise MissingFileError(f"Missing source locale file '{path}'. {_SETUP_HINT}")
        return document

    def load_history(self) -> LocaleDocument:
        document = load_locale(self.layout.history_path, SOURCE_LANGUAGE)
        if document is None:
            raise MissingFileError(
                f"Missing source locale history file '{self.layout.history_path}'. {_SETUP_HINT}"
            )
        return document

    def load_derived(self, manifest: LocaleManifest, language: Language) -> LocaleDocument:
        path = manifest.locale_paths.get(language.code)
        if path is None:
            raise ManifestDriftError(
                f"Missing locale path for language '{language.code}' in manifest."
            )
        document = load_locale(self.layout.resolve(path), language)
        if document is None:
            raise ManifestDriftError(
                f"Missing locale file for language '{language.code}' "
                f"({self.layout.resolve(path)})."
            )
        return document

    def pending_diff(self, manifest: Optional[LocaleManifest] = None) -> Optional[LocaleDataDiff]:
        """Changes made to the source file since the last successful sync."""
        manifest = manifest or self.load_manifest()
        history = self.load_history()
        source = self.load_source(manifest)
        return diff_locale_data(history.data, source.data)

    def ensure_not_set_up(self) -> None:
        if self.is_set_up():
            raise ProjectError(
                "Project has already been set up. To fully reset the project, "
                f"remove the '{self.layout.app_dir}' directory."
            )

    def ensure_no_pending_changes(self, manifest: Optional[LocaleManifest] = None) -> None:
        if self.pending_diff(manifest) is not None:
            raise PendingChangesError(
                "Language list cannot be edited after changes have been made to the source "
                "locale file. Please update all translations using 'ltranslate project update' "
                "and try again."
            )

    # ── Operations ────────────────────────────────────────────────

    def setup(self, source_path: str | Path, languages: Iterable[Language],
              output_paths: Mapping[str, str | Path]) -> SyncReport:
        """Create a project: translate the full source into every language."""
        self.ensure_not_set_up()
        manifest = LocaleManifest(source_locale_path=Path(source_path))
        source = self.load_source(manifest)
        languages = _unique(languages)
        for lang in languages:
            manifest.add_language(lang, _output_path(output_paths, lang))

        report = SyncReport()
        log.info("Translation in progress. Please wait...")
        pairs = _source_pairs(source)
        documents = [self._translate_full(pairs, lang, manifest.locale_paths[lang.code], report)
                     for lang in languages]
        self._write_documents(documents, report)

        log.info("All translations complete! Writing app data...")
        self._commit(manifest, source, report)
        return report

    def update(self) -> SyncReport:
        """Retranslate only what changed in the source since the last sync."""
        manifest = self.load_manifest()
        history = self.load_history()
        source = self.load_source(manifest)

        diff = diff_locale_data(history.data, source.data)
        report = SyncReport(diff=diff)
        if diff is None:
            log.info("Source locale is unchanged; nothing to update.")
            return report
        log.info("Source locale changes: %s", diff.summary())

        documents = [self.load_derived(manifest, lang) for lang in manifest.languages]
        for document in documents:
            _check_removable(document, diff.removed)

        pairs = text_pairs(diff.changed_or_added, "source locale changes")
        for document in documents:
            translated = {}
            if pairs:
                translated = translate_pairs(pairs, document.language, self.translate_fn)
                report.translated.append(document.language.code)
                report.texts_sent += len(pairs)
            for key in diff.removed:
                del document.data[key]
            document.data.update(translated)

        self._write_documents(documents, report)
        self._commit(manifest, source, report)
        return report

    def change_languages(self, selected: Iterable[Language],
                         output_paths: Optional[Mapping[str, str | Path]] = None) -> SyncReport:
        """Enable and disable languages.

        Added languages get a full translation of the current source file.
        Removed languages are dropped from the manifest; their files are kept.
        Rejected while the source file has unsynced changes.
        """
        manifest = self.load_manifest()
        self.ensure_no_pending_changes(manifest)
        source = self.load_source(manifest)

        language_diff = diff_languages(manifest.languages, selected)
        report = SyncReport(language_diff=language_diff)
        if language_diff is None:
            log.info("Enabled languages are unchanged.")
            return report

        output_paths = output_paths or {}
        added_paths = {lang.code: _output_path(output_paths, lang) for lang in language_diff.added}

        pairs = _source_pairs(source)
        documents = [self._translate_full(pairs, lang, added_paths[lang.code], report)
                     for lang in language_diff.added]

        manifest.remove_languages(language_diff.removed)
        if language_diff.removed:
            log.warning(
                "Removed %s. Note that the files are not deleted automatically, so if you "
                "wish to delete them, remember to do so.",
                ", ".join(lang.code for lang in language_diff.removed),
            )
        for lang in language_diff.added:
            manifest.add_language(lang, added_paths[lang.code])

        self._write_documents(documents, report)
        save_manifest(manifest, self.layout.manifest_path)
        report.written.append(self.layout.manifest_path)
        return report

    def set_source_path(self, source_path: str | Path) -> LocaleManifest:
        """Point the project at a different source locale file."""
        manifest = self.load_manifest()
        manifest.source_locale_path = Path(source_path)
        self.load_source(manifest)
        save_manifest(manifest, self.layout.manifest_path)
        return manifest

    def translate_file(self, input_path: str | Path, output_path: str | Path,
                       language: Language) -> SyncReport:
        """Translate a single locale file in its entirety, outside project mode.

        Relative input and output paths are both resolved against the project root.
        """
        input_path = self.layout.resolve(input_path)
        source = load_locale(input_path, SOURCE_LANGUAGE)
        if source is None:
            raise MissingFileError(f"Missing input file '{input_path}'.")
        report = SyncReport()
        document = self._translate_full(_source_pairs(source), language, output_path, report)
        self._write_documents([document], report)
        return report

    # ── Internals ─────────────────────────────────────────────────

    def _translate_full(self, pairs: list[tuple[str, str]], language: Language,
                        path: str | Path, report: SyncReport) -> LocaleDocument:
        translated = translate_pairs(pairs, language, self.translate_fn)
        report.translated.append(language.code)
        report.texts_sent += len(pairs)
        log.info("Successfully translated locale '%s'.", language.code)
        return LocaleDocument(data=translated, language=language, path=self.layout.resolve(path))

    def _write_documents(self, documents: Iterable[LocaleDocument], report: SyncReport) -> None:
        for document in documents:
            report.written.append(save_locale(document))
            log.debug("Wrote %s", document.path)

    def _commit(self, manifest: LocaleManifest, source: LocaleDocument,
                report: SyncReport) -> None:
        """Write the manifest and the new source snapshot."""
        self.layout.ensure_app_dir()
        save_manifest(manifest, self.layout.manifest_path)
        report.written.append(self.layout.manifest_path)
        report.written.append(save_locale(source, self.layout.history_path))
        log.info("App data written successfully.")


def _unique(languages: Iterable[Language]) -> list[Language]:
    result: list[Language] = []
    for lang in languages:
        if lang not in result:
            result.append(lang)
    return result


def _source_pairs(source: LocaleDocument) -> list[tuple[str, str]]:
    return text_pairs(source.data, f"source locale file '{source.path}'")


def _output_path(output_paths: Mapping[str, str | Path], language: Language) -> Path:
    try:
        return Path(output_paths[language.code])
    except KeyError:
        raise ProjectError(f"No output path given for language '{language.code}'.") from None


def _check_removable(document: LocaleDocument, removed: Mapping[str, str]) -> None:
    missing = [k for k in removed if k not in document.data]
    if missing:
        raise ManifestDriftError(
            f"Failed to remove key '{missing[0]}' from locale '{document.language.code}': "
            "the key is not present in the locale file."
        )
