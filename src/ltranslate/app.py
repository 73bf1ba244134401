"""ltranslate command line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from ltranslate import APP_NAME, __version__, prompts
from ltranslate.parsers.json_parser import Language, LocaleParseError
from ltranslate.services.diff import diff_languages
from ltranslate.services.keystore import delete_secret, secret_source, store_secret
from ltranslate.services.manifest import ManifestError
from ltranslate.services.settings import ProjectLayout, Settings
from ltranslate.services.sync import (
    MissingFileError, PendingChangesError, ProjectError, ProjectSync, SyncError,
)
from ltranslate.services.translator import (
    ENGINES, TranslationError, check_deepl_key, get_target_languages, make_translator,
)

log = logging.getLogger("ltranslate")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PENDING_CHANGES = 2
EXIT_INTERRUPTED = 130


class Canceled(Exception):
    pass


# ── Helpers ───────────────────────────────────────────────────────────

def _engine(args) -> str:
    return args.engine or Settings.get()["default_engine"]


def _layout(args) -> ProjectLayout:
    return ProjectLayout(Path(args.project_dir))


def _sync(args) -> ProjectSync:
    engine = _engine(args)
    translate_fn = make_translator(engine, **Settings.get().engine_options(engine))
    return ProjectSync(_layout(args), translate_fn)


def _available_languages(args) -> list[Language]:
    engine = _engine(args)
    return get_target_languages(engine, **Settings.get().engine_options(engine))


def _parse_languages(value: str, available: Sequence[Language]) -> list[Language]:
    """Resolve a comma-separated list of language codes against ``available``."""
    by_code = {lang.code.upper(): lang for lang in available}
    result: list[Language] = []
    for code in (c.strip().upper() for c in value.split(",")):
        if not code:
            continue
        if code not in by_code:
            raise ProjectError(f"Unknown target language '{code}'.")
        if by_code[code] not in result:
            result.append(by_code[code])
    return result


def _output_paths(args, layout: ProjectLayout, languages: Sequence[Language]) -> dict[str, Path]:
    locales_dir = args.locales_dir or Settings.get()["locales_dir"]
    if args.yes:
        return {lang.code: Path(prompts.default_output_path(lang, locales_dir))
                for lang in languages}
    return {lang.code: prompts.select_output_locale(lang, layout.resolve, locales_dir)
            for lang in languages}


def _confirm(args, question: str) -> None:
    if args.yes:
        return
    if not prompts.confirm_prompt(question):
        raise Canceled("Translation canceled.")


def _print_report_diff(diff) -> None:
    for key in diff.changed_or_added:
        print(f"  ~ {key}")
    for key in diff.removed:
        print(f"  - {key}")


# ── Commands ──────────────────────────────────────────────────────────

def cmd_project_setup(args) -> int:
    sync = _sync(args)
    layout = sync.layout
    sync.ensure_not_set_up()
    locales_dir = args.locales_dir or Settings.get()["locales_dir"]

    if args.source:
        source = Path(args.source)
        if not layout.resolve(source).is_file():
            raise MissingFileError(f"Source locale file '{source}' does not exist.")
    else:
        source = prompts.select_source_locale(layout.resolve, f"{locales_dir}/en.json")

    available = _available_languages(args)
    if args.languages:
        languages = _parse_languages(args.languages, available)
    else:
        languages = prompts.select_target_languages(available)
    output_paths = _output_paths(args, layout, languages)

    _confirm(args, "Are you sure you want to translate these file(s)?")
    report = sync.setup(source, languages, output_paths)
    print(f"Project set up with {len(report.translated)} language(s).")
    log.warning(
        "Do not edit the manifest or the translated locale files directly. Edit only the "
        "English locale file and use 'ltranslate project manage' for changing settings."
    )
    return EXIT_OK


def cmd_manage_source(args) -> int:
    sync = _sync(args)
    layout = sync.layout
    sync.load_manifest()
    locales_dir = args.locales_dir or Settings.get()["locales_dir"]
    if args.source:
        source = Path(args.source)
    else:
        source = prompts.select_source_locale(layout.resolve, f"{locales_dir}/en.json")
    manifest = sync.set_source_path(source)
    print(f"Source locale path set to {manifest.source_locale_path.as_posix()}.")
    return EXIT_OK


def cmd_manage_languages(args) -> int:
    sync = _sync(args)
    manifest = sync.load_manifest()
    sync.ensure_no_pending_changes(manifest)

    available = _available_languages(args)
    if args.languages is not None:
        selected = _parse_languages(args.languages, available)
    else:
        selected = prompts.select_target_languages(available, manifest.languages)

    language_diff = diff_languages(manifest.languages, selected)
    if language_diff is None:
        print("Enabled languages are unchanged.")
        return EXIT_OK

    output_paths = _output_paths(args, sync.layout, language_diff.added)
    if language_diff.added:
        _confirm(args, "Are you sure you want to translate these file(s)?")
    sync.change_languages(selected, output_paths)
    for lang in language_diff.added:
        print(f"  + {lang}")
    for lang in language_diff.removed:
        print(f"  - {lang}")
    return EXIT_OK


def cmd_project_update(args) -> int:
    sync = _sync(args)
    manifest = sync.load_manifest()
    diff = sync.pending_diff(manifest)
    if diff is None:
        print("Nothing to update.")
        return EXIT_OK
    print(f"Source locale changes: {diff.summary()}")
    if diff.changed_or_added and manifest.languages:
        _confirm(args, f"Translate {diff.changed_count} value(s) into "
                       f"{len(manifest.languages)} language(s)?")
    report = sync.update()
    print(f"Updated {len(manifest.languages)} locale file(s); "
          f"{report.texts_sent} value(s) sent for translation.")
    return EXIT_OK


def cmd_project_status(args) -> int:
    sync = ProjectSync(_layout(args))
    manifest = sync.load_manifest()
    print(f"Source: {manifest.source_locale_path.as_posix()}")
    for lang in manifest.languages:
        path = manifest.locale_paths.get(lang.code)
        print(f"  {lang}: {path.as_posix() if path else '(no path)'}")
    diff = sync.pending_diff(manifest)
    if diff is None:
        print("All translations are up to date.")
        return EXIT_OK
    print(f"Pending changes: {diff.summary()}")
    _print_report_diff(diff)
    return EXIT_OK


def cmd_translate(args) -> int:
    sync = _sync(args)
    available = _available_languages(args)
    language = None
    if args.language:
        language = next((lang for lang in available
                         if lang.code.upper() == args.language.upper()), None)
        if language is None:
            log.warning("Unknown target language '%s'.", args.language)
    if language is None:
        language = prompts.select_target_language(available)

    _confirm(args, "Are you sure you want to translate this file?")
    sync.translate_file(args.input_file, args.output_file, language)
    print("Translation complete. Output has been written to file.")
    return EXIT_OK


def cmd_key_set(args) -> int:
    engine = _engine(args)
    value = prompts.secret_prompt(f"{ENGINES[engine]['name']} API key")
    if not value:
        raise Canceled("No key entered.")
    if engine == "deepl" and not check_deepl_key(value):
        raise TranslationError("Provided DeepL API key is invalid.")
    store_secret(engine, "api_key", value)
    print(f"API key for {engine} stored.")
    return EXIT_OK


def cmd_key_show(args) -> int:
    engine = _engine(args)
    source = secret_source(engine, "api_key")
    print(f"{engine}: {source or 'not configured'}")
    return EXIT_OK


def cmd_key_delete(args) -> int:
    engine = _engine(args)
    if delete_secret(engine, "api_key"):
        print(f"API key for {engine} deleted.")
    else:
        print(f"No stored API key for {engine}.")
    return EXIT_OK


# ── Parser ────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Parse locale files and keep their translations up to date.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--project-dir", default=".",
                        help="project root containing the ltranslate directory (default: .)")
    parser.add_argument("--engine", choices=sorted(ENGINES),
                        help="translation engine (default: from settings)")
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    # Shared by commands that may spend provider quota
    quota = argparse.ArgumentParser(add_help=False)
    quota.add_argument("-y", "--yes", action="store_true",
                       help="skip confirmations and use default output paths")
    quota.add_argument("--locales-dir", help="directory for default output paths")

    project = sub.add_parser("project", help="use project mode to translate locales for you")
    project_sub = project.add_subparsers(dest="project_command", required=True)

    p = project_sub.add_parser("setup", parents=[quota],
                               help="set up a new project pointing at your English locale file")
    p.add_argument("--source", help="path of the English locale file")
    p.add_argument("--languages", help="comma-separated target language codes")
    p.set_defaults(func=cmd_project_setup)

    manage = project_sub.add_parser("manage", help="alter project settings")
    manage_sub = manage.add_subparsers(dest="setting", required=True)
    p = manage_sub.add_parser("source", parents=[quota], help="change the source locale path")
    p.add_argument("--source", help="path of the English locale file")
    p.set_defaults(func=cmd_manage_source)
    p = manage_sub.add_parser("languages", parents=[quota], help="change the enabled languages")
    p.add_argument("--languages", help="comma-separated target language codes")
    p.set_defaults(func=cmd_manage_languages)

    p = project_sub.add_parser("update", parents=[quota],
                               help="update all locales with changes made to the English file")
    p.set_defaults(func=cmd_project_update)

    p = project_sub.add_parser("status", help="show pending source changes")
    p.set_defaults(func=cmd_project_status)

    p = sub.add_parser("translate", parents=[quota],
                       help="translate a single locale file without project mode")
    p.add_argument("input_file")
    p.add_argument("output_file")
    p.add_argument("-l", "--language", help="target language code (skips the selector)")
    p.set_defaults(func=cmd_translate)

    key = sub.add_parser("key", help="manage translation engine API keys")
    key_sub = key.add_subparsers(dest="key_command", required=True)
    key_sub.add_parser("set", help="store an API key").set_defaults(func=cmd_key_set)
    key_sub.add_parser("show", help="show where the API key comes from").set_defaults(func=cmd_key_show)
    key_sub.add_parser("delete", help="delete a stored API key").set_defaults(func=cmd_key_delete)

    return parser


def run(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(name)s: %(message)s")
    try:
        return args.func(args)
    except PendingChangesError as e:
        print(e, file=sys.stderr)
        return EXIT_PENDING_CHANGES
    except Canceled as e:
        print(e, file=sys.stderr)
        return EXIT_ERROR
    except (SyncError, TranslationError, LocaleParseError, ManifestError, OSError) as e:
        log.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except (KeyboardInterrupt, EOFError):
        print("\nCanceled.", file=sys.stderr)
        return EXIT_INTERRUPTED


def main():
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
