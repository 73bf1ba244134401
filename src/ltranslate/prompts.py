"""Interactive terminal prompts used by the CLI when a value was not given as an option."""

from __future__ import annotations

import getpass
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from ltranslate.parsers.json_parser import Language


def _print(message: str) -> None:
    print(message, file=sys.stderr)


def input_prompt(prompt_text: str, default: Optional[str] = None) -> str:
    suffix = f" [{default}]" if default else ""
    while True:
        response = input(f"{prompt_text}{suffix}: ").strip()
        if response:
            return response
        if default is not None:
            return default


def secret_prompt(prompt_text: str) -> str:
    return getpass.getpass(f"{prompt_text}: ").strip()


def confirm_prompt(prompt_text: str, default: bool = True) -> bool:
    hint = "Y/n" if default else "y/N"
    while True:
        response = input(f"{prompt_text} [{hint}] ").strip().lower()
        if not response:
            return default
        if response in ("y", "yes"):
            return True
        if response in ("n", "no"):
            return False
        _print("Please answer 'y' or 'n'.")


def select_source_locale(resolve: Callable[[str], Path], default: str) -> Path:
    """Ask for the English locale file until an existing file is given."""
    while True:
        path = input_prompt("What is the name of the English locale file?", default)
        if not resolve(path).is_file():
            _print("The file you specified does not exist. Please try again.")
            continue
        return Path(path)


def default_output_path(language: Language, locales_dir: str) -> str:
    return f"{locales_dir.rstrip('/')}/{language.code.lower()}.json"


def select_output_locale(language: Language, resolve: Callable[[str], Path],
                         locales_dir: str) -> Path:
    """Ask where the translated file for ``language`` should be written."""
    default = default_output_path(language, locales_dir)
    while True:
        path = input_prompt(f"[{language}] What should the output file be called?", default)
        if not path.endswith(".json"):
            _print("The file must have a .json extension.")
            continue
        if resolve(path).exists():
            _print("The file you specified already exists. Please give it a different name.")
            continue
        return Path(path)


def _show_languages(available: Sequence[Language], enabled: Sequence[Language] = ()) -> None:
    for i, lang in enumerate(available, 1):
        mark = "*" if lang in enabled else " "
        _print(f" {mark} {i:3d}. {lang}")


def _pick(token: str, available: Sequence[Language]) -> Optional[Language]:
    token = token.strip()
    if token.isdigit():
        index = int(token) - 1
        return available[index] if 0 <= index < len(available) else None
    for lang in available:
        if lang.code.lower() == token.lower():
            return lang
    return None


def select_target_language(available: Sequence[Language]) -> Language:
    _show_languages(available)
    while True:
        lang = _pick(input_prompt("What language do you want to translate to?"), available)
        if lang is not None:
            return lang
        _print("Unknown language. Enter a number or a language code from the list.")


def select_target_languages(available: Sequence[Language],
                            enabled: Sequence[Language] = ()) -> list[Language]:
    """Ask for a comma-separated list of languages. Enabled ones are the default."""
    _show_languages(available, enabled)
    default = ",".join(lang.code for lang in enabled) or None
    while True:
        response = input_prompt(
            "What languages do you want to translate to? (numbers or codes, comma-separated)",
            default,
        )
        picked = [_pick(token, available) for token in response.split(",") if token.strip()]
        if picked and all(lang is not None for lang in picked):
            result: list[Language] = []
            for lang in picked:
                if lang not in result:
                    result.append(lang)
            return result
        _print("Unknown language in selection. Please try again.")
