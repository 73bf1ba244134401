"""Translation services for ltranslate.

Engines: DeepL (API key required) and LibreTranslate (self-hostable, key optional).
Every engine translates a whole batch of texts per call; ``translate_batch``
is the adapter project sync uses to translate a locale map in one request.
"""
# SPDX-License-Identifier: GPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, Sequence

import requests

from ltranslate import SOURCE_LANGUAGE_CODE
from ltranslate.parsers.json_parser import Language, text_pairs
from ltranslate.services.keystore import get_secret, env_var_name

log = logging.getLogger("ltranslate.translator")

_DEFAULT_TIMEOUT = 30
# DeepL accepts at most 50 texts per request
_DEEPL_MAX_TEXTS = 50
# Statuses DeepL answers with for an unknown or revoked key
_DEEPL_AUTH_ERRORS = (401, 403)

# (texts, target language code, source language code) -> translated texts
TranslateFn = Callable[[list, str, str], Sequence[str]]


class TranslationError(Exception):
    pass


# ── Helpers ───────────────────────────────────────────────────────────

def _request(method: str, url: str, **kwargs) -> requests.Response:
    """HTTP request that raises on any error status. Nothing is retried."""
    kwargs.setdefault("timeout", _DEFAULT_TIMEOUT)
    r = requests.request(method, url, **kwargs)
    r.raise_for_status()
    return r


def _get_api_key(service: str, key: str = "api_key") -> str:
    """Fetch API key from keystore, raise if missing."""
    val = get_secret(service, key)
    if not val:
        raise TranslationError(
            f"{service}: API key not configured. Run 'ltranslate --engine {service} key set' "
            f"or set {env_var_name(service, key)}."
        )
    return val


def _chunks(items: list, size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


# ── DeepL ─────────────────────────────────────────────────────────────

def _deepl_base(api_key: str) -> str:
    # DeepL Free keys end with ":fx"
    return "https://api-free.deepl.com" if api_key.endswith(":fx") else "https://api.deepl.com"


def _deepl_headers(api_key: str) -> dict:
    return {"Authorization": f"DeepL-Auth-Key {api_key}"}


def translate_deepl(texts: Sequence[str], target: str, source: str = SOURCE_LANGUAGE_CODE,
                    formality: str = "default", **kw) -> list[str]:
    """Translate a batch via the DeepL API (Free + Pro)."""
    api_key = _get_api_key("deepl")
    base = _deepl_base(api_key)
    tgt = target.upper()
    # Bare codes DeepL no longer accepts as targets
    if tgt == "EN":
        tgt = "EN-US"
    if tgt == "PT":
        tgt = "PT-PT"
    results: list[str] = []
    try:
        for chunk in _chunks(list(texts), _DEEPL_MAX_TEXTS):
            payload = {"text": chunk, "target_lang": tgt, "preserve_formatting": True}
            if source:
                payload["source_lang"] = source.upper()
            if formality != "default":
                payload["formality"] = formality
            r = _request("POST", f"{base}/v2/translate",
                         headers=_deepl_headers(api_key), json=payload)
            translations = r.json().get("translations", [])
            if len(translations) != len(chunk):
                raise TranslationError(
                    f"DeepL: returned {len(translations)} translations for {len(chunk)} texts"
                )
            results.extend(t.get("text", "") for t in translations)
    except TranslationError:
        raise
    except (requests.RequestException, ValueError) as e:
        raise TranslationError(f"DeepL: {e}") from e
    return results


def deepl_target_languages(**kw) -> list[Language]:
    """Fetch the target languages DeepL currently offers."""
    api_key = _get_api_key("deepl")
    try:
        r = _request("GET", f"{_deepl_base(api_key)}/v2/languages",
                     headers=_deepl_headers(api_key), params={"type": "target"})
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        raise TranslationError(
            f"Failed to fetch available target languages. This may be because of a "
            f"connection issue with DeepL: {e}"
        ) from e
    return [Language(item["language"].upper(), item.get("name", "")) for item in data]


def check_deepl_key(api_key: Optional[str] = None) -> bool:
    """Return True if DeepL accepts the key (queries the usage endpoint).

    Only an authorization failure means the key is invalid; any other error
    status raises TranslationError.
    """
    api_key = api_key or _get_api_key("deepl")
    try:
        _request("GET", f"{_deepl_base(api_key)}/v2/usage", headers=_deepl_headers(api_key))
    except requests.HTTPError as e:
        status = getattr(e.response, "status_code", None)
        if status in _DEEPL_AUTH_ERRORS:
            return False
        raise TranslationError(f"DeepL: could not check the API key: {e}") from e
    except requests.RequestException as e:
        raise TranslationError(f"DeepL: {e}") from e
    return True


# ── LibreTranslate ────────────────────────────────────────────────────

def translate_libretranslate(texts: Sequence[str], target: str,
                             source: str = SOURCE_LANGUAGE_CODE,
                             instance: str = "https://libretranslate.com", **kw) -> list[str]:
    """Translate a batch via LibreTranslate (self-hostable)."""
    payload = {"q": list(texts), "source": source.lower(), "target": target.lower(),
               "format": "text"}
    # Optional API key for paid instances
    api_key = get_secret("libretranslate", "api_key")
    if api_key:
        payload["api_key"] = api_key
    try:
        r = _request("POST", f"{instance.rstrip('/')}/translate", json=payload)
        translated = r.json().get("translatedText", [])
    except (requests.RequestException, ValueError) as e:
        raise TranslationError(f"LibreTranslate: {e}") from e
    if isinstance(translated, str):
        translated = [translated]
    return list(translated)


def libretranslate_target_languages(instance: str = "https://libretranslate.com",
                                    **kw) -> list[Language]:
    try:
        r = _request("GET", f"{instance.rstrip('/')}/languages")
        data = r.json()
    except (requests.RequestException, ValueError) as e:
        raise TranslationError(f"LibreTranslate: {e}") from e
    return [Language(item["code"].upper(), item.get("name", "")) for item in data
            if item["code"].upper() != SOURCE_LANGUAGE_CODE]


# ── Registry ──────────────────────────────────────────────────────────

ENGINES = {
    "deepl":          {"fn": translate_deepl,          "languages": deepl_target_languages,
                       "name": "DeepL"},
    "libretranslate": {"fn": translate_libretranslate, "languages": libretranslate_target_languages,
                       "name": "LibreTranslate"},
}


def _engine(engine: str) -> dict:
    if engine not in ENGINES:
        raise TranslationError(f"Unknown engine: {engine}")
    return ENGINES[engine]


def translate_texts(texts: Sequence[str], target: str, source: str = SOURCE_LANGUAGE_CODE,
                    engine: str = "deepl", **kwargs) -> list[str]:
    """Translate a batch of texts using the specified engine."""
    return _engine(engine)["fn"](texts, target, source, **kwargs)


def get_target_languages(engine: str = "deepl", **kwargs) -> list[Language]:
    """List the languages the specified engine can translate into."""
    return _engine(engine)["languages"](**kwargs)


def make_translator(engine: str = "deepl", **kwargs) -> TranslateFn:
    """Bind an engine and its options into a translation function."""
    _engine(engine)

    def _translate(texts, target, source):
        return translate_texts(texts, target, source, engine=engine, **kwargs)

    return _translate


# ── Batch adapter ─────────────────────────────────────────────────────

def translate_batch(data: Mapping[str, str], language: Language,
                    translate_fn: Optional[TranslateFn] = None,
                    source_language: str = SOURCE_LANGUAGE_CODE) -> dict[str, str]:
    """Translate every value of ``data`` into ``language`` with one provider call."""
    pairs = text_pairs(data, f"locale data for '{language.code}'")
    return translate_pairs(pairs, language, translate_fn, source_language)


def translate_pairs(pairs: Sequence[tuple[str, str]], language: Language,
                    translate_fn: Optional[TranslateFn] = None,
                    source_language: str = SOURCE_LANGUAGE_CODE) -> dict[str, str]:
    """Translate ordered ``(key, text)`` pairs into ``language`` with one provider call.

    The i-th translated text is assigned to the i-th key, so duplicate texts
    under different keys stay separate. The provider must return exactly one
    text per submitted text, in order; anything else raises TranslationError.
    Build the pairs once with ``text_pairs`` and reuse them for every language.
    """
    if not pairs:
        return {}
    translate_fn = translate_fn or make_translator()

    texts = [text for _, text in pairs]
    log.debug("Sending %d text(s) for translation to %s", len(texts), language.code)

    try:
        translated = list(translate_fn(texts, language.code, source_language))
    except TranslationError:
        raise
    except Exception as e:
        raise TranslationError(
            f"Failed to translate values to '{language.code}'. This may be because of a "
            f"connection issue with the translation provider: {e}"
        ) from e

    if len(translated) != len(pairs):
        raise TranslationError(
            f"The number of translated values ({len(translated)}) does not match the "
            f"number of source values ({len(pairs)}) for '{language.code}'."
        )

    result: dict[str, str] = {}
    for (key, _), text in zip(pairs, translated):
        if not isinstance(text, str):
            raise TranslationError(
                f"Provider returned a non-text value for key '{key}' ('{language.code}')."
            )
        result[key] = text
    return result
