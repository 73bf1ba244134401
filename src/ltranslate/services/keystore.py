"""API key storage.

Keys are looked up in the environment first (``DEEPL_API_KEY`` or
``LTRANSLATE_<SERVICE>_<KEY>``) and then in the system keychain through
``keyring`` (macOS Keychain, Windows Credential Locker, Secret Service).

SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

log = logging.getLogger("ltranslate.keystore")

_SERVICE_PREFIX = "ltranslate"

# Variable names kept for compatibility with existing shell setups
_ENV_ALIASES = {
    ("deepl", "api_key"): "DEEPL_API_KEY",
}


def env_var_name(service: str, key: str) -> str:
    return f"LTRANSLATE_{service.upper()}_{key.upper()}"


def _keyring_service(service: str) -> str:
    return f"{_SERVICE_PREFIX}/{service}"


def get_secret(service: str, key: str) -> Optional[str]:
    """Retrieve a secret. Returns None if it is not configured anywhere."""
    for name in (_ENV_ALIASES.get((service, key)), env_var_name(service, key)):
        if name and os.environ.get(name):
            return os.environ[name]
    try:
        return keyring.get_password(_keyring_service(service), key)
    except KeyringError as e:
        log.debug("Keyring lookup for %s/%s failed: %s", service, key, e)
        return None


def store_secret(service: str, key: str, value: str) -> None:
    """Store a secret in the system keychain."""
    keyring.set_password(_keyring_service(service), key, value)


def delete_secret(service: str, key: str) -> bool:
    """Delete a secret from the system keychain. Returns False if it was not stored."""
    try:
        keyring.delete_password(_keyring_service(service), key)
    except PasswordDeleteError:
        return False
    return True


def secret_source(service: str, key: str) -> Optional[str]:
    """Describe where a configured secret comes from, for display."""
    for name in (_ENV_ALIASES.get((service, key)), env_var_name(service, key)):
        if name and os.environ.get(name):
            return f"environment variable {name}"
    try:
        if keyring.get_password(_keyring_service(service), key):
            return f"keyring ({backend_name()})"
    except KeyringError:
        return None
    return None


def backend_name() -> str:
    """Return the name of the active keyring backend."""
    backend = keyring.get_keyring()
    return getattr(backend, "name", type(backend).__name__)
