"""Session persistence helpers for dormtui.

The bearer token and the onboarding-seen flag live in the system keyring
under the ``dormtui`` service. Tokens that a backend refuses to store in one
credential (Windows Credential Manager has tight per-entry limits) are split
into base64 chunks stored under ``{key}.part{i}`` with a ``{key}.parts`` index.

Functions:
  - save_token(token) -> None
  - load_token() -> Optional[str]
  - clear_token() -> None
  - has_seen_onboarding() -> bool
  - set_onboarding_seen() -> None
"""

from __future__ import annotations

import base64
import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from . import config

SERVICE_NAME = config.KEYRING_SERVICE
_CHUNK_SIZE = 1000

logger = logging.getLogger("dormtui.auth_storage")


def store_chunked_value(key_base: str, value: str) -> None:
    """Store a potentially-large string as verified base64 chunks."""
    delete_chunked_value(key_base)

    data = value.encode("utf-8")
    last_exc: Optional[Exception] = None
    for chunk_size in (_CHUNK_SIZE, 512, 256, 128):
        parts = [data[i : i + chunk_size] for i in range(0, len(data), chunk_size)]
        written_parts = []
        try:
            for idx, part in enumerate(parts):
                b64 = base64.b64encode(part).decode("ascii")
                part_key = f"{key_base}.part{idx}"
                keyring.set_password(SERVICE_NAME, part_key, b64)
                if keyring.get_password(SERVICE_NAME, part_key) != b64:
                    raise KeyringError(f"verification failed for {part_key}")
                written_parts.append(part_key)
            keyring.set_password(SERVICE_NAME, f"{key_base}.parts", str(len(parts)))
            logger.debug("stored %s in %d chunk(s) (chunk_size=%d)", key_base, len(parts), chunk_size)
            return
        except KeyringError as e:
            last_exc = e
            logger.debug("chunked write with chunk_size=%d failed: %s", chunk_size, e)
            for pk in written_parts:
                _delete_quietly(pk)
            _delete_quietly(f"{key_base}.parts")

    logger.error("all chunked write attempts failed for %s", key_base)
    raise last_exc or KeyringError("failed to store chunked value")


def read_chunked_value(key_base: str) -> Optional[str]:
    count_s = keyring.get_password(SERVICE_NAME, f"{key_base}.parts")
    if not count_s:
        return None
    try:
        count = int(count_s)
    except ValueError:
        logger.debug("invalid parts index for %s: %r", key_base, count_s)
        return None

    parts = []
    for i in range(count):
        b64 = keyring.get_password(SERVICE_NAME, f"{key_base}.part{i}")
        if b64 is None:
            # missing part -> treat as absent
            logger.warning("missing chunk %s.part%d", key_base, i)
            return None
        parts.append(base64.b64decode(b64.encode("ascii")))
    return b"".join(parts).decode("utf-8")


def delete_chunked_value(key_base: str) -> None:
    count_s = keyring.get_password(SERVICE_NAME, f"{key_base}.parts")
    if not count_s:
        return
    if count_s.isdigit():
        for i in range(int(count_s)):
            _delete_quietly(f"{key_base}.part{i}")
    _delete_quietly(f"{key_base}.parts")


def _delete_quietly(key: str) -> None:
    try:
        keyring.delete_password(SERVICE_NAME, key)
    except PasswordDeleteError:
        pass


def save_token(token: str) -> None:
    """Persist the bearer token, falling back to chunked storage when needed."""
    try:
        keyring.set_password(SERVICE_NAME, config.TOKEN_KEY, token)
        delete_chunked_value(config.TOKEN_KEY)
    except KeyringError:
        logger.debug("single token write failed; attempting chunked storage")
        try:
            store_chunked_value(config.TOKEN_KEY, token)
        except KeyringError:
            logger.exception("failed to persist token; session will not survive a restart")


def load_token() -> Optional[str]:
    try:
        token = keyring.get_password(SERVICE_NAME, config.TOKEN_KEY)
        if not token:
            token = read_chunked_value(config.TOKEN_KEY)
    except KeyringError:
        logger.exception("failed to read token from keyring")
        return None
    return token or None


def clear_token() -> None:
    try:
        _delete_quietly(config.TOKEN_KEY)
        delete_chunked_value(config.TOKEN_KEY)
    except KeyringError:
        logger.exception("unexpected error while clearing keyring entries")


def has_seen_onboarding() -> bool:
    try:
        return keyring.get_password(SERVICE_NAME, config.ONBOARDING_KEY) == "true"
    except KeyringError:
        logger.exception("failed to read onboarding flag")
        return False


def set_onboarding_seen() -> None:
    try:
        keyring.set_password(SERVICE_NAME, config.ONBOARDING_KEY, "true")
    except KeyringError:
        logger.exception("failed to persist onboarding flag")
