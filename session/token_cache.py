"""
session/token_cache.py

Fernet-encrypted persistence of the signed-in session (bearer token and
principal), so a restarted app can restore who was logged in.

Key lifecycle
-------------
The Fernet key is read from the environment variable HEALTHICS_SESSION_KEY.
It must be a URL-safe base64-encoded 32-byte key as produced by
``Fernet.generate_key()``.

If HEALTHICS_SESSION_KEY is not set, a fresh key is generated at process
start and kept in memory only.  A warning is emitted: the cache then lives
only as long as the process.

Public API
----------
TokenCache(path).save(token, principal)
TokenCache(path).load() -> CachedSession | None
TokenCache(path).clear()
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken
from pydantic import ValidationError

from api.models import Principal

logger = logging.getLogger(__name__)

_ENV_KEY_NAME = "HEALTHICS_SESSION_KEY"


@lru_cache(maxsize=1)
def _get_fernet() -> Fernet:
    raw_key = os.environ.get(_ENV_KEY_NAME)

    if raw_key:
        logger.debug("Session cache key loaded from '%s'.", _ENV_KEY_NAME)
        return Fernet(raw_key.encode())

    logger.warning(
        "%s is not set. A temporary in-memory key has been generated; "
        "cached sessions will not survive a process restart.",
        _ENV_KEY_NAME,
    )
    return Fernet(Fernet.generate_key())


@dataclass(frozen=True)
class CachedSession:
    token: str
    principal: Principal


class TokenCache:
    def __init__(self, path: str | Path, fernet: Fernet | None = None):
        self.path = Path(path)
        self._fernet = fernet

    @property
    def fernet(self) -> Fernet:
        return self._fernet or _get_fernet()

    def save(self, token: str, principal: Principal) -> None:
        """Encrypt and atomically write the session."""
        plaintext = json.dumps(
            {"token": token, "principal": principal.model_dump(mode="json")}
        ).encode("utf-8")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        tmp.write_bytes(self.fernet.encrypt(plaintext))
        tmp.replace(self.path)
        logger.debug("Session cached for user id=%d", principal.id)

    def load(self) -> CachedSession | None:
        """
        Return the cached session, or ``None`` when there is none.

        A cache that cannot be decrypted or parsed is treated as absent.
        """
        if not self.path.exists():
            return None
        try:
            plaintext = self.fernet.decrypt(self.path.read_bytes())
            data = json.loads(plaintext.decode("utf-8"))
            return CachedSession(
                token=str(data["token"]),
                principal=Principal.model_validate(data["principal"]),
            )
        except InvalidToken:
            logger.warning("Session cache %s was written with another key; ignoring it.", self.path)
        except (ValueError, KeyError, ValidationError) as exc:
            logger.warning("Session cache %s is unreadable (%s); ignoring it.", self.path, exc)
        return None

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
