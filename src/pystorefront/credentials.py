"""Bearer token sources.

The executor reads the token through :class:`CredentialSource` on every
request and never keeps it around afterwards, so a login or logout in
another part of the process takes effect on the very next call.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)


class CredentialSource(Protocol):
    def get_token(self) -> str | None:
        ...


class TokenStore(CredentialSource, Protocol):
    """Writable credential source used by the login flow."""

    def set_token(self, token: str) -> None:
        ...

    def remove_token(self) -> None:
        ...


class AnonymousCredentials:
    """Credential source for unauthenticated clients."""

    def get_token(self) -> str | None:
        return None


class FileTokenStore:
    """Durable token storage backed by a single file.

    The file is read on every :meth:`get_token` call. Writes go through a
    temporary file and an atomic rename, and the file is created with
    owner-only permissions.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_token(self) -> str | None:
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return token or None

    def set_token(self, token: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(f".{self._path.name}.tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(token)
        os.replace(tmp, self._path)
        _logger.debug("Token stored at %s", self._path)

    def remove_token(self) -> None:
        try:
            self._path.unlink()
        except FileNotFoundError:
            return
        _logger.debug("Token removed from %s", self._path)
