"""Helpers for safe debug logging.

Requests carry bearer tokens and login bodies carry passwords. Everything
that reaches a log record from the transport or the auth flow goes through
:func:`redact_for_log` first; request bodies, which are already JSON text,
go through :func:`redact_json_for_log`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "password",
        "token",
        "accesstoken",
        "refreshtoken",
        "apikey",
        "secret",
    }
)


def _is_sensitive(key: str) -> bool:
    return key.lower().replace("_", "") in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a redacted copy of *value* suitable for debug logs.

    Mapping keys are compared case-insensitively, ignoring underscores, so
    both ``Authorization`` headers and ``access_token`` fields are hidden.
    """
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated {len(value) - max_string} chars>"
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        return {
            str(k): "<redacted>" if _is_sensitive(str(k)) else redact_for_log(v, max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, Sequence):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)


def redact_json_for_log(text: str | None, *, max_string: int = 256) -> Any:
    """Redact an already-encoded JSON body.

    Bodies that are not JSON are summarized by size only, since their
    contents cannot be checked for sensitive keys.
    """
    if text is None:
        return None
    try:
        value = json.loads(text)
    except ValueError:
        return f"<body:{len(text.encode('utf-8', errors='replace'))}b>"
    return redact_for_log(value, max_string=max_string)
