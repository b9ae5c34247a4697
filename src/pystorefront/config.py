"""Client configuration for pystorefront."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from pystorefront._constants import (
    BASE_URL,
    DEFAULT_GC_AFTER_S,
    DEFAULT_REQUEST_TIMEOUT_S,
    DEFAULT_STALE_AFTER_S,
    PULL_MAX_DISTANCE,
    PULL_RESISTANCE,
    PULL_THRESHOLD,
    TOKEN_FILENAME,
    USER_AGENT,
)
from pystorefront.exceptions import StorefrontConfigError


def _default_token_path() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "pystorefront" / TOKEN_FILENAME


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise StorefrontConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class StorefrontConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Origin the console API is served from. Relative request paths
        are joined to it.
    request_timeout : float
        Total per-request timeout in seconds.
    default_stale_after : float
        Seconds a successful query result is served from cache before
        the next read refetches it.
    gc_after : float or None
        Seconds an unused cache entry is kept before it is dropped.
        ``None`` keeps entries for the life of the client.
    token_path : Path or None
        File holding the bearer token. ``None`` disables authentication.
    user_agent : str
        ``User-Agent`` header sent with every request.
    pull_threshold : float
        Pull distance (px) a release must reach to commit a refresh.
    pull_max_distance : float
        Cap on the displayed pull distance (px).
    pull_resistance : float
        Factor applied to the finger travel, in ``(0, 1]``.
    """

    base_url: str = BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_S
    default_stale_after: float = DEFAULT_STALE_AFTER_S
    gc_after: float | None = DEFAULT_GC_AFTER_S
    token_path: Path | None = dataclasses.field(default_factory=_default_token_path)
    user_agent: str = USER_AGENT
    pull_threshold: float = PULL_THRESHOLD
    pull_max_distance: float = PULL_MAX_DISTANCE
    pull_resistance: float = PULL_RESISTANCE

    def __post_init__(self) -> None:
        if not self.base_url.startswith(("http://", "https://")):
            raise StorefrontConfigError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        if self.request_timeout <= 0:
            raise StorefrontConfigError("request_timeout must be positive")
        if self.default_stale_after < 0:
            raise StorefrontConfigError("default_stale_after must not be negative")
        if self.gc_after is not None and self.gc_after <= 0:
            raise StorefrontConfigError("gc_after must be positive")
        if self.pull_threshold <= 0 or self.pull_max_distance < self.pull_threshold:
            raise StorefrontConfigError("pull_max_distance must be >= pull_threshold > 0")
        if not 0 < self.pull_resistance <= 1:
            raise StorefrontConfigError("pull_resistance must be in (0, 1]")

    @classmethod
    def from_env(cls, **overrides: Any) -> StorefrontConfig:
        """Create configuration from ``STOREFRONT_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("STOREFRONT_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")

        user_agent = env.get("STOREFRONT_USER_AGENT")
        if user_agent is not None:
            config_kwargs["user_agent"] = user_agent

        token_path = env.get("STOREFRONT_TOKEN_PATH")
        if token_path is not None:
            # Empty value means "no token storage".
            config_kwargs["token_path"] = Path(token_path).expanduser() if token_path else None

        _ENV_FLOAT_MAP = {
            "STOREFRONT_REQUEST_TIMEOUT": "request_timeout",
            "STOREFRONT_STALE_AFTER": "default_stale_after",
            "STOREFRONT_GC_AFTER": "gc_after",
            "STOREFRONT_PULL_THRESHOLD": "pull_threshold",
            "STOREFRONT_PULL_MAX_DISTANCE": "pull_max_distance",
            "STOREFRONT_PULL_RESISTANCE": "pull_resistance",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
