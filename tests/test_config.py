from __future__ import annotations

from pathlib import Path

import pytest

from pystorefront.config import StorefrontConfig
from pystorefront.exceptions import StorefrontConfigError


def test_defaults() -> None:
    config = StorefrontConfig(token_path=None)

    assert config.base_url == "http://localhost:5000"
    assert config.default_stale_after == 300.0
    assert config.pull_threshold == 80.0
    assert config.pull_max_distance == 120.0
    assert config.pull_resistance == 0.5
    assert config.gc_after == 300.0


def test_default_token_path_follows_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert StorefrontConfig().token_path == tmp_path / "pystorefront" / "token"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"base_url": "shop.example"},
        {"request_timeout": 0},
        {"default_stale_after": -1},
        {"gc_after": 0},
        {"pull_threshold": 100, "pull_max_distance": 50},
        {"pull_resistance": 1.5},
    ],
)
def test_invalid_values_are_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(StorefrontConfigError):
        StorefrontConfig(token_path=None, **kwargs)


def test_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("STOREFRONT_BASE_URL", "https://shop.example/")
    monkeypatch.setenv("STOREFRONT_STALE_AFTER", "120")
    monkeypatch.setenv("STOREFRONT_PULL_THRESHOLD", "60")
    monkeypatch.setenv("STOREFRONT_GC_AFTER", "900")
    monkeypatch.setenv("STOREFRONT_TOKEN_PATH", str(tmp_path / "tok"))

    config = StorefrontConfig.from_env(pull_threshold=70.0)

    assert config.base_url == "https://shop.example"
    assert config.default_stale_after == 120.0
    assert config.pull_threshold == 70.0
    assert config.gc_after == 900.0
    assert config.token_path == tmp_path / "tok"


def test_from_env_empty_token_path_disables_storage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STOREFRONT_TOKEN_PATH", "")

    assert StorefrontConfig.from_env().token_path is None


def test_from_env_rejects_non_numeric(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STOREFRONT_REQUEST_TIMEOUT", "soon")

    with pytest.raises(StorefrontConfigError, match="STOREFRONT_REQUEST_TIMEOUT"):
        StorefrontConfig.from_env(token_path=None)
