from __future__ import annotations

import pytest

from pyhydrate.config import HydrateConfig
from pyhydrate.exceptions import HydrateConfigError


def test_defaults() -> None:
    config = HydrateConfig()

    assert config.client_side is False
    assert config.checked_fresh_rate == 60.0
    assert config.request_timeout == 10.0
    assert config.default_headers == {}


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HYDRATE_BASE_URL", "https://api.example.com/")
    monkeypatch.setenv("HYDRATE_CLIENT_SIDE", "yes")
    monkeypatch.setenv("HYDRATE_CHECKED_FRESH_RATE", "300")
    monkeypatch.setenv("HYDRATE_REQUEST_TIMEOUT", "2.5")

    config = HydrateConfig.from_env()

    assert config.base_url == "https://api.example.com"
    assert config.client_side is True
    assert config.checked_fresh_rate == 300.0
    assert config.request_timeout == 2.5


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HYDRATE_CLIENT_SIDE", "1")
    monkeypatch.setenv("HYDRATE_CHECKED_FRESH_RATE", "300")

    config = HydrateConfig.from_env(client_side=False, checked_fresh_rate=5.0)

    assert config.client_side is False
    assert config.checked_fresh_rate == 5.0


def test_invalid_numbers_are_config_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HYDRATE_REQUEST_TIMEOUT", "soon")

    with pytest.raises(HydrateConfigError):
        HydrateConfig.from_env()


def test_rejects_non_positive_timeout() -> None:
    with pytest.raises(HydrateConfigError):
        HydrateConfig(request_timeout=0)
