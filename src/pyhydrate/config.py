"""Configuration for pyhydrate."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyhydrate.exceptions import HydrateConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise HydrateConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class HydrateConfig:
    """Fetcher configuration.

    Parameters
    ----------
    base_url : str
        Root URL the HTTP transport resolves type URLs against.
    client_side : bool
        Whether this process plays the browser-like client role.  When
        set, :meth:`pyhydrate.fetcher.Fetcher.fetch` reads from and writes
        to the entity store by default; on the server side both default
        to off.
    checked_fresh_rate : float
        Minimum interval in seconds between two freshness re-validations
        of the same spec.
    request_timeout : float
        Per-request timeout in seconds used by the HTTP transport when a
        fetch does not pass its own.
    default_headers : dict
        Headers sent with every remote request.
    """

    base_url: str = "http://localhost:3030"
    client_side: bool = False
    checked_fresh_rate: float = 60.0
    request_timeout: float = 10.0
    default_headers: dict[str, str] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.checked_fresh_rate < 0:
            raise HydrateConfigError("checked_fresh_rate must be >= 0")
        if self.request_timeout <= 0:
            raise HydrateConfigError("request_timeout must be > 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> HydrateConfig:
        """Create configuration from ``HYDRATE_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("HYDRATE_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")

        if "client_side" not in overrides:
            config_kwargs["client_side"] = _env_bool(env.get("HYDRATE_CLIENT_SIDE"), False)

        rate_env = env.get("HYDRATE_CHECKED_FRESH_RATE")
        if rate_env is not None and "checked_fresh_rate" not in overrides:
            config_kwargs["checked_fresh_rate"] = _env_float("HYDRATE_CHECKED_FRESH_RATE", rate_env)

        timeout_env = env.get("HYDRATE_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = _env_float("HYDRATE_REQUEST_TIMEOUT", timeout_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
