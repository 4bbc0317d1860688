"""Custom exception hierarchy for pyhydrate."""

from __future__ import annotations

from typing import Any


class HydrateError(Exception):
    """Base exception for all pyhydrate errors."""


class HydrateConfigError(HydrateError):
    """Invalid or missing configuration."""


class InvalidSpecError(HydrateError, ValueError):
    """Fetch spec names neither or both of ``model`` and ``collection``."""


class UnknownTypeError(HydrateError, LookupError):
    """A model or collection type name is not registered."""

    def __init__(self, message: str, *, name: str = "") -> None:
        self.name = name
        super().__init__(message)


class CollectionNotFoundError(HydrateError, LookupError):
    """Hydration requested for a collection slot that was never stored.

    A hydration request should only follow a successful fetch that wrote the
    collection into the store, so this signals a programming error and is
    raised directly instead of being wrapped in :class:`HydrationError`.
    """

    def __init__(self, message: str, *, type_name: str = "", params_key: str = "") -> None:
        self.type_name = type_name
        self.params_key = params_key
        super().__init__(message)


class RemoteFetchError(HydrateError):
    """The remote source failed (network, non-2xx, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: Any = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.body = body
        self.endpoint = endpoint
        super().__init__(message)


class HydrationError(HydrateError):
    """One key of a batch hydration failed; no partial results are delivered."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)
