from __future__ import annotations

from typing import Any

import aiohttp
import pytest

from pyhydrate._transport import HttpTransport
from pyhydrate.config import HydrateConfig
from pyhydrate.exceptions import RemoteFetchError


class _FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, response: _FakeResponse | None = None, exc: Exception | None = None) -> None:
        self._response = response
        self._exc = exc
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def get(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append((url, kwargs))
        if self._exc is not None:
            raise self._exc
        assert self._response is not None
        return self._response


def _transport(session: _FakeSession, **config: Any) -> HttpTransport:
    return HttpTransport(HydrateConfig(base_url="https://api.example.com/", **config), session)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_get_json_builds_request() -> None:
    session = _FakeSession(_FakeResponse(200, '{"listing": {"id": 1}}'))
    transport = _transport(session, default_headers={"x-api-key": "k"})

    body = await transport.get_json(
        "/listings/1",
        {"page": 2, "active": True, "skip": None},
        headers={"x-trace": "t"},
    )

    assert body == {"listing": {"id": 1}}
    url, kwargs = session.calls[0]
    assert url == "https://api.example.com/listings/1"
    assert kwargs["params"] == {"page": "2", "active": "true"}
    assert kwargs["headers"]["x-api-key"] == "k"
    assert kwargs["headers"]["x-trace"] == "t"
    assert kwargs["headers"]["accept"] == "application/json"
    assert kwargs["timeout"].total == 10.0


@pytest.mark.asyncio
async def test_per_call_timeout_wins() -> None:
    session = _FakeSession(_FakeResponse(200, "[]"))

    await _transport(session).get_json("/listings", {}, timeout=2.5)

    assert session.calls[0][1]["timeout"].total == 2.5


@pytest.mark.asyncio
async def test_non_2xx_raises_with_status_and_body() -> None:
    session = _FakeSession(_FakeResponse(404, "not here"))

    with pytest.raises(RemoteFetchError) as excinfo:
        await _transport(session).get_json("/listings/9", {})

    assert excinfo.value.status_code == 404
    assert excinfo.value.body == "not here"
    assert excinfo.value.endpoint == "/listings/9"


@pytest.mark.asyncio
async def test_client_error_is_wrapped() -> None:
    session = _FakeSession(exc=aiohttp.ClientConnectionError("refused"))

    with pytest.raises(RemoteFetchError, match="refused") as excinfo:
        await _transport(session).get_json("/listings", {})

    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_invalid_json_raises() -> None:
    session = _FakeSession(_FakeResponse(200, "<html>"))

    with pytest.raises(RemoteFetchError, match="Invalid JSON"):
        await _transport(session).get_json("/listings", {})
