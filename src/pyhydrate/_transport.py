"""HTTP transport used to fetch entities from the remote API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyhydrate import __version__
from pyhydrate.config import HydrateConfig
from pyhydrate.exceptions import RemoteFetchError

_logger = logging.getLogger(__name__)

USER_AGENT = f"pyhydrate/{__version__}"


class Transport(Protocol):
    """Structural transport interface used by the fetcher.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        path: str,
        params: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        ...


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


class HttpTransport:
    """JSON-over-HTTP transport backed by an :class:`aiohttp.ClientSession`."""

    def __init__(self, config: HydrateConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    async def get_json(
        self,
        path: str,
        params: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """GET ``base_url + path`` with *params* as the query string.

        Returns the decoded JSON body.  Network failures, non-2xx statuses
        and invalid JSON all raise :class:`RemoteFetchError`.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        request_headers.update(self._config.default_headers)
        if headers:
            request_headers.update(headers)

        url = f"{self._config.base_url.rstrip('/')}{path}"
        query = {key: _query_value(value) for key, value in params.items() if value is not None}
        client_timeout = aiohttp.ClientTimeout(total=timeout or self._config.request_timeout)

        _logger.debug("GET %s params=%s", url, query)

        try:
            async with self._http.get(url, params=query, headers=request_headers, timeout=client_timeout) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise RemoteFetchError(
                        f"HTTP {resp.status} from {path}: {text[:150]}",
                        status_code=resp.status,
                        body=text,
                        endpoint=path,
                    )
        except RemoteFetchError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise RemoteFetchError(
                f"Request to {path} failed: {exc}",
                endpoint=path,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise RemoteFetchError(
                f"Invalid JSON from {path}: {text[:150]}",
                status_code=resp.status,
                body=text,
                endpoint=path,
            ) from exc
