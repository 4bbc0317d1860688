"""Owning application: one registry, one entity store and one fetcher."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import aiohttp

from pyhydrate._transport import HttpTransport, Transport
from pyhydrate.config import HydrateConfig
from pyhydrate.fetcher import Entity, Fetcher
from pyhydrate.freshness import FreshnessTracker
from pyhydrate.models._base import Collection, Model
from pyhydrate.registry import TypeRegistry
from pyhydrate.store import CollectionStore, ModelStore

_logger = logging.getLogger(__name__)


class App:
    """Application instance that hydrated entities reach shared services through.

    Usage::

        registry = TypeRegistry()
        registry.register_model(Listing)
        registry.register_collection(Listings)

        async with App(HydrateConfig.from_env(), registry=registry) as app:
            results = await app.fetcher.fetch({"listings": {"collection": "Listings"}})
    """

    def __init__(
        self,
        config: HydrateConfig | None = None,
        *,
        registry: TypeRegistry | None = None,
        transport: Transport | None = None,
        session: aiohttp.ClientSession | None = None,
        models: Iterable[type[Model]] = (),
        collections: Iterable[type[Collection]] = (),
    ) -> None:
        self.config = config or HydrateConfig()
        self.registry = registry or TypeRegistry()
        for model_cls in models:
            self.registry.register_model(model_cls)
        for collection_cls in collections:
            self.registry.register_collection(collection_cls)

        self._external_session = session is not None
        self._http_session = session
        self._owns_transport = transport is None

        self.model_store = ModelStore(self.registry)
        self.collection_store = CollectionStore(self.registry, self.model_store)
        self.fetcher = Fetcher(
            self,
            registry=self.registry,
            model_store=self.model_store,
            collection_store=self.collection_store,
            transport=transport,
            config=self.config,
            freshness=FreshnessTracker(checked_fresh_rate=self.config.checked_fresh_rate),
        )

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> App:
        if self._owns_transport:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self.fetcher.transport = HttpTransport(self.config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._owns_transport:
            self.fetcher.transport = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------

    def bootstrap_data(self, model_map: Mapping[str, Mapping[str, Any]]) -> dict[str, Entity]:
        return self.fetcher.bootstrap_data(model_map)

    def reset(self) -> None:
        """Drop every stored entity and freshness timestamp."""
        self.model_store.clear()
        self.collection_store.clear()
        self.fetcher.freshness.clear()
        _logger.debug("Entity store cleared")
