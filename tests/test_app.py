from __future__ import annotations

import pytest

from conftest import Listing, Listings, make_registry
from pyhydrate._transport import HttpTransport
from pyhydrate.app import App
from pyhydrate.config import HydrateConfig


def test_app_wires_one_store_per_instance() -> None:
    first = App(registry=make_registry())
    second = App(registry=make_registry())

    first.model_store.set(Listing(id=1))

    assert first.fetcher.model_store is first.model_store
    assert first.fetcher.collection_store is first.collection_store
    assert first.fetcher.app is first
    assert second.model_store.get("Listing", 1) is None


def test_app_registers_given_types() -> None:
    app = App(models=[Listing], collections=[Listings])

    assert app.registry.get_model_constructor("listing") is Listing
    assert app.registry.get_collection_constructor("listings") is Listings


def test_freshness_rate_comes_from_config() -> None:
    app = App(HydrateConfig(checked_fresh_rate=5.0))

    assert app.fetcher.freshness.checked_fresh_rate_ms == 5_000


def test_reset_clears_stores_and_freshness() -> None:
    app = App(registry=make_registry())
    app.fetcher.store_results({"listings": Listings([{"id": 1}])})
    app.fetcher.did_check_fresh({"collection": "Listings"})

    app.reset()

    assert app.model_store.get("Listing", 1) is None
    assert app.collection_store.get("Listings") is None
    assert app.fetcher.freshness.timestamps == {}


@pytest.mark.asyncio
async def test_context_manager_opens_and_closes_http_transport() -> None:
    app = App(registry=make_registry())

    async with app:
        assert isinstance(app.fetcher.transport, HttpTransport)
        session = app._http_session  # noqa: SLF001
        assert session is not None

    assert app.fetcher.transport is None
    assert session.closed


@pytest.mark.asyncio
async def test_context_manager_keeps_injected_transport(transport: object) -> None:
    app = App(registry=make_registry(), transport=transport)  # type: ignore[arg-type]

    async with app:
        assert app.fetcher.transport is transport

    assert app.fetcher.transport is transport
