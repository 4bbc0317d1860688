from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

import pytest

from pyhydrate.app import App
from pyhydrate.models import Collection, Model
from pyhydrate.registry import TypeRegistry


class Listing(Model):
    type_id: ClassVar[str | None] = "Listing"
    json_key: ClassVar[str | None] = "listing"
    url: ClassVar[str | None] = "/listings/{id}"


class Listings(Collection):
    member_type: ClassVar[type[Model]] = Listing
    type_id: ClassVar[str | None] = "Listings"
    json_key: ClassVar[str | None] = "listings"
    url: ClassVar[str | None] = "/listings"


class CustomListing(Model):
    id_attribute: ClassVar[str] = "login"


class FakeTransport:
    """Serves canned JSON per path and records every call."""

    def __init__(self, responses: Mapping[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def get_json(
        self,
        path: str,
        params: Mapping[str, Any],
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        self.calls.append((path, dict(params)))
        response = self.responses[path]
        if isinstance(response, Exception):
            raise response
        return response


def make_registry() -> TypeRegistry:
    registry = TypeRegistry()
    registry.register_model(Listing)
    registry.register_model(CustomListing)
    registry.register_collection(Listings)
    return registry


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def app(transport: FakeTransport) -> App:
    return App(registry=make_registry(), transport=transport)
