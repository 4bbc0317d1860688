from __future__ import annotations

from typing import ClassVar

import pytest
from pydantic import ValidationError

from conftest import CustomListing, Listing, Listings, make_registry
from pyhydrate.exceptions import UnknownTypeError
from pyhydrate.models import Model
from pyhydrate.registry import TypeRegistry, underscorize


class PricedListing(Model):
    type_id: ClassVar[str | None] = "PricedListing"

    price: int


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Listing", "listing"),
        ("listing", "listing"),
        ("CustomListing", "custom_listing"),
        ("custom_listing", "custom_listing"),
        ("Custom_Listing", "custom_listing"),
    ],
)
def test_underscorize(name: str, expected: str) -> None:
    assert underscorize(name) == expected


def test_lookup_is_case_insensitive_to_normalization() -> None:
    registry = make_registry()

    assert registry.get_model_constructor("Listing") is Listing
    assert registry.get_model_constructor("listing") is Listing
    assert registry.get_model_constructor("CustomListing") is CustomListing
    assert registry.get_collection_constructor("listings") is Listings


def test_unknown_types_raise() -> None:
    registry = make_registry()

    with pytest.raises(UnknownTypeError) as excinfo:
        registry.get_model_constructor("Nope")
    assert excinfo.value.name == "Nope"

    with pytest.raises(UnknownTypeError):
        registry.get_collection_constructor("Listing")


def test_names_come_from_registration() -> None:
    registry = make_registry()

    assert registry.model_name(Listing(id=1)) == "listing"
    assert registry.model_name(CustomListing) == "custom_listing"
    assert registry.collection_name(Listings()) == "listings"
    assert registry.model_name_for_collection("Listings") == "listing"
    assert registry.model_id_attribute("custom_listing") == "login"


def test_explicit_name_overrides_type_id() -> None:
    registry = TypeRegistry()
    registry.register_model(Listing, "Home")

    assert registry.get_model_constructor("home") is Listing
    assert registry.model_name(Listing) == "home"


def test_unregistered_class_has_no_name() -> None:
    with pytest.raises(UnknownTypeError):
        TypeRegistry().model_name(Listing)


def test_register_rejects_wrong_base() -> None:
    with pytest.raises(TypeError):
        TypeRegistry().register_model(Listings)  # type: ignore[arg-type]


def test_get_collection_preserves_member_order() -> None:
    registry = make_registry()
    members = [Listing(id=3), Listing(id=1), Listing(id=2)]

    collection = registry.get_collection("Listings", members, params={"page": 1}, meta={"total": 3})

    assert isinstance(collection, Listings)
    assert collection.pluck("id") == [3, 1, 2]
    assert collection.models[0] is members[0]
    assert collection.params == {"page": 1}
    assert collection.meta == {"total": 3}


def test_get_model_attaches_app() -> None:
    app = object()

    model = make_registry().get_model("Listing", {"id": 1}, app=app)

    assert model.app is app


def test_construction_failure_is_not_unknown_type() -> None:
    registry = make_registry()
    registry.register_model(PricedListing)

    with pytest.raises(ValidationError):
        registry.get_model("PricedListing", {"price": "not a number"})
