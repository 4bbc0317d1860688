"""Minimal serializable descriptors of live entities.

A summary is what a server process hands to a client (and what the
fetcher hydrates from): the type name plus the id, or for collections
the member ids together with the params and meta.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pyhydrate.models._base import Collection, Model
from pyhydrate.registry import TypeRegistry


@dataclass(frozen=True, slots=True)
class ModelSummary:
    model: str
    id: Any

    def to_dict(self) -> dict[str, Any]:
        return {"model": self.model, "id": self.id}


@dataclass(frozen=True, slots=True)
class CollectionSummary:
    collection: str
    ids: list[Any] = field(default_factory=list)
    params: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection": self.collection,
            "ids": self.ids,
            "params": self.params,
            "meta": self.meta,
        }


Summary = ModelSummary | CollectionSummary


def _named(value: Any) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


def parse_summary(value: Summary | Mapping[str, Any]) -> Summary:
    """Accept a summary object or its wire dict."""
    if isinstance(value, (ModelSummary, CollectionSummary)):
        return value
    has_model = _named(value.get("model"))
    has_collection = _named(value.get("collection"))
    if has_model == has_collection:
        raise ValueError(f"summary must name exactly one of 'model' or 'collection': {dict(value)!r}")
    if has_model:
        return ModelSummary(model=value["model"], id=value.get("id"))
    return CollectionSummary(
        collection=value["collection"],
        ids=list(value.get("ids") or []),
        params=value.get("params") or {},
        meta=value.get("meta") or {},
    )


def summarize(obj: Model | Collection, registry: TypeRegistry) -> Summary:
    if isinstance(obj, Model):
        return ModelSummary(model=registry.model_name(obj), id=obj.entity_id)
    if isinstance(obj, Collection):
        return CollectionSummary(
            collection=registry.collection_name(obj),
            ids=[member.entity_id for member in obj.models],
            params=obj.params,
            meta=obj.meta,
        )
    raise TypeError(f"Cannot summarize {type(obj).__name__}: not a Model or Collection")
