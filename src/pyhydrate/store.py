"""In-memory entity store.

Models are kept as attribute bags keyed by ``(type name, id)``.  Collections
are kept as :class:`CollectionRecord` entries keyed by ``(type name, params)``
and only reference their members by id, so a model shared between several
collections is always rebuilt from one canonical bag.
"""

from __future__ import annotations

import copy
import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pyhydrate.models._base import Collection, Model
from pyhydrate.registry import TypeRegistry, underscorize

_logger = logging.getLogger(__name__)


def serialize_params(params: Mapping[str, Any] | None) -> str:
    """Deterministic JSON for a params mapping (key order is irrelevant)."""
    return json.dumps(dict(params or {}), sort_keys=True, separators=(",", ":"), default=str)


def _merge_patch(target: dict[str, Any], patch: Mapping[str, Any]) -> None:
    """Keys in the patch overwrite, other keys are kept."""
    if not patch:
        return
    target.update(copy.deepcopy(dict(patch)))


class CollectionRecord(BaseModel):
    """What the collection store keeps for one ``(type, params)`` slot."""

    model_config = ConfigDict(extra="forbid")

    ids: list[Any] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)


class ModelStore:
    """Attribute bags for individual models, last write wins per key."""

    def __init__(self, registry: TypeRegistry) -> None:
        self._registry = registry
        self._data: dict[str, dict[str, Any]] = {}

    @staticmethod
    def _key(type_name: str, model_id: Any) -> str:
        return f"{underscorize(type_name)}:{model_id}"

    def set(self, model: Model) -> None:
        """Merge the model's current attributes into its slot."""
        model_id = model.entity_id
        if model_id is None:
            _logger.debug("Not storing %s without %r", type(model).__name__, model.id_attribute)
            return
        type_name = self._registry.model_name(model)
        key = self._key(type_name, model_id)
        bag = self._data.get(key)
        if bag is None:
            bag = {}
            self._data[key] = bag
        _merge_patch(bag, model.to_json())

    def get(self, type_name: str, model_id: Any, deserialize: bool = False) -> dict[str, Any] | None:
        """Return the stored bag, run through the type's ``parse`` when *deserialize*."""
        bag = self._data.get(self._key(type_name, model_id))
        if bag is None:
            return None
        data = copy.deepcopy(bag)
        if deserialize:
            return self._registry.get_model_constructor(type_name).parse(data)
        return data

    def get_many(
        self,
        type_name: str,
        model_ids: Iterable[Any],
        deserialize: bool = False,
    ) -> list[dict[str, Any] | None]:
        return [self.get(type_name, model_id, deserialize) for model_id in model_ids]

    def find(
        self,
        type_name: str,
        params: Mapping[str, Any],
        deserialize: bool = False,
    ) -> dict[str, Any] | None:
        """First stored bag of *type_name* whose attributes match every param."""
        prefix = f"{underscorize(type_name)}:"
        for key, bag in self._data.items():
            if not key.startswith(prefix):
                continue
            if all(name in bag and bag[name] == value for name, value in params.items()):
                data = copy.deepcopy(bag)
                if deserialize:
                    return self._registry.get_model_constructor(type_name).parse(data)
                return data
        return None

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)


class CollectionStore:
    """Id lists, meta and params for fetched collections."""

    def __init__(self, registry: TypeRegistry, model_store: ModelStore) -> None:
        self._registry = registry
        self._model_store = model_store
        self._data: dict[str, CollectionRecord] = {}

    @staticmethod
    def _key(type_name: str, params: Mapping[str, Any] | None) -> str:
        return f"{underscorize(type_name)}:{serialize_params(params)}"

    def set(self, collection: Collection, params: Mapping[str, Any] | None = None) -> None:
        """Store the collection's ids, meta and params, and each member's bag."""
        for member in collection.models:
            self._model_store.set(member)
        if params is None:
            params = collection.params
        type_name = self._registry.collection_name(collection)
        record = CollectionRecord(
            ids=[member.entity_id for member in collection.models],
            meta=copy.deepcopy(collection.meta),
            params=copy.deepcopy(dict(params)),
        )
        self._data[self._key(type_name, params)] = record
        _logger.debug("Stored %d ids for collection %s", len(record.ids), type_name)

    def get(self, type_name: str, params: Mapping[str, Any] | None = None) -> CollectionRecord | None:
        """Return a copy of the stored record, ``None`` on a miss."""
        record = self._data.get(self._key(type_name, params))
        if record is None:
            return None
        return record.model_copy(deep=True)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
