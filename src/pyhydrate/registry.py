"""Registration table mapping type names to model and collection classes.

Names are stored normalized (see :func:`underscorize`), so ``"Listing"``
and ``"listing"`` resolve to the same class.  Each application owns its
own :class:`TypeRegistry`, populated at startup.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

from pyhydrate.exceptions import UnknownTypeError
from pyhydrate.models._base import Collection, Model

_logger = logging.getLogger(__name__)

_UPPER = re.compile(r"([A-Z])")


def underscorize(name: str) -> str:
    """Normalize a type name: ``"CustomListing"`` becomes ``"custom_listing"``."""
    if not name:
        raise ValueError("type name must be non-empty")
    underscored = _UPPER.sub(lambda match: "_" + match.group(1).lower(), name.strip())
    return underscored.replace("-", "_").replace("__", "_").lstrip("_")


def _registration_name(cls: type, name: str | None) -> str:
    return underscorize(name or getattr(cls, "type_id", None) or cls.__name__)


class TypeRegistry:
    """Name <-> class lookup for models and collections."""

    def __init__(self) -> None:
        self._models: dict[str, type[Model]] = {}
        self._collections: dict[str, type[Collection]] = {}
        self._names: dict[type, str] = {}

    def register_model(self, cls: type[Model], name: str | None = None) -> type[Model]:
        if not (isinstance(cls, type) and issubclass(cls, Model)):
            raise TypeError(f"{cls!r} is not a Model subclass")
        key = _registration_name(cls, name)
        self._models[key] = cls
        self._names[cls] = key
        _logger.debug("Registered model %s as %r", cls.__name__, key)
        return cls

    def register_collection(self, cls: type[Collection], name: str | None = None) -> type[Collection]:
        if not (isinstance(cls, type) and issubclass(cls, Collection)):
            raise TypeError(f"{cls!r} is not a Collection subclass")
        key = _registration_name(cls, name)
        self._collections[key] = cls
        self._names[cls] = key
        _logger.debug("Registered collection %s as %r", cls.__name__, key)
        return cls

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_model_constructor(self, name: str) -> type[Model]:
        key = underscorize(name)
        try:
            return self._models[key]
        except KeyError:
            raise UnknownTypeError(f"Unknown model type {name!r}", name=name) from None

    def get_collection_constructor(self, name: str) -> type[Collection]:
        key = underscorize(name)
        try:
            return self._collections[key]
        except KeyError:
            raise UnknownTypeError(f"Unknown collection type {name!r}", name=name) from None

    def _name_for(self, obj_or_cls: Any) -> str:
        cls = obj_or_cls if isinstance(obj_or_cls, type) else type(obj_or_cls)
        try:
            return self._names[cls]
        except KeyError:
            raise UnknownTypeError(f"Type {cls.__name__} is not registered", name=cls.__name__) from None

    def model_name(self, model: Model | type[Model]) -> str:
        return self._name_for(model)

    def collection_name(self, collection: Collection | type[Collection]) -> str:
        return self._name_for(collection)

    def model_id_attribute(self, name: str) -> str:
        return self.get_model_constructor(name).id_attribute

    def model_name_for_collection(self, name: str) -> str:
        """Registered name of the member type of collection *name*."""
        member_type = self.get_collection_constructor(name).member_type
        return self.model_name(member_type)

    @staticmethod
    def is_model(obj: Any) -> bool:
        return isinstance(obj, Model)

    @staticmethod
    def is_collection(obj: Any) -> bool:
        return isinstance(obj, Collection)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def get_model(self, name: str, attributes: Mapping[str, Any] | None = None, *, app: Any = None) -> Model:
        cls = self.get_model_constructor(name)
        model = cls(attributes)
        if app is not None:
            model.attach_app(app)
        return model

    def get_collection(
        self,
        name: str,
        members: Iterable[Model | Mapping[str, Any]] = (),
        *,
        params: Mapping[str, Any] | None = None,
        meta: Mapping[str, Any] | None = None,
        app: Any = None,
    ) -> Collection:
        """Build a collection of type *name* holding *members* in the given order."""
        cls = self.get_collection_constructor(name)
        collection = cls(
            list(members),
            params=dict(params) if params is not None else None,
            meta=dict(meta) if meta is not None else None,
        )
        if app is not None:
            collection.attach_app(app)
        return collection
