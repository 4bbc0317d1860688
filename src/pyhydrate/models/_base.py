"""Base model and collection types for hydrated entities.

Every entity type inherits from :class:`Model` which provides:

* ``extra="allow"`` so free-form attribute bags round-trip unchanged,
  while subclasses may still declare typed fields.
* Class-level hooks read by the registry and the fetcher: ``type_id``,
  ``id_attribute`` (default ``"id"``), ``json_key`` and ``url``.
* :meth:`Model.parse`, the inverse of :meth:`Model.to_json`, which also
  unwraps responses nested under ``json_key``.
* An ``app`` reference attached after construction.

Collections inherit from :class:`Collection`: an ordered member list of
``member_type`` instances plus the ``params`` they were fetched with and
the ``meta`` the remote source returned alongside them.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, ClassVar
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def interpolate_url(template: str, params: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    """Fill ``{name}`` placeholders in *template* from *params*.

    Returns the path and the params that were not consumed by the
    template, which the transport sends as the query string.
    """
    used: set[str] = set()

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in params:
            raise ValueError(f"URL template {template!r} needs param {name!r}")
        used.add(name)
        return quote(str(params[name]), safe="")

    path = _PLACEHOLDER.sub(_substitute, template)
    return path, {key: value for key, value in params.items() if key not in used}


class Model(BaseModel):
    """Base for a single entity."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type_id: ClassVar[str | None] = None
    """Registered type name; the class name is used when unset."""

    id_attribute: ClassVar[str] = "id"
    json_key: ClassVar[str | None] = None
    url: ClassVar[str | None] = None
    """Remote path template, e.g. ``"/listings/{id}"``."""

    _app: Any = PrivateAttr(default=None)

    def __init__(self, attributes: Mapping[str, Any] | None = None, /, **data: Any) -> None:
        merged: dict[str, Any] = dict(attributes or {})
        merged.update(data)
        super().__init__(**merged)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_json_key(cls, values: Any) -> Any:
        """Accept a payload still wrapped under ``json_key``."""
        if cls.json_key and isinstance(values, dict) and set(values) == {cls.json_key}:
            inner = values[cls.json_key]
            if isinstance(inner, dict):
                return inner
        return values

    @classmethod
    def parse(cls, raw: Any) -> dict[str, Any]:
        """Turn a wire payload into an attribute bag."""
        if cls.json_key and isinstance(raw, Mapping) and isinstance(raw.get(cls.json_key), Mapping):
            raw = raw[cls.json_key]
        if not isinstance(raw, Mapping):
            raise TypeError(f"{cls.__name__}.parse expects a mapping, got {type(raw).__name__}")
        return dict(raw)

    @property
    def attributes(self) -> dict[str, Any]:
        return self.model_dump()

    @property
    def entity_id(self) -> Any:
        """Value of the type's identifier attribute, ``None`` when unset."""
        return self.attributes.get(self.id_attribute)

    @property
    def app(self) -> Any:
        return self._app

    def attach_app(self, app: Any) -> None:
        self._app = app

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.attributes

    def set(self, attributes: Mapping[str, Any]) -> None:
        """Merge *attributes* over the current ones."""
        fields = type(self).model_fields
        extra = self.__pydantic_extra__
        for key, value in attributes.items():
            if key in fields or extra is None:
                setattr(self, key, value)
            else:
                # Undeclared keys may collide with class attributes such as ``url``.
                extra[key] = value

    def load(self, raw: Any) -> None:
        """Apply a remote response to this instance."""
        self.set(self.parse(raw))

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class Collection(BaseModel):
    """Base for an ordered list of entities of one type."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    member_type: ClassVar[type[Model]] = Model
    type_id: ClassVar[str | None] = None
    json_key: ClassVar[str | None] = None
    url: ClassVar[str | None] = None

    models: list[Model] = Field(default_factory=list)
    params: dict[str, Any] = Field(default_factory=dict)
    meta: dict[str, Any] = Field(default_factory=dict)

    _app: Any = PrivateAttr(default=None)

    def __init__(self, members: Iterable[Model | Mapping[str, Any]] | None = None, /, **data: Any) -> None:
        if members is not None:
            data["models"] = [type(self)._to_member(member) for member in members]
        for key in ("params", "meta"):
            if data.get(key) is None:
                data.pop(key, None)
        super().__init__(**data)

    @classmethod
    def _to_member(cls, member: Model | Mapping[str, Any]) -> Model:
        if isinstance(member, Model):
            return member
        return cls.member_type(member)

    @classmethod
    def parse(cls, raw: Any) -> list[dict[str, Any]]:
        """Turn a wire payload into a list of member attribute bags."""
        if isinstance(raw, Mapping):
            if not cls.json_key or cls.json_key not in raw:
                raise TypeError(f"{cls.__name__}.parse got a mapping without key {cls.json_key!r}")
            raw = raw[cls.json_key]
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
            raise TypeError(f"{cls.__name__}.parse expects a list, got {type(raw).__name__}")
        return [cls.member_type.parse(item) for item in raw]

    @classmethod
    def parse_meta(cls, raw: Any) -> dict[str, Any]:
        """Everything beside the members in a ``json_key``-wrapped response."""
        if cls.json_key and isinstance(raw, Mapping) and cls.json_key in raw:
            return {key: value for key, value in raw.items() if key != cls.json_key}
        return {}

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[Model]:  # type: ignore[override]
        return iter(self.models)

    @property
    def app(self) -> Any:
        return self._app

    def attach_app(self, app: Any) -> None:
        self._app = app
        for member in self.models:
            member.attach_app(app)

    def reset(self, members: Iterable[Model | Mapping[str, Any]]) -> None:
        self.models = [self._to_member(member) for member in members]
        if self._app is not None:
            for member in self.models:
                member.attach_app(self._app)

    def load(self, raw: Any) -> None:
        """Apply a remote response to this instance."""
        self.reset(self.parse(raw))
        self.meta.update(self.parse_meta(raw))

    def pluck(self, key: str) -> list[Any]:
        return [member.get(key) for member in self.models]

    def to_json(self) -> list[dict[str, Any]]:
        return [member.to_json() for member in self.models]
