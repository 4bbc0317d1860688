"""Fetch specs and fetch options."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from pyhydrate.exceptions import InvalidSpecError


class FetchSpec(BaseModel):
    """Declarative request for one model or one collection.

    Exactly one of ``model`` and ``collection`` must be set; which one
    decides the kind of object the spec resolves to.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    model: str | None = None
    collection: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    ensure_keys: str | list[str] | None = None
    needs_fetch: bool | Callable[[Any], bool] | None = None
    check_fresh: bool = False

    @field_validator("model", "collection", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _exactly_one_kind(self) -> FetchSpec:
        if (self.model is None) == (self.collection is None):
            raise InvalidSpecError("fetch spec must name exactly one of 'model' or 'collection'")
        return self

    @classmethod
    def coerce(cls, value: FetchSpec | Mapping[str, Any]) -> FetchSpec:
        if isinstance(value, FetchSpec):
            return value
        if not isinstance(value, Mapping):
            raise InvalidSpecError(f"fetch spec must be a mapping, got {type(value).__name__}")
        try:
            return cls.model_validate(dict(value))
        except ValidationError as exc:
            raise InvalidSpecError(f"invalid fetch spec {dict(value)!r}: {exc}") from exc

    @property
    def kind(self) -> Literal["model", "collection"]:
        return "model" if self.model is not None else "collection"

    @property
    def type_name(self) -> str:
        """The type name exactly as the caller wrote it."""
        name = self.model if self.model is not None else self.collection
        assert name is not None  # noqa: S101
        return name


class FetchOptions(BaseModel):
    """Per-call options handed to the remote-fetch delegate."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    read_from_cache: bool = False
    write_to_cache: bool = False
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float | None = None
