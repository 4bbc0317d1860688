"""Typed entity base classes."""

from pyhydrate.models._base import Collection, Model, interpolate_url

__all__ = [
    "Collection",
    "Model",
    "interpolate_url",
]
