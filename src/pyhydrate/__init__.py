"""pyhydrate - spec-driven data fetching and hydration for typed entities."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyhydrate")
except PackageNotFoundError:
    __version__ = "0+local"
from pyhydrate.app import App
from pyhydrate.config import HydrateConfig
from pyhydrate.exceptions import (
    CollectionNotFoundError,
    HydrateConfigError,
    HydrateError,
    HydrationError,
    InvalidSpecError,
    RemoteFetchError,
    UnknownTypeError,
)
from pyhydrate.fetcher import Fetcher
from pyhydrate.freshness import FreshnessTracker
from pyhydrate.models import Collection, Model
from pyhydrate.registry import TypeRegistry, underscorize
from pyhydrate.spec import FetchOptions, FetchSpec
from pyhydrate.store import CollectionRecord, CollectionStore, ModelStore
from pyhydrate.summary import CollectionSummary, ModelSummary, parse_summary, summarize

__all__ = [
    "__version__",
    "App",
    "Collection",
    "CollectionNotFoundError",
    "CollectionRecord",
    "CollectionStore",
    "CollectionSummary",
    "FetchOptions",
    "FetchSpec",
    "Fetcher",
    "FreshnessTracker",
    "HydrateConfig",
    "HydrateConfigError",
    "HydrateError",
    "HydrationError",
    "InvalidSpecError",
    "Model",
    "ModelStore",
    "ModelSummary",
    "RemoteFetchError",
    "TypeRegistry",
    "UnknownTypeError",
    "parse_summary",
    "summarize",
    "underscorize",
]
