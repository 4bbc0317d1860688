"""Fetcher: resolves fetch specs to live models and collections.

The fetcher is the public entry point of the package.  Given a mapping of
``name -> FetchSpec`` it either rebuilds objects from the entity store or
asks the remote transport for them, optionally writes the results back
into the store, and reports progress through ``fetch:start`` /
``fetch:end`` events and the :attr:`Fetcher.pending_fetches` counter.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from pyhydrate._tasks import gather_keyed
from pyhydrate._transport import Transport
from pyhydrate.config import HydrateConfig
from pyhydrate.events import EventEmitter, FetchEvent, Listener
from pyhydrate.exceptions import (
    CollectionNotFoundError,
    HydrateConfigError,
    HydrateError,
    HydrationError,
    RemoteFetchError,
)
from pyhydrate.freshness import FreshnessTracker
from pyhydrate.models._base import Collection, Model, interpolate_url
from pyhydrate.registry import TypeRegistry
from pyhydrate.spec import FetchOptions, FetchSpec
from pyhydrate.store import CollectionRecord, CollectionStore, ModelStore, serialize_params
from pyhydrate.summary import CollectionSummary, ModelSummary, Summary, parse_summary, summarize

_logger = logging.getLogger(__name__)

Entity = Model | Collection


class Fetcher:
    """Spec-driven fetching and hydration for one application instance.

    Usage::

        results = await app.fetcher.fetch(
            {"listing": {"model": "Listing", "params": {"id": 9}}},
            {"write_to_cache": True},
        )
    """

    def __init__(
        self,
        app: Any,
        *,
        registry: TypeRegistry,
        model_store: ModelStore,
        collection_store: CollectionStore,
        transport: Transport | None = None,
        config: HydrateConfig | None = None,
        freshness: FreshnessTracker | None = None,
    ) -> None:
        self.app = app
        self.registry = registry
        self.model_store = model_store
        self.collection_store = collection_store
        self.transport = transport
        self.config = config or HydrateConfig()
        self.freshness = freshness or FreshnessTracker(checked_fresh_rate=self.config.checked_fresh_rate)
        self.pending_fetches = 0
        self._events = EventEmitter()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> None:
        self._events.on(event, listener)

    def off(self, event: str, listener: Listener | None = None) -> None:
        self._events.off(event, listener)

    # ------------------------------------------------------------------
    # Spec helpers
    # ------------------------------------------------------------------

    def build_options(
        self,
        additional_options: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Merge *params* and *additional_options*; ``app`` is always set last."""
        options: dict[str, Any] = dict(params or {})
        options.update(additional_options or {})
        options["app"] = self.app
        return options

    def get_model_or_collection_for_spec(self, spec: FetchSpec | Mapping[str, Any]) -> Entity:
        """Empty instance of the spec's type (no attributes, no members)."""
        spec = FetchSpec.coerce(spec)
        if spec.model is not None:
            return self.registry.get_model(spec.model, app=self.app)
        return self.registry.get_collection(spec.type_name, params=spec.params, app=self.app)

    @staticmethod
    def is_missing_keys(data: Mapping[str, Any] | Model, keys: str | Sequence[str] | None = None) -> bool:
        """True when at least one of *keys* is absent from *data*.

        Presence is membership, so a key holding ``0``, ``False``, ``""``
        or ``None`` counts as present.
        """
        if not keys:
            return False
        if isinstance(keys, str):
            keys = [keys]
        if isinstance(data, Model):
            data = data.attributes
        return any(key not in data for key in keys)

    def needs_fetch(self, model_data: Any, spec: FetchSpec | Mapping[str, Any]) -> bool:
        """Decide whether held data must be (re)fetched; first matching rule wins."""
        spec = FetchSpec.coerce(spec)
        if model_data is None:
            return True
        # ensure_keys names attributes, so it only applies to single entities.
        if spec.ensure_keys and not isinstance(model_data, Collection):
            if self.is_missing_keys(model_data, spec.ensure_keys):
                return True
        if isinstance(spec.needs_fetch, bool):
            return spec.needs_fetch
        if callable(spec.needs_fetch):
            return bool(spec.needs_fetch(model_data))
        return False

    def summarize(self, obj: Entity) -> Summary:
        return summarize(obj, self.registry)

    # ------------------------------------------------------------------
    # Freshness
    # ------------------------------------------------------------------

    def checked_fresh_key(self, spec: FetchSpec | Mapping[str, Any]) -> str:
        return self.freshness.key(FetchSpec.coerce(spec))

    def should_check_fresh(self, spec: FetchSpec | Mapping[str, Any]) -> bool:
        return self.freshness.should_check_fresh(FetchSpec.coerce(spec))

    def did_check_fresh(self, spec: FetchSpec | Mapping[str, Any]) -> None:
        self.freshness.did_check_fresh(FetchSpec.coerce(spec))

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def _fetch_options(self, options: FetchOptions | Mapping[str, Any] | None) -> FetchOptions:
        if isinstance(options, FetchOptions):
            return options
        default = self.config.client_side
        values: dict[str, Any] = {"read_from_cache": default, "write_to_cache": default}
        values.update(options or {})
        return FetchOptions.model_validate(values)

    async def fetch(
        self,
        specs: Mapping[str, FetchSpec | Mapping[str, Any]],
        options: FetchOptions | Mapping[str, Any] | None = None,
    ) -> dict[str, Entity]:
        """Resolve every spec in *specs* and return ``{name: object}``.

        ``read_from_cache`` / ``write_to_cache`` default to
        ``config.client_side``.  Errors raised while retrieving propagate
        unchanged once ``fetch:end`` has been emitted.  Both events receive the
        caller's own *specs* mapping; a cancelled fetch reports the
        :class:`asyncio.CancelledError` as its error.  There is no
        timeout at this layer: a retrieve that never finishes keeps
        :attr:`pending_fetches` incremented.
        """
        fetch_specs = {name: FetchSpec.coerce(spec) for name, spec in specs.items()}
        fetch_options = self._fetch_options(options)

        self.pending_fetches += 1
        self._events.emit(FetchEvent.START, specs)
        _logger.debug("Fetch started for %s (pending=%d)", list(fetch_specs), self.pending_fetches)

        error: BaseException | None = None
        results: dict[str, Entity] | None = None
        try:
            results = await self._retrieve(fetch_specs, fetch_options)
        except BaseException as exc:
            error = exc
            raise
        finally:
            self.pending_fetches -= 1
            self._events.emit(FetchEvent.END, specs, error, results)
            _logger.debug("Fetch ended for %s (error=%r)", list(fetch_specs), error)

        if fetch_options.write_to_cache:
            self.store_results(results)
        return results

    async def _retrieve(self, specs: Mapping[str, FetchSpec], options: FetchOptions) -> dict[str, Entity]:
        factories = {name: functools.partial(self._retrieve_one, spec, options) for name, spec in specs.items()}
        return await gather_keyed(factories)

    async def _retrieve_one(self, spec: FetchSpec, options: FetchOptions) -> Entity:
        if not options.read_from_cache:
            return await self.fetch_from_api(spec, options)
        cached = self._retrieve_from_store(spec)
        return await self._refresh_data(spec, options, cached)

    async def _refresh_data(self, spec: FetchSpec, options: FetchOptions, cached: Entity | None) -> Entity:
        if self.needs_fetch(cached, spec):
            _logger.debug("Cache miss for %s", self.freshness.key(spec))
            return await self.fetch_from_api(spec, options)
        assert cached is not None  # noqa: S101
        if spec.check_fresh and self.freshness.should_check_fresh(spec):
            self.freshness.did_check_fresh(spec)
            _logger.debug("Re-validating %s", self.freshness.key(spec))
            return await self.fetch_from_api(spec, options)
        _logger.debug("Cache hit for %s", self.freshness.key(spec))
        return cached

    def _retrieve_from_store(self, spec: FetchSpec) -> Entity | None:
        if spec.model is not None:
            id_attribute = self.registry.model_id_attribute(spec.model)
            model_id = spec.params.get(id_attribute)
            bag = self.model_store.get(spec.model, model_id, True) if model_id is not None else None
            if bag is None:
                if not any(key != id_attribute for key in spec.params):
                    return None
                bag = self.model_store.find(spec.model, spec.params, True)
                if bag is None:
                    return None
            return self.registry.get_model(spec.model, bag, app=self.app)

        record = self.collection_store.get(spec.type_name, spec.params)
        if record is None:
            return None
        return self._collection_from_record(spec.type_name, record, app=self.app, allow_missing=False)

    async def fetch_from_api(self, spec: FetchSpec, options: FetchOptions) -> Entity:
        """Fetch one spec through the transport into a fresh instance."""
        if self.transport is None:
            raise HydrateConfigError("No transport configured for remote fetches")
        target = self.get_model_or_collection_for_spec(spec)
        template = type(target).url
        if not template:
            raise HydrateConfigError(f"{type(target).__name__} has no url to fetch from")
        path, query = interpolate_url(template, spec.params)

        description = f"{spec.kind} {spec.type_name!r} with params {serialize_params(spec.params)}"
        try:
            raw = await self.transport.get_json(
                path,
                query,
                headers=options.headers or None,
                timeout=options.timeout,
            )
        except RemoteFetchError as exc:
            raise RemoteFetchError(
                f"Error fetching {description}: {exc}",
                status_code=exc.status_code,
                body=exc.body,
                endpoint=exc.endpoint,
            ) from exc

        try:
            target.load(raw)
        except (TypeError, ValueError, ValidationError) as exc:
            raise RemoteFetchError(
                f"Unexpected response fetching {description}: {exc}",
                body=raw,
                endpoint=path,
            ) from exc
        if self.app is not None:
            target.attach_app(self.app)
        return target

    def store_results(self, results: Mapping[str, Any]) -> None:
        for value in results.values():
            if isinstance(value, Model):
                self.model_store.set(value)
            elif isinstance(value, Collection):
                self.collection_store.set(value)

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------

    def _model_from_store(self, type_name: str, model_id: Any, *, app: Any = None) -> Model:
        bag = self.model_store.get(type_name, model_id, True)
        if bag is None:
            _logger.debug("No stored attributes for %s:%s", type_name, model_id)
            bag = {self.registry.model_id_attribute(type_name): model_id}
        return self.registry.get_model(type_name, bag, app=app)

    def _collection_from_record(
        self,
        type_name: str,
        record: CollectionRecord,
        *,
        app: Any = None,
        allow_missing: bool = True,
    ) -> Collection | None:
        """Rebuild a collection, resolving each member id through the model store.

        With ``allow_missing=False`` a member without a stored bag makes the
        whole collection a miss (``None``).
        """
        member_name = self.registry.model_name_for_collection(type_name)
        id_attribute = self.registry.model_id_attribute(member_name)
        bags = self.model_store.get_many(member_name, record.ids, True)
        members: list[Model] = []
        for model_id, bag in zip(record.ids, bags, strict=True):
            if bag is None:
                if not allow_missing:
                    return None
                bag = {id_attribute: model_id}
            members.append(self.registry.get_model(member_name, bag))
        return self.registry.get_collection(type_name, members, params=record.params, meta=record.meta, app=app)

    async def _hydrate_one(
        self,
        name: str,
        summary: Summary,
        record: CollectionRecord | None,
        app: Any,
    ) -> Entity:
        try:
            if isinstance(summary, ModelSummary):
                return self._model_from_store(summary.model, summary.id, app=app)
            assert record is not None  # noqa: S101
            collection = self._collection_from_record(summary.collection, record, app=app)
            assert collection is not None  # noqa: S101
            return collection
        except HydrateError:
            raise
        except Exception as exc:
            raise HydrationError(f"Failed to hydrate {name!r}: {exc}", key=name) from exc

    async def hydrate(
        self,
        summaries: Mapping[str, Summary | Mapping[str, Any]],
        *,
        app: Any = None,
    ) -> dict[str, Entity]:
        """Rebuild live objects from summaries using the entity store.

        Raises :class:`CollectionNotFoundError` before any work starts when
        a collection summary has no stored slot.  Results are returned only
        once every key has been rebuilt.
        """
        parsed = {name: parse_summary(summary) for name, summary in summaries.items()}

        records: dict[str, CollectionRecord] = {}
        for name, summary in parsed.items():
            if not isinstance(summary, CollectionSummary):
                continue
            record = self.collection_store.get(summary.collection, summary.params)
            if record is None:
                params_key = serialize_params(summary.params)
                raise CollectionNotFoundError(
                    f"Collection of type {summary.collection!r} not found for params: {params_key}",
                    type_name=summary.collection,
                    params_key=params_key,
                )
            records[name] = record

        factories = {
            name: functools.partial(self._hydrate_one, name, summary, records.get(name), app)
            for name, summary in parsed.items()
        }
        return await gather_keyed(factories)

    def bootstrap_data(self, model_map: Mapping[str, Mapping[str, Any]]) -> dict[str, Entity]:
        """Rebuild objects a server process sent as ``{"summary": ..., "data": ...}``.

        The rebuilt objects get the app attached and are written to the store.
        """
        results: dict[str, Entity] = {}
        for name, entry in model_map.items():
            summary = parse_summary(entry["summary"])
            data = entry.get("data")
            if isinstance(summary, ModelSummary):
                parse = self.registry.get_model_constructor(summary.model).parse
                results[name] = self.registry.get_model(summary.model, parse(data or {}), app=self.app)
            else:
                members = self.registry.get_collection_constructor(summary.collection).parse(data or [])
                results[name] = self.registry.get_collection(
                    summary.collection,
                    members,
                    params=summary.params,
                    meta=summary.meta,
                    app=self.app,
                )
        self.store_results(results)
        return results
