#!/usr/bin/env python3
"""Fetch a spec map from a live API and print the results and their summaries.

Types are declared on the command line, so no code is needed to poke at
an endpoint.

Usage
-----
::

    export HYDRATE_BASE_URL="http://localhost:3030"
    python scripts/fetch_specs.py \\
        --model Listing=/listings/{id}:listing \\
        --collection Listings=/listings:listings:Listing \\
        '{"listing": {"model": "Listing", "params": {"id": 1}}, "all": {"collection": "Listings"}}'

Options::

    --model NAME=URL[:JSON_KEY]                  Register a model type
    --collection NAME=URL[:JSON_KEY[:MEMBER]]    Register a collection type
    --twice                                      Fetch again with the cache enabled
    --verbose / -v                               Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyhydrate import App, Collection, FetchOptions, HydrateConfig, HydrateError, Model, TypeRegistry  # noqa: E402


def _split_declaration(value: str) -> tuple[str, list[str]]:
    name, sep, rest = value.partition("=")
    if not sep or not name or not rest:
        raise argparse.ArgumentTypeError(f"expected NAME=URL[...], got {value!r}")
    return name, rest.split(":")


def _build_registry(models: list[str], collections: list[str]) -> TypeRegistry:
    registry = TypeRegistry()
    model_types: dict[str, type[Model]] = {}

    for declaration in models:
        name, parts = _split_declaration(declaration)
        attrs: dict[str, Any] = {"type_id": name, "url": parts[0]}
        if len(parts) > 1 and parts[1]:
            attrs["json_key"] = parts[1]
        model_cls = type(name, (Model,), attrs)
        registry.register_model(model_cls)
        model_types[name] = model_cls

    for declaration in collections:
        name, parts = _split_declaration(declaration)
        attrs = {"type_id": name, "url": parts[0]}
        if len(parts) > 1 and parts[1]:
            attrs["json_key"] = parts[1]
        if len(parts) > 2:
            try:
                attrs["member_type"] = model_types[parts[2]]
            except KeyError:
                raise SystemExit(f"collection {name}: member model {parts[2]!r} was not declared") from None
        registry.register_collection(type(name, (Collection,), attrs))

    return registry


def _print_results(title: str, app: App, results: dict[str, Any]) -> None:
    print(f"── {title} " + "─" * max(0, 60 - len(title)))
    for key, entity in results.items():
        summary = app.fetcher.summarize(entity).to_dict()
        print(f"{key}:")
        print(f"  summary : {json.dumps(summary, default=str)}")
        print(f"  data    : {json.dumps(entity.to_json(), default=str)[:400]}")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch specs from a remote API with pyhydrate.")
    parser.add_argument("specs", help="JSON object mapping result keys to fetch specs")
    parser.add_argument("--model", action="append", default=[], help="NAME=URL[:JSON_KEY]")
    parser.add_argument("--collection", action="append", default=[], help="NAME=URL[:JSON_KEY[:MEMBER]]")
    parser.add_argument("--twice", action="store_true", help="Fetch again with the cache enabled")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        specs = json.loads(args.specs)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"specs must be a JSON object: {exc}") from exc

    registry = _build_registry(args.model, args.collection)
    cached = FetchOptions(read_from_cache=True, write_to_cache=True)

    async with App(HydrateConfig.from_env(), registry=registry) as app:
        app.fetcher.on("fetch:start", lambda *_: print(f"  … {app.fetcher.pending_fetches} pending"))
        try:
            results = await app.fetcher.fetch(specs, cached)
            _print_results("fetch", app, results)
            if args.twice:
                results = await app.fetcher.fetch(specs, cached)
                _print_results("fetch (cached)", app, results)
        except HydrateError as exc:
            print(f"error: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc


if __name__ == "__main__":
    asyncio.run(main())
