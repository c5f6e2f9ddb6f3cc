"""Terminal client that reuses the in-process search facade."""
from __future__ import annotations

import argparse
import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable

from catalog_search.config import settings
from catalog_search.es_client import ElasticsearchExecutor, get_client
from catalog_search.facade import SearchFacade, compile_params, normalize_params
from catalog_search.query import compile_lookup

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def build_params(query: str, args: argparse.Namespace) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "keywords": query,
        "sorting": args.sort,
        "taxon": args.taxon,
        "browse_mode": not args.narrow_facets,
        "page": args.page,
        "per_page": args.per_page,
        "new_category": args.new,
    }
    if args.price:
        low, high = args.price
        params["search"] = {"price": {"min": low, "max": high}, "properties": {}}
    return params


def render_query(query: str, args: argparse.Namespace) -> Dict[str, Any]:
    params = build_params(query, args)
    if args.lookup:
        return compile_lookup(normalize_params(params, config=settings), date.today())
    return compile_params(params, date.today(), config=settings)


async def perform_query(query: str, args: argparse.Namespace) -> dict:
    executor = ElasticsearchExecutor(get_client())
    if args.lookup:
        return await executor.search(settings.es_index, render_query(query, args))
    facade = SearchFacade(executor, config=settings)
    return await facade.search(build_params(query, args))


def pretty_print_response(query: str, payload: dict) -> None:
    hits = payload.get("hits", {})
    results = hits.get("hits", [])
    took = float(payload.get("took", 0))
    color = GREEN if took < 200 else RED
    print(f"Query: {query} | results: {len(results)} | took: {color}{took:.1f} ms{RESET}")
    for idx, hit in enumerate(results, start=1):
        source = hit.get("_source", {})
        score = hit.get("_score")
        score_repr = f"{score:.2f}" if isinstance(score, (int, float)) else "-"
        print(f"  {idx:02d}. score={score_repr} | {source.get('sku')} | {source.get('name')} | {source.get('price')}")
    for facet, value in payload.get("aggregations", {}).items():
        buckets = value.get("buckets")
        if buckets is None:
            print(f"  [{facet}] {value}")
        else:
            print(f"  [{facet}] " + ", ".join(f"{b['key']}={b['doc_count']}" for b in buckets[:10]))


def run(query: str, args: argparse.Namespace) -> None:
    if args.dump:
        print(json.dumps(render_query(query, args), indent=2, sort_keys=True))
        return
    response = asyncio.run(perform_query(query, args))
    pretty_print_response(query, response)


def interactive_shell(args: argparse.Namespace) -> None:
    print("Interactive catalog search. Type 'exit' to quit.")
    while True:
        try:
            query = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if query.lower() in {"exit", "quit"}:
            return
        run(query, args)


def batch_mode(file_path: Path, args: argparse.Namespace) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            run(query, args)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the catalog search service")
    parser.add_argument("query", nargs="?", help="Keywords. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--sort", help="name_asc, name_desc, price_asc, price_desc or score")
    parser.add_argument("--taxon", action="append", default=[], help="Category id filter (repeatable)")
    parser.add_argument("--price", nargs=2, type=float, metavar=("MIN", "MAX"))
    parser.add_argument("--page", type=int)
    parser.add_argument("--per-page", type=int)
    parser.add_argument("--new", action="store_true", help="Only recently available items")
    parser.add_argument("--narrow-facets", action="store_true", help="Apply category filters to facets too")
    parser.add_argument("--lookup", action="store_true", help="Use the compact name/sku lookup query")
    parser.add_argument("--dump", action="store_true", help="Print the compiled query instead of searching")
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.batch:
        batch_mode(args.batch, args)
        return 0
    if args.query is not None:
        run(args.query, args)
        return 0
    interactive_shell(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
