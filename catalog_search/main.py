"""FastAPI application wiring the catalog search facade."""
from __future__ import annotations

import asyncio
import logging
from functools import lru_cache
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, HTTPException, Query

from .config import settings
from .es_client import ElasticsearchExecutor, get_client
from .facade import SearchFacade
from .models import SearchResponse, Suggestion, SuggestResponse
from .query import SUGGEST_NAME

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())

app = FastAPI(title="Catalog Search Service")


@lru_cache(maxsize=1)
def get_facade() -> SearchFacade:
    return SearchFacade(ElasticsearchExecutor(get_client()), config=settings)


def _parse_properties(raw: List[str]) -> Dict[str, List[str]]:
    """Group ``name:value`` pairs by property name."""

    grouped: Dict[str, List[str]] = {}
    for pair in raw:
        name, sep, value = pair.partition(":")
        if not sep or not name or not value:
            raise HTTPException(status_code=400, detail=f"Malformed property filter: {pair!r}")
        grouped.setdefault(name, []).append(value)
    return grouped


def _facets(aggregations: Dict[str, Any]) -> Dict[str, Any]:
    facets: Dict[str, Any] = {}
    for key, value in aggregations.items():
        if "buckets" in value:
            facets[key] = {bucket["key"]: bucket["doc_count"] for bucket in value["buckets"]}
        else:
            facets[key] = value
    return facets


@app.get("/health")
async def health() -> dict:
    es = get_client()
    status = await asyncio.to_thread(es.cluster.health)
    return {"elasticsearch": status.get("status"), "index": settings.es_index}


@app.get("/search", response_model=SearchResponse)
async def search(
    keywords: str | None = None,
    sorting: str | None = None,
    taxon: List[str] = Query(default=[]),
    browse_mode: bool | None = None,
    price_min: float | None = None,
    price_max: float | None = None,
    prop: List[str] = Query(default=[], description="Property filter as name:value"),
    page: str | None = None,
    per_page: str | None = None,
    new_category: bool = False,
    facade: SearchFacade = Depends(get_facade),
) -> SearchResponse:
    params: Dict[str, Any] = {
        "keywords": keywords,
        "sorting": sorting,
        "taxon": taxon,
        "browse_mode": browse_mode,
        "page": page,
        "per_page": per_page,
        "new_category": new_category,
    }
    # missing bounds leave the price range disabled but keep property filters
    params["search"] = {
        "price": {"min": price_min, "max": price_max},
        "properties": _parse_properties(prop),
    }
    payload = await facade.search(params)
    hits = payload.get("hits", {})
    total = hits.get("total", 0)
    if isinstance(total, dict):
        total = total.get("value", 0)
    results = [{**hit.get("_source", {}), "score": hit.get("_score")} for hit in hits.get("hits", [])]
    return SearchResponse(
        took_ms=payload.get("took", 0),
        total=total,
        results=results,
        facets=_facets(payload.get("aggregations", {})),
    )


@app.get("/suggest", response_model=SuggestResponse)
async def suggest(
    q: str = Query(..., description="Name prefix"),
    size: int | None = None,
    facade: SearchFacade = Depends(get_facade),
) -> SuggestResponse:
    if not q.strip():
        raise HTTPException(status_code=400, detail="Prefix must not be empty")
    payload = await facade.suggest(q, size)
    entries = payload.get("suggest", {}).get(SUGGEST_NAME, [])
    suggestions = [
        Suggestion(text=option.get("text", ""), payload=option.get("_source", {}).get(SUGGEST_NAME, {}).get("payload", {}))
        for entry in entries
        for option in entry.get("options", [])
    ]
    return SuggestResponse(prefix=q, suggestions=suggestions)
