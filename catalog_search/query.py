"""Compilation of search requests into Elasticsearch query documents.

Every search uses the same skeleton and fills in the blanks::

    {
      "min_score": 0.1,
      "query": {"filtered": {"query": <text>, "filter": {"and": [...]}}},
      "sort": [...],
      "from": ..., "size": ...,
      "aggregations": {...},
      "filter": {...}
    }

Filters inside the filtered query restrict the aggregations as well as the
hits. The top-level ``filter`` is applied after aggregation, so it narrows the
hits only. The price range always goes there. Category filters go there in
browse mode, which keeps the facets computed over the whole catalog.
"""
from __future__ import annotations

import copy
import logging
from datetime import date, timedelta
from typing import Any, Dict, List

from .models import SearchRequest
from .projection import property_token

logger = logging.getLogger(__name__)

MIN_SCORE = 0.1
FACET_SIZE = 1000000
SEARCH_FIELDS = ["name^5", "description", "sku"]
CATEGORY_NAMES_FIELD = "category_names"
LOOKUP_FIELDS = ["name", "sku"]
SUGGEST_NAME = "name_suggest"

_NAME = "name.untouched"
_PRICE = "price"
_SCORE = "_score"

SORT_CHAINS: Dict[str, List[Any]] = {
    "name_asc": [{_NAME: {"order": "asc"}}, {_PRICE: {"order": "asc"}}, _SCORE],
    "name_desc": [{_NAME: {"order": "desc"}}, {_PRICE: {"order": "asc"}}, _SCORE],
    "price_asc": [{_PRICE: {"order": "asc"}}, {_NAME: {"order": "asc"}}, _SCORE],
    "price_desc": [{_PRICE: {"order": "desc"}}, {_NAME: {"order": "asc"}}, _SCORE],
    "score": [_SCORE, {_NAME: {"order": "asc"}}, {_PRICE: {"order": "asc"}}],
}
DEFAULT_SORT = "name_asc"


def sort_chain(key: str | None) -> List[Any]:
    """Return a fresh copy of the tie-break chain for ``key``."""

    if key is not None and key not in SORT_CHAINS:
        logger.warning("Unknown sort key %r; using %s", key, DEFAULT_SORT)
    chain = SORT_CHAINS.get(key or DEFAULT_SORT, SORT_CHAINS[DEFAULT_SORT])
    return copy.deepcopy(chain)


def _text_clause(text: str | None, fields: List[str], *, dis_max: bool) -> Dict[str, Any]:
    if not text or not text.strip():
        return {"match_all": {}}
    clause: Dict[str, Any] = {"query": text, "fields": list(fields), "operator": "and"}
    if dis_max:
        clause["type"] = "best_fields"
    return {"multi_match": clause}


def _property_clauses(properties: Dict[str, List[str]]) -> List[Dict[str, Any]]:
    # OR within one property, AND across properties
    clauses: List[Dict[str, Any]] = []
    for name, values in properties.items():
        if not values:
            continue
        clauses.append({"terms": {"property_tokens": [property_token(name, value) for value in values]}})
    return clauses


def _category_clause(request: SearchRequest) -> Dict[str, Any] | None:
    if request.category_ids and not request.root_category_ids:
        return {"terms": {"category_ids": list(request.category_ids)}}
    return None


def _availability_clause(request: SearchRequest, today: date) -> Dict[str, Any]:
    bounds: Dict[str, str] = {"lte": today.isoformat()}
    if request.available_within_days is not None:
        bounds["gte"] = (today - timedelta(days=request.available_within_days)).isoformat()
    return {"range": {"available_on": bounds}}


def _price_clause(request: SearchRequest) -> Dict[str, Any] | None:
    low, high = request.price_min, request.price_max
    if low is None or high is None or not low < high:
        return None
    return {"range": {"price": {"gte": low, "lte": high}}}


def _aggregations() -> Dict[str, Any]:
    return {
        "price": {"stats": {"field": "price"}},
        "properties": {"terms": {"field": "property_tokens", "order": {"_count": "desc"}, "size": FACET_SIZE}},
        "taxon_ids": {"terms": {"field": "category_ids", "size": FACET_SIZE}},
    }


def _conjunction(clauses: List[Dict[str, Any]]) -> Dict[str, Any] | None:
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return {"and": clauses}


def _apply_pagination(body: Dict[str, Any], request: SearchRequest) -> None:
    offset = request.from_
    body["from"] = offset if isinstance(offset, int) and offset > 0 else 0
    if isinstance(request.size, int) and request.size > 0:
        body["size"] = request.size


def compile_search(
    request: SearchRequest,
    today: date,
    *,
    include_category_names: bool = True,
) -> Dict[str, Any]:
    """Build the faceted search body for ``request`` as of ``today``."""

    fields = SEARCH_FIELDS + ([CATEGORY_NAMES_FIELD] if include_category_names else [])
    and_filter = _property_clauses(request.properties)
    post_filter: List[Dict[str, Any]] = []

    category = _category_clause(request)
    if category is not None:
        if request.browse_mode:
            post_filter.append(category)
        else:
            and_filter.append(category)
    and_filter.append(_availability_clause(request, today))

    price = _price_clause(request)
    if price is not None:
        post_filter.append(price)

    body: Dict[str, Any] = {
        "min_score": MIN_SCORE,
        "query": {
            "filtered": {
                "query": _text_clause(request.query, fields, dis_max=True),
                "filter": {"and": and_filter},
            }
        },
        "sort": sort_chain(request.sorting),
    }
    _apply_pagination(body, request)
    body["aggregations"] = _aggregations()

    top_level = _conjunction(post_filter)
    if top_level is not None:
        body["filter"] = top_level

    logger.debug("ES search payload=%s", body)
    return body


def compile_lookup(request: SearchRequest, today: date) -> Dict[str, Any]:
    """Build a compact query over name and sku with all filters at top level.

    Used for quick lookups where facet placement does not matter.
    """

    clauses = _property_clauses(request.properties)
    category = _category_clause(request)
    if category is not None:
        clauses.append(category)
    clauses.append(_availability_clause(request, today))
    price = _price_clause(request)
    if price is not None:
        clauses.append(price)

    body: Dict[str, Any] = {
        "min_score": MIN_SCORE,
        "query": _text_clause(request.query, LOOKUP_FIELDS, dis_max=False),
        "sort": sort_chain(request.sorting),
    }
    _apply_pagination(body, request)
    body["aggregations"] = _aggregations()
    body["filter"] = _conjunction(clauses)

    logger.debug("ES lookup payload=%s", body)
    return body


def compile_suggest(prefix: str | None, size: int) -> Dict[str, Any]:
    """Build a completion suggester request; an empty prefix yields ``{}``."""

    text = (prefix or "").strip()
    if not text:
        return {}
    return {
        "suggest": {
            SUGGEST_NAME: {
                "prefix": text,
                "completion": {"field": SUGGEST_NAME, "size": size},
            }
        }
    }
