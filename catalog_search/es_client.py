"""Elasticsearch client factory and query execution.

The rest of the code works against the official synchronous client. Blocking
calls are wrapped via ``asyncio.to_thread`` so the facade can be awaited from
the FastAPI handlers.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Protocol

from elasticsearch import Elasticsearch

from .config import settings

logger = logging.getLogger(__name__)


class SearchExecutor(Protocol):
    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]: ...


@lru_cache(maxsize=1)
def get_client() -> Elasticsearch:
    logger.info("Connecting to Elasticsearch at %s", settings.es_host)
    return Elasticsearch(settings.es_host)


def _translate_filter(clause: Dict[str, Any]) -> Dict[str, Any]:
    if set(clause) == {"and"}:
        return {"bool": {"filter": [_translate_filter(part) for part in clause["and"]]}}
    return clause


def to_bool_query(body: Dict[str, Any]) -> Dict[str, Any]:
    """Rewrite a compiled body into the DSL accepted by current clusters.

    ``query.filtered`` becomes a ``bool`` query with the text clause under
    ``must`` and the ``and`` list under ``filter``; the top-level ``filter``
    becomes ``post_filter``. Other keys are copied unchanged.
    """

    translated: Dict[str, Any] = {}
    for key, value in body.items():
        if key == "query" and "filtered" in value:
            filtered = value["filtered"]
            bool_query: Dict[str, Any] = {"must": filtered.get("query", {"match_all": {}})}
            conditions = filtered.get("filter")
            if conditions is not None:
                bool_query["filter"] = conditions["and"] if set(conditions) == {"and"} else [conditions]
            translated["query"] = {"bool": bool_query}
        elif key == "filter":
            if value is not None:
                translated["post_filter"] = _translate_filter(value)
        else:
            translated[key] = value
    return translated


@dataclass
class ElasticsearchExecutor:
    """Sends compiled bodies to the cluster and returns the raw response."""

    client: Elasticsearch

    async def search(self, index: str, body: Dict[str, Any]) -> Dict[str, Any]:
        request_body = to_bool_query(body)
        logger.debug("ES request body=%s", request_body)
        response = await asyncio.to_thread(self.client.search, index=index, body=request_body)
        # ObjectApiResponse -> plain dict
        return dict(response.body) if hasattr(response, "body") else dict(response)
