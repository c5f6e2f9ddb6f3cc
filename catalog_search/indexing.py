"""Hands projected catalog documents to Elasticsearch."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List

from elasticsearch import Elasticsearch, helpers

from .config import Settings, settings as default_settings
from .models import CatalogItem
from .projection import project_item
from .taxonomy import Taxonomy

logger = logging.getLogger(__name__)


def build_actions(
    items: Iterable[CatalogItem],
    taxonomy: Taxonomy,
    index: str,
    *,
    config: Settings = default_settings,
) -> List[Dict[str, Any]]:
    """Project every item into a bulk index action keyed by item id.

    The whole batch is projected before returning, so a
    :class:`~catalog_search.errors.MissingHierarchyData` raised for one item
    stops the batch before anything reaches the cluster.
    """

    return [
        {
            "_index": index,
            "_id": item.id,
            "_source": project_item(item, taxonomy, config=config),
        }
        for item in items
    ]


async def index_items(
    es: Elasticsearch,
    items: Iterable[CatalogItem],
    taxonomy: Taxonomy,
    *,
    config: Settings = default_settings,
) -> int:
    actions = build_actions(items, taxonomy, config.es_index, config=config)
    if not actions:
        return 0
    indexed, _ = await asyncio.to_thread(helpers.bulk, es, actions)
    logger.info("Indexed %s catalog items into %s", indexed, config.es_index)
    return indexed
