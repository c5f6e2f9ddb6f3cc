"""Projection of catalog items into search index documents.

The projected document is flat: category membership is expanded to the full
ancestor closure, properties are encoded as ``"<name>||<value>"`` tokens that
the query compiler filters on, and eligible items carry a ``name_suggest``
block for the completion suggester.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List

from .config import Settings, settings as default_settings
from .models import CatalogItem, Category
from .taxonomy import Taxonomy

logger = logging.getLogger(__name__)

PROPERTY_SEPARATOR = "||"

_NON_WORD_RE = re.compile(r"\W+")


def property_token(name: str, value: str) -> str:
    return f"{name}{PROPERTY_SEPARATOR}{value}"


def _split_words(text: str | None) -> List[str]:
    if not text:
        return []
    return [word for word in _NON_WORD_RE.split(text) if word]


def tokenize(name: str | None) -> List[str]:
    """Expand a product name into completion inputs.

    All single words come first, followed by the growing prefix phrases of two
    or more words. Growth stops one word short, so the complete name is not
    emitted as a phrase of its own::

        >>> tokenize("Red Running Shoes")
        ['Red', 'Running', 'Shoes', 'Red Running']

    The legacy storefront pushed the phrase before extending it, which also
    produced a one-word phrase, and kept a trailing space on every phrase:
    ``['Red', 'Running', 'Shoes', 'Red ', 'Red Running ']``. Both analyze to
    the same completion inputs; the duplicate word and the spaces are dropped
    here.
    """

    words = _split_words(name)
    tokens = list(words)
    phrase = words[0] if words else ""
    for index in range(1, len(words) - 1):
        phrase = f"{phrase} {words[index]}"
        tokens.append(phrase)
    return tokens


def _permalink_segment(category: Category) -> str:
    parts = (category.permalink or "").split("/")
    return parts[1] if len(parts) > 1 else ""


def _category_closure(item: CatalogItem, taxonomy: Taxonomy) -> List[Category]:
    closure: Dict[int, Category] = {}
    for classification in item.classifications:
        for category in taxonomy.self_and_ancestors(classification.category_id):
            closure.setdefault(category.id, category)
    return list(closure.values())


def _suggest_categories(item: CatalogItem, taxonomy: Taxonomy, config: Settings) -> List[Dict[str, Any]]:
    meta = config.meta_taxonomy.lower()
    selected: List[Dict[str, Any]] = []
    for classification in sorted(item.classifications, key=lambda c: c.position):
        category = taxonomy.get(classification.category_id)
        if not category.visible or category.taxonomy.lower() == meta:
            continue
        if taxonomy.depth(category.id) != 1:
            continue
        segment = _permalink_segment(category)
        if not segment:
            continue
        selected.append({"name": segment, "id": category.id})
    return selected


def _image_url(item: CatalogItem, style: str) -> str | None:
    if not item.images:
        return None
    return item.images[0].url(style)


def _hover_image_url(item: CatalogItem, style: str) -> str:
    for image in item.images:
        if image.hover:
            return image.url(style) or ""
    return ""


def _variants(item: CatalogItem) -> List[Dict[str, Any]]:
    return [
        {
            "sku": variant.sku,
            "option_values": [
                {"name": option.name, "presentation": option.presentation}
                for option in variant.option_values
            ],
        }
        for variant in item.variants
    ]


def build_name_suggest(
    item: CatalogItem,
    categories: List[Dict[str, Any]],
    config: Settings,
) -> Dict[str, Any]:
    inputs: List[Any] = tokenize(item.name)
    # keywords stay grouped as one trailing entry
    inputs.append(_split_words(item.meta_keywords))
    return {
        "input": inputs,
        "output": item.name,
        "payload": {
            "id": item.id,
            "name": item.name,
            "available_on": item.available_on.isoformat() if item.available_on else None,
            "thumbnail_url": _image_url(item, config.thumbnail_image_style),
            "categories": categories,
        },
    }


def project_item(item: CatalogItem, taxonomy: Taxonomy, *, config: Settings = default_settings) -> Dict[str, Any]:
    """Build the search document stored for ``item``.

    Raises :class:`~catalog_search.errors.MissingHierarchyData` when one of the
    item's categories cannot be resolved; a partial document is never returned.
    """

    document: Dict[str, Any] = {
        "id": item.id,
        "sku": item.sku,
        "slug": item.slug,
        "name": item.name,
        "description": item.description,
        "available_on": item.available_on.isoformat() if item.available_on else None,
        "price": item.price,
        "variants": _variants(item),
        "hover_image_url": _hover_image_url(item, config.listing_image_style),
    }

    primary_image = _image_url(item, config.listing_image_style)
    if primary_image is not None:
        document["primary_image_url"] = primary_image

    tokens = [property_token(prop.name, prop.value) for prop in item.properties]
    if tokens:
        document["property_tokens"] = tokens

    if item.classifications:
        closure = _category_closure(item, taxonomy)
        document["category_ids"] = sorted(category.id for category in closure)
        document["category_names"] = " ".join(dict.fromkeys(category.name for category in closure))

    suggest_categories = _suggest_categories(item, taxonomy, config)
    if suggest_categories:
        document["name_suggest"] = build_name_suggest(item, suggest_categories, config)
    else:
        logger.debug("item id=%s has no suggest category; skipping name_suggest", item.id)

    return document
