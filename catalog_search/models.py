"""Pydantic models for catalog entities and search payloads."""
from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Category(BaseModel):
    """A node of a taxonomy tree; ``parent_id`` is ``None`` for the root."""

    id: int
    name: str
    taxonomy: str
    parent_id: int | None = None
    permalink: str | None = None
    visible: bool = True


class Classification(BaseModel):
    position: int = 0
    category_id: int


class OptionValue(BaseModel):
    name: str
    presentation: str | None = None


class Variant(BaseModel):
    sku: str | None = None
    option_values: list[OptionValue] = Field(default_factory=list)


class ProductProperty(BaseModel):
    name: str
    value: str


class Image(BaseModel):
    urls: dict[str, str] = Field(default_factory=dict)
    hover: bool = False

    def url(self, style: str) -> str | None:
        return self.urls.get(style)


class CatalogItem(BaseModel):
    id: int
    name: str
    description: str | None = None
    price: float | None = None
    sku: str | None = None
    slug: str | None = None
    available_on: date | None = None
    meta_keywords: str | None = None
    classifications: list[Classification] = Field(default_factory=list)
    variants: list[Variant] = Field(default_factory=list)
    properties: list[ProductProperty] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)


class SearchRequest(BaseModel):
    """Normalized search parameters consumed by the query compiler."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    query: str | None = None
    price_min: float | None = None
    price_max: float | None = None
    category_ids: list[int | str] = Field(default_factory=list)
    root_category_ids: list[int | str] = Field(default_factory=list)
    properties: dict[str, list[str]] = Field(default_factory=dict)
    sorting: str | None = None
    from_: int | None = Field(default=0, alias="from")
    size: int | None = None
    browse_mode: bool = True
    available_within_days: int | None = None


class SearchResponse(BaseModel):
    took_ms: float
    total: int
    results: list[dict[str, Any]]
    facets: dict[str, Any] = Field(default_factory=dict)


class Suggestion(BaseModel):
    text: str
    payload: dict[str, Any] = Field(default_factory=dict)


class SuggestResponse(BaseModel):
    prefix: str
    suggestions: list[Suggestion]
