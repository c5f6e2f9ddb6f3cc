"""Exceptions raised by the catalog search core."""
from __future__ import annotations


class CatalogSearchError(Exception):
    """Base class for errors raised by this package."""


class MissingHierarchyData(CatalogSearchError):
    """A category referenced by an item cannot be resolved in the taxonomy."""

    def __init__(self, category_id: int, detail: str = "unknown category") -> None:
        super().__init__(f"{detail}: {category_id}")
        self.category_id = category_id
