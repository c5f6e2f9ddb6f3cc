"""In-memory view of the category hierarchy used during projection."""
from __future__ import annotations

from typing import Dict, Iterable, List

from .errors import MissingHierarchyData
from .models import Category


class Taxonomy:
    """Category lookup keyed by id with upward traversal to the root."""

    def __init__(self, categories: Iterable[Category]) -> None:
        self._by_id: Dict[int, Category] = {category.id: category for category in categories}

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def get(self, category_id: int) -> Category:
        try:
            return self._by_id[category_id]
        except KeyError:
            raise MissingHierarchyData(category_id) from None

    def self_and_ancestors(self, category_id: int) -> List[Category]:
        """Return the category followed by its parents, root last."""

        chain: List[Category] = []
        seen: set[int] = set()
        current: int | None = category_id
        while current is not None:
            if current in seen:
                raise MissingHierarchyData(current, "cycle in category hierarchy")
            seen.add(current)
            category = self.get(current)
            chain.append(category)
            current = category.parent_id
        return chain

    def depth(self, category_id: int) -> int:
        # root is depth 0
        return len(self.self_and_ancestors(category_id)) - 1
