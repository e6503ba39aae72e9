"""Run-wide memoization of item categorizations."""

from __future__ import annotations

from dataclasses import dataclass

from orderledger.reconcile.entities import (
    CategorizerItem,
    Category,
    ItemCategorization,
)
from orderledger.reconcile.protocols import ItemCategorizer
from orderledger.tools.categorize.categorizer_tool import CategorizerLogger


def normalize_item_name(name: str) -> str:
    """Cache key for an item name: lower-cased, whitespace collapsed."""
    return " ".join(name.lower().split())


@dataclass(frozen=True)
class _CachedCategory:
    category_id: str
    category_name: str


class CachingCategorizer:
    """Wraps an ItemCategorizer so each distinct item name is asked once.

    Cached answers come back with confidence 1.0. Results are returned in
    input order; items the inner categorizer did not answer are omitted.
    """

    def __init__(
        self,
        inner: ItemCategorizer,
        categorizer_logger: CategorizerLogger | None = None,
    ) -> None:
        self._inner = inner
        self._logger = categorizer_logger or CategorizerLogger()
        self._cache: dict[str, _CachedCategory] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def clear(self) -> None:
        self._cache.clear()

    def categorize_items(
        self, items: list[CategorizerItem], categories: list[Category]
    ) -> list[ItemCategorization]:
        misses: dict[str, CategorizerItem] = {}
        for item in items:
            key = normalize_item_name(item.name)
            if key not in self._cache and key not in misses:
                misses[key] = item

        self._logger.cache_hits(len(items) - len(misses), len(misses))

        confidences: dict[str, float] = {}
        if misses:
            fresh = self._inner.categorize_items(list(misses.values()), categories)
            for result in fresh:
                key = normalize_item_name(result.item_name)
                confidences[key] = result.confidence
                self._cache[key] = _CachedCategory(
                    category_id=result.category_id,
                    category_name=result.category_name,
                )

        results: list[ItemCategorization] = []
        for item in items:
            key = normalize_item_name(item.name)
            cached = self._cache.get(key)
            if cached is None:
                continue
            results.append(
                ItemCategorization(
                    item_name=item.name,
                    category_id=cached.category_id,
                    category_name=cached.category_name,
                    confidence=confidences.get(key, 1.0),
                )
            )
        return results
