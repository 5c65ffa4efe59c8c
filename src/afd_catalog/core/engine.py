from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Optional, Tuple, TypeVar

import logging

from afd_catalog.config import ENGINE_CACHE_SIZE
from afd_catalog.core.codelists import filter_code_items, lookup_codelist
from afd_catalog.core.filters import (
    EntityOption,
    QueryState,
    available_entities,
    filter_rows,
    reconcile_entity_filter,
)
from afd_catalog.core.grouping import GroupedItem, group_rows
from afd_catalog.core.records import CatalogStore, CodeItem, Row
from afd_catalog.core.suggestions import suggest
from afd_catalog.core.summary import CatalogStats, catalog_stats, unique_datatypes

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryCache(Generic[T]):
    """Least-recently-used cache holding at most `maxsize` results."""

    def __init__(self, maxsize: int = ENGINE_CACHE_SIZE) -> None:
        self.maxsize = max(int(maxsize), 1)
        self._data: "OrderedDict[Hashable, T]" = OrderedDict()

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        if key in self._data:
            self._data.move_to_end(key)
            return self._data[key]
        value = compute()
        self._data[key] = value
        if len(self._data) > self.maxsize:
            self._data.popitem(last=False)
        return value

    def __contains__(self, key: Hashable) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def clear(self) -> None:
        self._data.clear()


@dataclass(frozen=True)
class QueryView:
    """Everything the UI needs for one recomputation."""
    query: QueryState
    rows: Tuple[Row, ...]
    grouped: Tuple[GroupedItem, ...]
    entities: Tuple[EntityOption, ...]
    suggestions: Tuple[Row, ...]


class CatalogEngine:
    """
    Engine operations bound to one CatalogStore.

    Results are memoized per query in bounded LRU caches; the store is
    immutable, so cached results never go stale.
    """

    def __init__(self, store: CatalogStore, cache_size: int = ENGINE_CACHE_SIZE) -> None:
        self.store = store
        self._filtered: QueryCache[Tuple[Row, ...]] = QueryCache(cache_size)
        self._entities: QueryCache[Tuple[EntityOption, ...]] = QueryCache(cache_size)
        self._grouped: QueryCache[Tuple[GroupedItem, ...]] = QueryCache(cache_size)
        self._suggestions: QueryCache[Tuple[Row, ...]] = QueryCache(cache_size)
        self._stats: Optional[CatalogStats] = None
        self._datatypes: Optional[Tuple[str, ...]] = None

    # -- catalog-wide -------------------------------------------------------

    @property
    def stats(self) -> CatalogStats:
        if self._stats is None:
            self._stats = catalog_stats(self.store.rows)
        return self._stats

    @property
    def datatypes(self) -> Tuple[str, ...]:
        if self._datatypes is None:
            self._datatypes = unique_datatypes(self.store.rows)
        return self._datatypes

    # -- per query ----------------------------------------------------------

    def filter(self, query: QueryState) -> Tuple[Row, ...]:
        return self._filtered.get_or_compute(query, lambda: filter_rows(self.store.rows, query))

    def available_entities(self, query: QueryState) -> Tuple[EntityOption, ...]:
        # The entity filter never affects this result.
        key = query.without_entity_filter()
        return self._entities.get_or_compute(
            key,
            lambda: available_entities(self.store.rows, key, entity_names=self.store.entity_names),
        )

    def group(self, query: QueryState) -> Tuple[GroupedItem, ...]:
        return self._grouped.get_or_compute(
            query,
            lambda: group_rows(
                self.filter(query),
                self.store.rows,
                query,
                attribute_counts=self.store.attribute_counts,
            ),
        )

    def suggest(self, term: str) -> Tuple[Row, ...]:
        return self._suggestions.get_or_compute(term, lambda: suggest(self.store.rows, term))

    def codelist(self, codelist_id: Optional[str], term: str = "") -> Tuple[CodeItem, ...]:
        return filter_code_items(lookup_codelist(self.store.codelists, codelist_id), term)

    def view(self, query: QueryState) -> QueryView:
        """
        Run a full recomputation for `query`.

        The entity filter is reconciled against the available entities first,
        so the returned view may carry a query with the entity filter reset.
        """
        entities = self.available_entities(query)
        query = reconcile_entity_filter(query, entities)
        return QueryView(
            query=query,
            rows=self.filter(query),
            grouped=self.group(query),
            entities=entities,
            suggestions=self.suggest(query.search_term),
        )

    def clear_cache(self) -> None:
        self._filtered.clear()
        self._entities.clear()
        self._grouped.clear()
        self._suggestions.clear()
