from __future__ import annotations

import locale
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import logging

from afd_catalog.core.matcher import SearchMode, matches
from afd_catalog.core.records import EntityRow, Row, RowKind

logger = logging.getLogger(__name__)


class TypeFilter(str, Enum):
    ALL = "all"
    ENTITY_ONLY = "E"
    ATTRIBUTE_ONLY = "A"

    @property
    def kind(self) -> Optional[RowKind]:
        if self == TypeFilter.ALL:
            return None
        return RowKind(self.value)


@dataclass(frozen=True)
class QueryState:
    """
    Query inputs owned by the caller.

    `datatype_filter` and `entity_filter` use None for "all".
    """
    search_term: str = ""
    search_mode: SearchMode = SearchMode.LITERAL
    type_filter: TypeFilter = TypeFilter.ALL
    datatype_filter: Optional[str] = None
    entity_filter: Optional[str] = None

    def without_entity_filter(self) -> "QueryState":
        return replace(self, entity_filter=None)


@dataclass(frozen=True)
class EntityOption:
    code: str
    name: str


# ---------------------------------------------------------------------------
# Filter pipeline
# ---------------------------------------------------------------------------

def prefilter_rows(all_rows: Iterable[Row], query: QueryState) -> Tuple[Row, ...]:
    """Type, datatype and search constraints; the entity filter is not applied."""
    rows: Iterable[Row] = all_rows

    kind = query.type_filter.kind
    if kind is not None:
        rows = [r for r in rows if r.kind == kind]

    if query.datatype_filter is not None:
        rows = [r for r in rows if r.datatype == query.datatype_filter]

    if query.search_term:
        rows = [r for r in rows if matches(r, query.search_term, query.search_mode)]

    return tuple(rows)


def filter_rows(all_rows: Iterable[Row], query: QueryState) -> Tuple[Row, ...]:
    """Visible rows for `query`, in load order."""
    rows = prefilter_rows(all_rows, query)
    if query.entity_filter is not None:
        rows = tuple(r for r in rows if r.entity_code == query.entity_filter)
    return rows


# ---------------------------------------------------------------------------
# Entity resolver
# ---------------------------------------------------------------------------

def collation_key(code: str) -> Tuple[str, str]:
    """
    Case-insensitive locale collation key, ties broken by the raw code.

    NUL characters are dropped from the collated part; strxfrm rejects them.
    """
    return locale.strxfrm(code.replace("\x00", "").casefold()), code


def _entity_name_index(all_rows: Iterable[Row]) -> Dict[str, str]:
    names: Dict[str, str] = {}
    for row in all_rows:
        if isinstance(row, EntityRow):
            names.setdefault(row.entity_code, row.name)
    return names


def available_entities(
    all_rows: Sequence[Row],
    query: QueryState,
    entity_names: Optional[Mapping[str, str]] = None,
) -> Tuple[EntityOption, ...]:
    """
    Entities reachable under the current type / datatype / search filters.

    Names come from the first Entity row with the code in `all_rows` (or
    the precomputed `entity_names`); codes without an Entity row use the
    code as name. Sorted by code with locale collation.
    """
    if entity_names is None:
        entity_names = _entity_name_index(all_rows)

    seen: Dict[str, str] = {}
    for row in prefilter_rows(all_rows, query):
        code = row.entity_code
        if code and code not in seen:
            seen[code] = entity_names.get(code, code)

    ordered: List[str] = sorted(seen, key=collation_key)
    return tuple(EntityOption(code=c, name=seen[c]) for c in ordered)


def reconcile_entity_filter(query: QueryState, entities: Sequence[EntityOption]) -> QueryState:
    """
    Reset the entity filter to "all" when its value is no longer available.

    This is the caller-side rule that keeps the entity selector consistent
    with `available_entities`.
    """
    if query.entity_filter is None:
        return query
    if any(e.code == query.entity_filter for e in entities):
        return query
    logger.info("Entity filter %r no longer available; resetting to all.", query.entity_filter)
    return query.without_entity_filter()
