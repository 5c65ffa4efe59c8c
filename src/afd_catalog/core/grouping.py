from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

import logging

from afd_catalog.core.filters import QueryState, TypeFilter
from afd_catalog.core.records import AttributeRow, EntityRow, Row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GroupedEntity:
    """
    An entity with its visible attributes.

    `attribute_count` counts all attributes of the entity in the catalog,
    including those hidden by the current filters.
    """
    entity: EntityRow
    attributes: Tuple[AttributeRow, ...]
    attribute_count: int

    @property
    def hidden_count(self) -> int:
        return max(self.attribute_count - len(self.attributes), 0)


@dataclass(frozen=True)
class OrphanAttribute:
    """A filtered attribute whose entity is not among the grouped entities."""
    attribute: AttributeRow


GroupedItem = Union[GroupedEntity, OrphanAttribute, Row]


def _attribute_counts(all_rows: Sequence[Row]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for row in all_rows:
        if isinstance(row, AttributeRow):
            counts[row.entity_code] = counts.get(row.entity_code, 0) + 1
    return counts


def orphans_apply(query: QueryState) -> bool:
    """Orphans are surfaced only for type "all" with a search or entity filter."""
    return query.type_filter == TypeFilter.ALL and (
        bool(query.search_term) or query.entity_filter is not None
    )


def group_rows(
    filtered_rows: Sequence[Row],
    all_rows: Sequence[Row],
    query: QueryState,
    attribute_counts: Optional[Mapping[str, int]] = None,
) -> Tuple[GroupedItem, ...]:
    """
    Nest filtered attributes under their filtered entities.

    Attribute-only queries return `filtered_rows` unchanged. Otherwise the
    result is every filtered entity as a GroupedEntity (filtered order),
    followed by orphan attributes when `orphans_apply(query)`.

    An entity code that occurs on several Entity rows nests its attributes
    under the first of them only, so no attribute is emitted twice.
    """
    if query.type_filter == TypeFilter.ATTRIBUTE_ONLY:
        return tuple(filtered_rows)

    if attribute_counts is None:
        attribute_counts = _attribute_counts(all_rows)

    entities = [r for r in filtered_rows if isinstance(r, EntityRow)]
    attributes = [r for r in filtered_rows if isinstance(r, AttributeRow)]

    by_entity: Dict[str, List[AttributeRow]] = {}
    for attr in attributes:
        by_entity.setdefault(attr.entity_code, []).append(attr)

    grouped: List[GroupedItem] = []
    shown: Set[str] = set()
    for entity in entities:
        code = entity.entity_code
        if code in shown:
            logger.warning("Duplicate entity row for code %s; attributes nested under the first.", code)
            nested: Tuple[AttributeRow, ...] = ()
        else:
            nested = tuple(by_entity.get(code, ()))
        shown.add(code)
        grouped.append(
            GroupedEntity(
                entity=entity,
                attributes=nested,
                attribute_count=attribute_counts.get(code, 0),
            )
        )

    if orphans_apply(query):
        for attr in attributes:
            if attr.entity_code not in shown:
                grouped.append(OrphanAttribute(attribute=attr))

    return tuple(grouped)
