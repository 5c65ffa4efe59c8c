from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from afd_catalog.core.records import AttributeRow, EntityRow, Row


@dataclass(frozen=True)
class CatalogStats:
    total: int
    entities: int
    attributes: int


@dataclass(frozen=True)
class DatatypeInfo:
    label: str
    example: str = ""
    description: str = ""


# Datatype codes used in the AFD export. Labels are kept in Dutch, as in the
# source documentation.
DATATYPES: Dict[str, DatatypeInfo] = {
    "JN": DatatypeInfo("Ja/Nee", "J of N", "Boolean waarde"),
    "A0": DatatypeInfo("Alfanumeriek", "ABC123", "Letters en cijfers"),
    "A1": DatatypeInfo("Alfanumeriek"),
    "A2": DatatypeInfo("Alfanumeriek"),
    "D1": DatatypeInfo("Datum", "JJJJMMDD", "Datum formaat"),
    "D3": DatatypeInfo("Datum"),
    "B2": DatatypeInfo("Bedrag", "12345.67", "Numeriek bedrag"),
    "T1": DatatypeInfo("Tijd", "UUMM", "Tijd formaat"),
    "P3": DatatypeInfo("Percentage", "12.345", "Percentage waarde"),
    "ME": DatatypeInfo("Memo", "Vrije tekst", "Memo veld"),
}


def describe_datatype(code: Optional[str]) -> Optional[DatatypeInfo]:
    if not code:
        return None
    return DATATYPES.get(code)


def catalog_stats(rows: Iterable[Row]) -> CatalogStats:
    total = entities = attributes = 0
    for row in rows:
        total += 1
        if isinstance(row, EntityRow):
            entities += 1
        else:
            attributes += 1
    return CatalogStats(total=total, entities=entities, attributes=attributes)


def unique_datatypes(rows: Iterable[Row]) -> Tuple[str, ...]:
    """Distinct non-empty datatype codes, sorted."""
    return tuple(sorted({r.datatype for r in rows if r.datatype}))


# ---------------------------------------------------------------------------
# Item keys and direct links
# ---------------------------------------------------------------------------

def row_key(row: Row) -> str:
    """
    Display / favorite identifier of a row.

    Entities: 'ENT'. Attributes: 'ENT_ATTR'.
    """
    if isinstance(row, AttributeRow):
        return f"{row.entity_code}_{row.attribute_code}"
    return row.entity_code


def link_params(row: Row) -> Dict[str, str]:
    """Query parameters of a direct link to `row`."""
    params = {"entity": row.entity_code}
    if isinstance(row, AttributeRow):
        params["attribute"] = row.attribute_code
    return params


def resolve_link(rows: Sequence[Row], params: Mapping[str, str]) -> Optional[Row]:
    """
    Find the row addressed by direct-link parameters.

    With only 'entity' the Entity row is returned; with 'attribute' as well,
    the Attribute row. First match wins; None when nothing matches.
    """
    entity = (params.get("entity") or "").strip()
    attribute = (params.get("attribute") or "").strip()
    if not entity:
        return None

    for row in rows:
        if row.entity_code != entity:
            continue
        if attribute:
            if isinstance(row, AttributeRow) and row.attribute_code == attribute:
                return row
        elif isinstance(row, EntityRow):
            return row
    return None
