from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import logging

import pandas as pd

logger = logging.getLogger(__name__)


class RowKind(str, Enum):
    """Record kind, using the codes of the 'Entiteit/Attribuut' column."""

    ENTITY = "E"
    ATTRIBUTE = "A"


# Canonical field -> accepted column headers (compared lower-cased, trimmed).
# The export uses Dutch headers; the English aliases are accepted as well.
COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "kind": ("entiteit/attribuut", "kind", "type"),
    "entity_code": ("entiteitcode", "entity_code", "entitycode"),
    "attribute_code": ("attribuutcode", "attribute_code", "attributecode"),
    "name": ("naam", "name"),
    "description": ("omschrijving", "description"),
    "datatype": ("datatype",),
    "format": ("formaat", "format"),
    "codelist_id": ("codelijst", "codelist", "codelist_id"),
}


# ---------------------------------------------------------------------------
# Row variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EntityRow:
    entity_code: str
    name: str = ""
    description: str = ""
    datatype: str = ""
    format: str = ""
    codelist_id: str = ""

    @property
    def kind(self) -> RowKind:
        return RowKind.ENTITY

    @property
    def key(self) -> Tuple[str, ...]:
        return (self.entity_code,)


@dataclass(frozen=True)
class AttributeRow:
    entity_code: str
    attribute_code: str
    name: str = ""
    description: str = ""
    datatype: str = ""
    format: str = ""
    codelist_id: str = ""

    @property
    def kind(self) -> RowKind:
        return RowKind.ATTRIBUTE

    @property
    def key(self) -> Tuple[str, ...]:
        return (self.entity_code, self.attribute_code)


Row = Union[EntityRow, AttributeRow]


@dataclass(frozen=True)
class CodeItem:
    """
    One value of a codelist.

    `active` keeps the raw source flag ('J', 'N' or empty); `is_active`
    interprets it as True / False / None (unset).
    """
    code: str
    description: str = ""
    active: str = ""

    @property
    def is_active(self) -> Optional[bool]:
        flag = self.active.strip().upper()
        if flag == "J":
            return True
        if flag == "N":
            return False
        return None


Codelists = Mapping[str, Tuple[CodeItem, ...]]


# ---------------------------------------------------------------------------
# Normalization helpers
# ---------------------------------------------------------------------------

def normalize_cell(value: Any) -> str:
    """Render a parsed cell as a stripped string; missing values become ''."""
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).replace("\u00A0", " ").strip()
    if text.lower() in {"nan", "none", "null"}:
        return ""
    return text


def _resolve_fields(record: Mapping[str, Any]) -> Dict[str, str]:
    lower = {str(k).strip().lower(): v for k, v in record.items()}
    out: Dict[str, str] = {}
    for name, aliases in COLUMN_ALIASES.items():
        value: Any = None
        for alias in aliases:
            if alias in lower:
                value = lower[alias]
                break
        out[name] = normalize_cell(value)
    return out


def row_from_record(record: Mapping[str, Any]) -> Optional[Row]:
    """
    Build a typed row from one parsed catalog record.

    Returns None when the record has an unknown kind or no entity code.
    """
    f = _resolve_fields(record)
    kind = f["kind"].upper()
    if not f["entity_code"]:
        return None

    common = dict(
        entity_code=f["entity_code"],
        name=f["name"],
        description=f["description"],
        datatype=f["datatype"],
        format=f["format"],
        codelist_id=f["codelist_id"],
    )
    if kind == RowKind.ENTITY.value:
        return EntityRow(**common)
    if kind == RowKind.ATTRIBUTE.value:
        return AttributeRow(attribute_code=f["attribute_code"], **common)
    return None


def build_codelists(records: Iterable[Sequence[Any]]) -> Codelists:
    """
    Group header-less codelist records on their first column.

    The first record is the header and is skipped. Records are
    (codelist_id, code, description, active); short records are padded.
    """
    groups: Dict[str, List[CodeItem]] = {}
    dropped = 0
    for idx, record in enumerate(records):
        if idx == 0:
            continue
        cells = [normalize_cell(v) for v in list(record)[:4]]
        cells += [""] * (4 - len(cells))
        codelist_id, code, description, active = cells
        if not codelist_id:
            dropped += 1
            continue
        groups.setdefault(codelist_id, []).append(
            CodeItem(code=code, description=description, active=active)
        )

    if dropped:
        logger.warning("Dropped %d codelist records without a codelist id.", dropped)

    return MappingProxyType({k: tuple(v) for k, v in groups.items()})


# ---------------------------------------------------------------------------
# Record store
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CatalogStore:
    """
    Immutable catalog rows plus the codelist index, built once at load time.

    `entity_names` maps an entity code to the name of the first Entity row
    with that code; `attribute_counts` is the number of Attribute rows per
    entity code over the whole catalog.
    """
    rows: Tuple[Row, ...]
    codelists: Codelists = field(default_factory=lambda: MappingProxyType({}))
    entity_names: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    attribute_counts: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    duplicate_keys: Tuple[Tuple[str, ...], ...] = ()

    def entity_name(self, entity_code: str) -> str:
        return self.entity_names.get(entity_code, entity_code)


def index_rows(rows: Sequence[Row]) -> Tuple[Dict[str, str], Dict[str, int], List[Tuple[str, ...]]]:
    """Entity-name index, attribute counts and duplicate natural keys."""
    names: Dict[str, str] = {}
    counts: Dict[str, int] = {}
    seen: Dict[Tuple[str, ...], int] = {}
    duplicates: List[Tuple[str, ...]] = []

    for row in rows:
        tagged = (row.kind.value,) + row.key
        seen[tagged] = seen.get(tagged, 0) + 1
        if seen[tagged] == 2:
            duplicates.append(tagged)

        if isinstance(row, EntityRow):
            names.setdefault(row.entity_code, row.name)
        else:
            counts[row.entity_code] = counts.get(row.entity_code, 0) + 1

    return names, counts, duplicates


def build_store(
    catalog_records: Iterable[Mapping[str, Any]],
    codelist_records: Optional[Iterable[Sequence[Any]]] = None,
) -> CatalogStore:
    """
    Normalize parsed catalog and codelist records into a CatalogStore.

    Records with an unknown kind or without an entity code are dropped.
    Duplicate natural keys are kept but reported on `duplicate_keys`.
    """
    rows: List[Row] = []
    dropped = 0
    for record in catalog_records:
        row = row_from_record(record)
        if row is None:
            dropped += 1
            continue
        rows.append(row)

    if dropped:
        logger.warning(
            "Dropped %d catalog records with an unknown kind or no entity code.", dropped
        )

    names, counts, duplicates = index_rows(rows)
    if duplicates:
        logger.warning(
            "Catalog contains %d duplicate keys (first few: %s). "
            "Entity names resolve to the first occurrence.",
            len(duplicates),
            duplicates[:5],
        )

    codelists = build_codelists(codelist_records) if codelist_records is not None else MappingProxyType({})

    logger.info(
        "Built catalog store: %d rows, %d codelists.", len(rows), len(codelists)
    )
    return CatalogStore(
        rows=tuple(rows),
        codelists=codelists,
        entity_names=MappingProxyType(names),
        attribute_counts=MappingProxyType(counts),
        duplicate_keys=tuple(duplicates),
    )
