from __future__ import annotations

from typing import Iterable, Optional, Tuple

from afd_catalog.core.records import CodeItem, Codelists, Row


def lookup_codelist(codelists: Codelists, codelist_id: Optional[str]) -> Tuple[CodeItem, ...]:
    """Items of a codelist in source order; empty for unknown or blank ids."""
    if not codelist_id:
        return ()
    return tuple(codelists.get(codelist_id, ()))


def filter_code_items(items: Iterable[CodeItem], term: str) -> Tuple[CodeItem, ...]:
    if not term:
        return tuple(items)
    needle = term.lower()
    return tuple(
        item for item in items
        if needle in item.code.lower() or needle in item.description.lower()
    )


def has_codelist(codelists: Codelists, row: Row) -> bool:
    """True when the row references a codelist that exists and has items."""
    return bool(row.codelist_id) and bool(codelists.get(row.codelist_id))
