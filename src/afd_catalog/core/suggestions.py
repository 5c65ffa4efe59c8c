from __future__ import annotations

from typing import Iterable, List, Tuple

from afd_catalog.config import SUGGESTION_LIMIT, SUGGESTION_MIN_LENGTH
from afd_catalog.core.records import Row


def suggest(all_rows: Iterable[Row], term: str, limit: int = SUGGESTION_LIMIT) -> Tuple[Row, ...]:
    """
    Rows whose name contains `term` but does not start with it.

    Prefix matches are already visible in the result list, so they are left
    out. Source order, at most `limit` rows.
    """
    if not term or len(term) < SUGGESTION_MIN_LENGTH:
        return ()

    needle = term.lower()
    out: List[Row] = []
    for row in all_rows:
        name = row.name.lower()
        if name and needle in name and not name.startswith(needle):
            out.append(row)
            if len(out) >= limit:
                break
    return tuple(out)
