from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from typing import Optional, Pattern

import logging

from afd_catalog.core.records import Row

logger = logging.getLogger(__name__)


class SearchMode(str, Enum):
    LITERAL = "literal"
    WILDCARD = "wildcard"
    REGEX = "regex"


def searchable_text(row: Row) -> str:
    """
    Lower-cased, space-joined name / description / entity code / attribute code.

    Empty fields are skipped; entities have no attribute code.
    """
    parts = [row.name, row.description, row.entity_code, getattr(row, "attribute_code", "")]
    return " ".join(p for p in parts if p).lower()


def wildcard_to_regex(term: str) -> str:
    """
    Translate a shell-style wildcard term into a regex source.

    Every character is escaped except '*' (any run of characters) and
    '?' (exactly one character).
    """
    out = []
    for ch in term:
        if ch == "*":
            out.append(".*")
        elif ch == "?":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return "".join(out)


@lru_cache(maxsize=256)
def compile_term(term: str, mode: SearchMode) -> Optional[Pattern[str]]:
    """
    Compile a wildcard or regex term, case-insensitive.

    Returns None for literal mode and for patterns that do not compile.
    """
    if mode == SearchMode.LITERAL:
        return None
    source = wildcard_to_regex(term) if mode == SearchMode.WILDCARD else term
    try:
        return re.compile(source, re.IGNORECASE)
    except (re.error, OverflowError, RecursionError) as exc:
        logger.debug("Invalid %s pattern %r: %s", mode.value, term, exc)
        return None


def matches_text(text: str, term: str, mode: SearchMode) -> bool:
    if not term:
        return True
    if mode == SearchMode.LITERAL:
        return term.lower() in text
    pattern = compile_term(term, mode)
    if pattern is None:
        return False
    return pattern.search(text) is not None


def matches(row: Row, term: str, mode: SearchMode = SearchMode.LITERAL) -> bool:
    """True when `row` matches `term` under `mode`. Never raises on bad patterns."""
    if not term:
        return True
    return matches_text(searchable_text(row), term, mode)
