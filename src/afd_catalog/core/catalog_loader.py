from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import logging

import pandas as pd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from afd_catalog.config import (
    CATALOG_DELIMITERS,
    CATALOG_PATH,
    CATALOG_URL,
    CODELIST_DELIMITER,
    CODELIST_PATH,
    CODELIST_URL,
    HTTP_TIMEOUT_SECONDS,
)
from afd_catalog.core.records import CatalogStore, build_store

logger = logging.getLogger(__name__)

Source = Union[str, Path]

CODELIST_COLUMNS = ["codelist_id", "code", "description", "active"]

# In-memory caches
_CATALOG_CACHE: Optional[List[Dict[str, Any]]] = None
_CODELIST_CACHE: Optional[List[List[Any]]] = None
_STORE_CACHE: Optional[CatalogStore] = None


class CatalogLoaderError(Exception):
    """Raised when a catalog or codelist export cannot be read or parsed."""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _build_retry_session() -> requests.Session:
    """
    Build a requests Session with conservative retries for remote exports.
    """
    session = requests.Session()

    retry = Retry(
        total=3,
        connect=3,
        read=3,
        status=3,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )

    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    return session


_SESSION: Optional[requests.Session] = None


def _get_session() -> requests.Session:
    global _SESSION
    if _SESSION is None:
        _SESSION = _build_retry_session()
    return _SESSION


def _is_url(source: Source) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def read_source_text(source: Source, timeout_seconds: int = HTTP_TIMEOUT_SECONDS) -> str:
    """
    Return the text of a local file or an http(s) URL.

    A UTF-8 byte order mark is dropped. Raises CatalogLoaderError on failure.
    """
    if _is_url(source):
        try:
            resp = _get_session().get(str(source), timeout=timeout_seconds)
        except requests.RequestException as exc:
            raise CatalogLoaderError(f"HTTP error while fetching {source}: {exc}") from exc
        if resp.status_code != 200:
            preview = (resp.text or "")[:200]
            raise CatalogLoaderError(
                f"Unexpected status {resp.status_code} while fetching {source}. Preview: {preview}"
            )
        resp.encoding = resp.encoding or "utf-8"
        return resp.text.lstrip("\ufeff")

    path = Path(source)
    try:
        return path.read_text(encoding="utf-8-sig")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as exc:
        raise CatalogLoaderError(f"Could not read {path}: {exc}") from exc


def detect_delimiter(text: str, candidates: Sequence[str] = CATALOG_DELIMITERS) -> str:
    """
    Pick the candidate delimiter occurring most often in the header line.

    Ties go to the earlier candidate; with no candidate present the first one
    is returned.
    """
    header = next((line for line in text.splitlines() if line.strip()), "")
    best = candidates[0]
    best_count = 0
    for cand in candidates:
        count = header.count(cand)
        if count > best_count:
            best, best_count = cand, count
    return best


# ---------------------------------------------------------------------------
# Catalog export
# ---------------------------------------------------------------------------

def parse_catalog_text(text: str) -> List[Dict[str, Any]]:
    """
    Parse the catalog export into records keyed by trimmed column name.

    All cells are read as strings; blank lines are skipped.
    """
    if not text.strip():
        return []

    sep = detect_delimiter(text)
    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=sep,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, ValueError) as exc:
        raise CatalogLoaderError(f"Could not parse catalog export (delimiter {sep!r}): {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    logger.info("Parsed catalog export: %d rows, columns=%s", len(df), list(df.columns))
    return df.to_dict(orient="records")


def load_catalog_records(source: Optional[Source] = None, refresh: bool = False) -> List[Dict[str, Any]]:
    global _CATALOG_CACHE
    if source is None and _CATALOG_CACHE is not None and not refresh:
        return _CATALOG_CACHE

    src = source if source is not None else (CATALOG_URL or CATALOG_PATH)
    logger.info("Loading catalog export: %s", src)
    try:
        text = read_source_text(src)
    except FileNotFoundError as exc:
        raise CatalogLoaderError(f"Catalog export not found: {src}") from exc

    records = parse_catalog_text(text)
    if source is None:
        _CATALOG_CACHE = records
    return records


# ---------------------------------------------------------------------------
# Codelist export
# ---------------------------------------------------------------------------

def parse_codelist_text(text: str) -> List[List[Any]]:
    """
    Parse the semicolon-separated codelist export into raw 4-cell records.

    The header line is returned as the first record, as it appears in the
    file; the store builder skips it.
    """
    if not text.strip():
        return []

    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=CODELIST_DELIMITER,
            header=None,
            names=CODELIST_COLUMNS,
            index_col=False,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines="warn",
        )
    except (pd.errors.ParserError, ValueError) as exc:
        raise CatalogLoaderError(f"Could not parse codelist export: {exc}") from exc

    logger.info("Parsed codelist export: %d records (header included)", len(df))
    return df.values.tolist()


def load_codelist_records(source: Optional[Source] = None, refresh: bool = False) -> List[List[Any]]:
    """
    Load the codelist export.

    A missing file is not an error: the catalog is usable without codelists,
    so an empty list is returned and a warning logged.
    """
    global _CODELIST_CACHE
    if source is None and _CODELIST_CACHE is not None and not refresh:
        return _CODELIST_CACHE

    src = source if source is not None else (CODELIST_URL or CODELIST_PATH)
    logger.info("Loading codelist export: %s", src)
    try:
        text = read_source_text(src)
    except FileNotFoundError:
        logger.warning("Codelist export %s not found; continuing without codelists.", src)
        text = ""

    records = parse_codelist_text(text)
    if source is None:
        _CODELIST_CACHE = records
    return records


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

def load_store(
    catalog_source: Optional[Source] = None,
    codelist_source: Optional[Source] = None,
    refresh: bool = False,
) -> CatalogStore:
    """
    Load both exports and build the CatalogStore.

    With default sources the store is cached in memory until `refresh`.
    """
    global _STORE_CACHE
    use_defaults = catalog_source is None and codelist_source is None
    if use_defaults and _STORE_CACHE is not None and not refresh:
        return _STORE_CACHE

    store = build_store(
        load_catalog_records(catalog_source, refresh=refresh),
        load_codelist_records(codelist_source, refresh=refresh),
    )
    if use_defaults:
        _STORE_CACHE = store
    return store
