from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Data directory holding the catalog export and the codelist export
DATA_DIR = Path(os.getenv("AFD_DATA_DIR", str(PROJECT_ROOT / "data")))

CATALOG_PATH = Path(os.getenv("AFD_CATALOG_PATH", str(DATA_DIR / "data.csv")))
CODELIST_PATH = Path(os.getenv("AFD_CODELIST_PATH", str(DATA_DIR / "Codelist.afm.csv")))

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "AFD Datacatalogus"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Optional remote sources
#
# When set, these take precedence over the local paths above. Both must point
# at the raw CSV export (not an HTML page).
# ---------------------------------------------------------------------------

CATALOG_URL = os.getenv("AFD_CATALOG_URL", "").strip()
CODELIST_URL = os.getenv("AFD_CODELIST_URL", "").strip()

HTTP_TIMEOUT_SECONDS = int(os.getenv("AFD_HTTP_TIMEOUT_SECONDS", "30"))

# ---------------------------------------------------------------------------
# Source format
# ---------------------------------------------------------------------------

# Candidate delimiters for the catalog export, in order of preference.
CATALOG_DELIMITERS = [",", "\t", "|", ";"]

# The codelist export is always semicolon separated:
#   codelijst; code; omschrijving; actief
CODELIST_DELIMITER = ";"

# ---------------------------------------------------------------------------
# Engine / UI limits
# ---------------------------------------------------------------------------

SUGGESTION_LIMIT = 5
SUGGESTION_MIN_LENGTH = 2

# The table view only renders the first N filtered rows.
TABLE_ROW_LIMIT = 100

# Per-engine memoization: number of distinct queries kept per operation.
ENGINE_CACHE_SIZE = int(os.getenv("AFD_ENGINE_CACHE_SIZE", "128"))
