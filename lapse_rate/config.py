"""
Configuration constants for the lapse-rate analysis.

Everything here is static for the 2019 field season. Runtime knobs live on the
argparse options of the scripts in ``scripts/``.
"""

import os
from datetime import date
from pathlib import Path

# =============================================================================
# ANALYSIS WINDOW
# =============================================================================

ANALYSIS_START = date(2019, 7, 4)
ANALYSIS_END = date(2019, 10, 13)

# =============================================================================
# PARTITIONS
# =============================================================================

DAY = "day"
NIGHT = "night"
PARTITIONS = (DAY, NIGHT)

# =============================================================================
# SITES
# =============================================================================

# Field labels that were written wrong on the logger files. Only corrections
# confirmed against the field notes belong here.
KNOWN_SITE_CORRECTIONS = {
    "BN29": "BM29",
}

EXPECTED_SITE_COUNT = 11

# =============================================================================
# SUNRISE / SUNSET API
# =============================================================================

SUNRISE_SUNSET_URL = "https://api.sunrise-sunset.org/json"
FETCH_TIMEOUT_S = 30
FETCH_MAX_RETRIES = 3

# =============================================================================
# FILES
# =============================================================================

CACHE_DIR = Path(os.environ.get("LAPSE_RATE_CACHE_DIR", "data/sun_cache"))
DEFAULT_OUTDIR = Path("results")

FLOAT_FORMAT = "%.6f"
