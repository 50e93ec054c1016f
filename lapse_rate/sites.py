"""
Site registry: elevation and UTM location of each temperature logger.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import pandas as pd

from lapse_rate.config import EXPECTED_SITE_COUNT
from lapse_rate.errors import SiteRegistryError
from lapse_rate.readings import SITE_ID

ELEVATION_M = "elevation_m"
ELEVATION_KM = "elevation_km"
UTM_EASTING = "utm_easting"
UTM_NORTHING = "utm_northing"

SITE_COLUMNS = [SITE_ID, ELEVATION_M, UTM_EASTING, UTM_NORTHING]


def load_sites(path: Union[str, Path], expected_count: Optional[int] = EXPECTED_SITE_COUNT) -> pd.DataFrame:
    """Read and validate the registry file (site_id, elevation_m, utm_easting, utm_northing)."""
    df = pd.read_csv(path, dtype={SITE_ID: str})
    df.columns = [str(c).strip().lower() for c in df.columns]
    df[SITE_ID] = df[SITE_ID].str.strip()
    for col in (ELEVATION_M, UTM_EASTING, UTM_NORTHING):
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return validate_sites(df, expected_count=expected_count)


def validate_sites(df: pd.DataFrame, expected_count: Optional[int] = EXPECTED_SITE_COUNT) -> pd.DataFrame:
    missing = [c for c in SITE_COLUMNS if c not in df.columns]
    if missing:
        raise SiteRegistryError(f"Site registry missing columns: {', '.join(missing)}")

    dupes = df.loc[df[SITE_ID].duplicated(), SITE_ID].tolist()
    if dupes:
        raise SiteRegistryError(f"Duplicate site ids in registry: {sorted(set(dupes))}")

    no_elev = df.loc[df[ELEVATION_M].isna(), SITE_ID].tolist()
    if no_elev:
        raise SiteRegistryError(f"Sites without a numeric elevation: {no_elev}")

    if expected_count is not None and len(df) != expected_count:
        raise SiteRegistryError(f"Expected {expected_count} sites, registry has {len(df)}")

    return df[SITE_COLUMNS].reset_index(drop=True)


def attach_sites(readings: pd.DataFrame, sites: pd.DataFrame) -> pd.DataFrame:
    """
    Join elevation onto each reading.

    Adds ``elevation_m`` and ``elevation_km``. A reading whose site is not in the
    registry is an error, not a silently dropped row.
    """
    unknown = sorted(set(readings[SITE_ID]) - set(sites[SITE_ID]))
    if unknown:
        raise SiteRegistryError(f"Readings reference sites missing from the registry: {unknown}")

    out = readings.merge(sites[[SITE_ID, ELEVATION_M]], on=SITE_ID, how="left", validate="many_to_one")
    out[ELEVATION_KM] = out[ELEVATION_M] / 1000.0
    return out
