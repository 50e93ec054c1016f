"""
sun.py

Daily sunrise/sunset boundaries for the day/night split.

The boundaries come from the public sunrise-sunset.org API. That API is
rate-limited, so the table is fetched once, cached to disk as CSV, and the
analysis only ever reads the cached copy.

Usage:
    from lapse_rate.sun import fetch_sun_boundaries_cached

    df = fetch_sun_boundaries_cached(39.0, -106.5, "2019-07-04", "2019-10-13",
                                     tz="America/Denver")
    print(df.head())
"""

from __future__ import annotations

import time
from datetime import date
from pathlib import Path
from typing import Iterable, Union

import pandas as pd
import requests

from lapse_rate.config import (
    CACHE_DIR,
    FETCH_MAX_RETRIES,
    FETCH_TIMEOUT_S,
    SUNRISE_SUNSET_URL,
)
from lapse_rate.errors import LapseRateError, MissingBoundaryError

DATE = "date"
SUNRISE = "sunrise"
SUNSET = "sunset"

BOUNDARY_COLUMNS = [DATE, SUNRISE, SUNSET]


# =============================================================================
# FETCH
# =============================================================================

def _get_with_retry(params: dict, timeout: int = FETCH_TIMEOUT_S) -> requests.Response:
    attempts = max(1, FETCH_MAX_RETRIES)
    for attempt in range(attempts):
        try:
            response = requests.get(SUNRISE_SUNSET_URL, params=params, timeout=timeout)
            response.raise_for_status()
            return response
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout):
            if attempt == attempts - 1:
                print(f"[SUN] Failed after {attempts} attempts")
                raise
            wait_time = 2 ** attempt
            print(f"[SUN] Connection error, retrying in {wait_time}s... ({attempt + 1}/{attempts})")
            time.sleep(wait_time)
    raise AssertionError("retry loop exited without a response")


def fetch_sun_boundaries(
    lat: float,
    lon: float,
    start_date: Union[str, date],
    end_date: Union[str, date],
    tz: str,
    timeout: int = FETCH_TIMEOUT_S,
) -> pd.DataFrame:
    """
    Fetch sunrise and sunset for every date in [start_date, end_date].

    Parameters
    ----------
    lat, lon : float
        Decimal degrees of the study area.
    start_date, end_date : str or date
        Inclusive range (YYYY-MM-DD).
    tz : str
        Olson zone of the site. The returned instants are converted to it and
        it must match the zone of the temperature readings.

    Returns
    -------
    pd.DataFrame
        One row per date with columns ``date``, ``sunrise``, ``sunset``.

    Raises
    ------
    requests.HTTPError
        If the API returns an error status.
    LapseRateError
        If the API answers with a non-OK payload.
    """
    days = pd.date_range(start_date, end_date, freq="D")
    print(f"[SUN] Fetching {len(days)} days for ({lat}, {lon}) from {days[0].date()} to {days[-1].date()}...")

    rows = []
    for day in days:
        params = {
            "lat": lat,
            "lng": lon,
            "date": day.strftime("%Y-%m-%d"),
            "formatted": 0,
        }
        payload = _get_with_retry(params, timeout=timeout).json()
        if payload.get("status") != "OK":
            raise LapseRateError(f"Sunrise API returned {payload.get('status')!r} for {params['date']}")
        results = payload["results"]
        rows.append(
            {
                DATE: day.date(),
                SUNRISE: results["sunrise"],
                SUNSET: results["sunset"],
            }
        )

    df = _parse_boundaries(pd.DataFrame(rows, columns=BOUNDARY_COLUMNS), tz=tz)
    print(f"[SUN] Retrieved {len(df)} boundaries")
    return df


def cache_path_for(
    lat: float,
    lon: float,
    start_date: Union[str, date],
    end_date: Union[str, date],
    cache_dir: Union[str, Path] = CACHE_DIR,
) -> Path:
    return Path(cache_dir) / f"sun_{lat:.4f}_{lon:.4f}_{start_date}_{end_date}.csv"


def fetch_sun_boundaries_cached(
    lat: float,
    lon: float,
    start_date: Union[str, date],
    end_date: Union[str, date],
    tz: str,
    cache_dir: Union[str, Path] = CACHE_DIR,
    refresh: bool = False,
) -> pd.DataFrame:
    """Return cached boundaries when present, otherwise fetch and write the cache."""
    path = cache_path_for(lat, lon, start_date, end_date, cache_dir)
    if path.exists() and not refresh:
        print(f"[SUN] Using cache {path}")
        return load_sun_boundaries(path, tz=tz)

    df = fetch_sun_boundaries(lat, lon, start_date, end_date, tz=tz)
    save_sun_boundaries(df, path)
    print(f"[SUN] Cached to {path}")
    return df


# =============================================================================
# CACHE FILE
# =============================================================================

def _parse_boundaries(df: pd.DataFrame, tz: str) -> pd.DataFrame:
    out = pd.DataFrame(
        {
            DATE: pd.to_datetime(df[DATE]).dt.date,
            SUNRISE: pd.to_datetime(df[SUNRISE], utc=True).dt.tz_convert(tz),
            SUNSET: pd.to_datetime(df[SUNSET], utc=True).dt.tz_convert(tz),
        }
    )
    dupes = out.loc[out[DATE].duplicated(), DATE].tolist()
    if dupes:
        raise LapseRateError(f"Boundary table has more than one row for: {sorted(set(dupes))}")

    # Sunrise and sunset fall on their own local date only in the site's zone.
    off_date = (out[SUNRISE].dt.date != out[DATE]) | (out[SUNSET].dt.date != out[DATE])
    if off_date.any():
        first = out.loc[off_date, DATE].min()
        raise LapseRateError(
            f"{int(off_date.sum())} boundary row(s) have sunrise or sunset off their date in {tz} "
            f"(first {first}); tz must be the site's local zone"
        )
    return out.sort_values(DATE).reset_index(drop=True)


def save_sun_boundaries(df: pd.DataFrame, path: Union[str, Path]) -> Path:
    """Write boundaries as CSV with ISO-8601 UTC instants."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    out = pd.DataFrame(
        {
            DATE: [d.isoformat() for d in df[DATE]],
            SUNRISE: df[SUNRISE].dt.tz_convert("UTC").dt.strftime("%Y-%m-%dT%H:%M:%S%z"),
            SUNSET: df[SUNSET].dt.tz_convert("UTC").dt.strftime("%Y-%m-%dT%H:%M:%S%z"),
        }
    )
    out.to_csv(path, index=False)
    return path


def load_sun_boundaries(path: Union[str, Path], tz: str) -> pd.DataFrame:
    """Read a cached boundary CSV and convert the instants to the site zone ``tz``."""
    df = pd.read_csv(path, dtype=str)
    missing = [c for c in BOUNDARY_COLUMNS if c not in df.columns]
    if missing:
        raise LapseRateError(f"{Path(path).name}: missing columns: {', '.join(missing)}")
    return _parse_boundaries(df, tz=tz)


# =============================================================================
# COVERAGE
# =============================================================================

def check_coverage(boundaries: pd.DataFrame, dates: Iterable[date]) -> None:
    """Raise MissingBoundaryError naming every date in ``dates`` without a boundary row."""
    missing = set(dates) - set(boundaries[DATE])
    if missing:
        raise MissingBoundaryError(missing)


def missing_dates(boundaries: pd.DataFrame, start: date, end: date) -> list:
    """Dates in [start, end] that the table lacks."""
    wanted = {d.date() for d in pd.date_range(start, end, freq="D")}
    return sorted(wanted - set(boundaries[DATE]))
