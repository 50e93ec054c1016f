"""
readings.py

Temperature store: loads the per-site logger exports into one long-format
table of (timestamp, site_id, temperature).

Usage:
    from lapse_rate.readings import load_readings

    df = load_readings(sorted(Path("data/loggers").glob("*.csv")), tz="America/Denver")
    print(df.head())
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional, Union

import pandas as pd

from lapse_rate.config import KNOWN_SITE_CORRECTIONS
from lapse_rate.errors import ReadingsValidationError

TIMESTAMP = "timestamp"
SITE_ID = "site_id"
TEMPERATURE = "temperature"

READING_COLUMNS = [TIMESTAMP, SITE_ID, TEMPERATURE]

# Header spellings seen in the logger exports, mapped to our column names.
_COLUMN_ALIASES = {
    "timestamp": TIMESTAMP,
    "datetime": TIMESTAMP,
    "date_time": TIMESTAMP,
    "temperature": TEMPERATURE,
    "temp": TEMPERATURE,
    "temp_c": TEMPERATURE,
    "site": SITE_ID,
    "site_id": SITE_ID,
}


def _rename_columns(df: pd.DataFrame) -> pd.DataFrame:
    renamed = {}
    for col in df.columns:
        key = str(col).strip().lower().replace(" ", "_").replace("/", "_")
        if key in _COLUMN_ALIASES:
            renamed[col] = _COLUMN_ALIASES[key]
    return df.rename(columns=renamed)


def localize_timestamps(values: pd.Series, tz: str, clock_tz: Optional[str] = None) -> pd.Series:
    """
    Parse timestamp strings as minute-resolution instants in the site zone ``tz``.

    Naive values are read as wall-clock time in ``clock_tz`` (the zone the logger
    clock was set to; defaults to ``tz``). Values that carry an offset are
    converted. Unparseable values become NaT so validation can count them.
    """
    clock_tz = clock_tz or tz
    try:
        parsed = pd.to_datetime(values, errors="coerce")
        if not pd.api.types.is_datetime64_any_dtype(parsed):
            raise ValueError("mixed UTC offsets")
    except ValueError:
        # Mixed UTC offsets do not fit one zoned dtype; anchor them on UTC.
        parsed = pd.to_datetime(values, errors="coerce", utc=True)

    if parsed.dt.tz is None:
        parsed = parsed.dt.tz_localize(clock_tz, ambiguous="NaT", nonexistent="NaT")
    # Floor in UTC so DST fall-back hours stay unambiguous.
    return parsed.dt.tz_convert("UTC").dt.floor("min").dt.tz_convert(tz)


def load_site_file(
    path: Union[str, Path],
    tz: str,
    site_id: Optional[str] = None,
    clock_tz: Optional[str] = None,
) -> pd.DataFrame:
    """
    Read one logger export.

    Parameters
    ----------
    path : str or Path
        CSV with a timestamp column and a temperature column. A site column is
        optional; without one the file stem is used as the site id.
    tz : str
        Olson zone of the site. Calendar dates and the day/night split are
        taken in this zone, so it must be the site's local zone.
    site_id : str, optional
        Overrides both the site column and the file stem.
    clock_tz : str, optional
        Olson zone the logger clock was set to, used for naive timestamps.
        Defaults to ``tz``.

    Returns
    -------
    pd.DataFrame
        Columns ``timestamp`` (tz-aware), ``site_id``, ``temperature`` (float).
        Rows are not validated here; see ``validate_readings``.
    """
    path = Path(path)
    df = _rename_columns(pd.read_csv(path, dtype=str))

    missing = [c for c in (TIMESTAMP, TEMPERATURE) if c not in df.columns]
    if missing:
        raise ReadingsValidationError(
            f"{path.name}: missing required columns: {', '.join(missing)}"
        )

    if site_id is not None:
        df[SITE_ID] = site_id
    elif SITE_ID not in df.columns:
        df[SITE_ID] = path.stem

    df[SITE_ID] = df[SITE_ID].astype(str).str.strip()
    df[TIMESTAMP] = localize_timestamps(df[TIMESTAMP], tz=tz, clock_tz=clock_tz)
    df[TEMPERATURE] = pd.to_numeric(df[TEMPERATURE], errors="coerce")
    return df[READING_COLUMNS]


def normalize_site_ids(df: pd.DataFrame, corrections: Optional[dict] = None) -> pd.DataFrame:
    """Apply the known site-label corrections. Returns a copy."""
    if corrections is None:
        corrections = KNOWN_SITE_CORRECTIONS
    out = df.copy()
    out[SITE_ID] = out[SITE_ID].replace(corrections)
    return out


def validate_readings(df: pd.DataFrame) -> pd.DataFrame:
    """
    Check the invariants the rest of the pipeline relies on.

    - required columns present
    - timestamps tz-aware and non-null
    - no null temperatures
    - one reading per (site_id, timestamp)

    Returns the frame unchanged so calls can be chained.
    """
    missing = [c for c in READING_COLUMNS if c not in df.columns]
    if missing:
        raise ReadingsValidationError(f"Readings missing columns: {', '.join(missing)}")

    if not pd.api.types.is_datetime64_any_dtype(df[TIMESTAMP]) or df[TIMESTAMP].dt.tz is None:
        raise ReadingsValidationError("Reading timestamps must be timezone-aware datetimes")

    bad_ts = int(df[TIMESTAMP].isna().sum())
    if bad_ts:
        raise ReadingsValidationError(f"{bad_ts} reading(s) have a missing or unparseable timestamp")

    bad_temp = int(df[TEMPERATURE].isna().sum())
    if bad_temp:
        raise ReadingsValidationError(f"{bad_temp} reading(s) have a missing or non-numeric temperature")

    dupes = df.duplicated(subset=[SITE_ID, TIMESTAMP], keep=False)
    if dupes.any():
        sample = df.loc[dupes, [SITE_ID, TIMESTAMP]].drop_duplicates().head(3)
        pairs = ", ".join(f"{s}@{t}" for s, t in sample.itertuples(index=False))
        raise ReadingsValidationError(
            f"{int(dupes.sum())} duplicate (site_id, timestamp) readings, e.g. {pairs}"
        )
    return df


def load_readings(
    paths: Iterable[Union[str, Path]],
    tz: str,
    corrections: Optional[dict] = None,
    clock_tz: Optional[str] = None,
) -> pd.DataFrame:
    """
    Load, concatenate, normalize and validate all logger exports.

    Returns a long-format table sorted by (site_id, timestamp).
    """
    frames = []
    for path in paths:
        frame = load_site_file(path, tz=tz, clock_tz=clock_tz)
        print(f"[READINGS] {Path(path).name}: {len(frame)} rows")
        frames.append(frame)

    if not frames:
        raise ReadingsValidationError("No reading files supplied")

    df = pd.concat(frames, ignore_index=True)
    df = normalize_site_ids(df, corrections)
    validate_readings(df)

    df = df.sort_values([SITE_ID, TIMESTAMP]).reset_index(drop=True)
    print(
        f"[READINGS] {len(df)} readings from {df[SITE_ID].nunique()} sites, "
        f"{df[TIMESTAMP].min()} to {df[TIMESTAMP].max()}"
    )
    return df
