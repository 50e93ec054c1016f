"""
Day/night classification and per-site period averages.

Input readings must already carry ``elevation_km`` (see ``sites.attach_sites``).
Everything here is a pure transform over DataFrames.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from lapse_rate.config import DAY, NIGHT
from lapse_rate.errors import LapseRateError
from lapse_rate.readings import SITE_ID, TEMPERATURE, TIMESTAMP
from lapse_rate.sites import ELEVATION_KM
from lapse_rate.sun import DATE, SUNRISE, SUNSET, check_coverage

DAY_NIGHT = "day_night"
PERIOD = "period"

FREQUENCIES = ("overall", "daily", "hourly")


def calendar_dates(timestamps: pd.Series) -> pd.Series:
    """Local calendar date of each zoned timestamp."""
    return timestamps.dt.date


def classify_day_night(readings: pd.DataFrame, boundaries: pd.DataFrame) -> pd.DataFrame:
    """
    Tag every reading as day or night.

    A reading is ``day`` iff sunrise < timestamp < sunset on its own calendar
    date; the boundary instants themselves are ``night``. Every calendar date in
    the readings must have a boundary row, otherwise MissingBoundaryError.
    Readings and boundaries must be in the same (site-local) zone, otherwise
    LapseRateError.

    Returns a copy of ``readings`` with ``date`` and ``day_night`` added.
    """
    out = readings.copy()
    out[DATE] = calendar_dates(out[TIMESTAMP])
    check_coverage(boundaries, out[DATE].unique())

    reading_tz = str(out[TIMESTAMP].dt.tz)
    boundary_tz = str(boundaries[SUNRISE].dt.tz)
    if reading_tz != boundary_tz:
        raise LapseRateError(
            f"Readings are in {reading_tz} but boundaries are in {boundary_tz}; "
            "load both in the site's local zone"
        )

    joined = out.merge(
        boundaries[[DATE, SUNRISE, SUNSET]], on=DATE, how="left", validate="many_to_one"
    )
    is_day = (joined[TIMESTAMP] > joined[SUNRISE]) & (joined[TIMESTAMP] < joined[SUNSET])
    out[DAY_NIGHT] = np.where(is_day.to_numpy(), DAY, NIGHT)
    return out


def diurnal_averages(classified: pd.DataFrame) -> pd.DataFrame:
    """
    Mean temperature and elevation per (site_id, date, day_night).

    Sparse: a combination with no readings has no row.
    """
    grouped = classified.groupby([SITE_ID, DATE, DAY_NIGHT], as_index=False, sort=True).agg(
        temperature=(TEMPERATURE, "mean"),
        elevation_km=(ELEVATION_KM, "mean"),
        n_readings=(TEMPERATURE, "size"),
    )
    return grouped


def period_averages(readings: pd.DataFrame, freq: str) -> pd.DataFrame:
    """
    Mean temperature and elevation per (site_id, period).

    ``freq`` is one of ``"overall"`` (single period over the whole table),
    ``"daily"`` (calendar date) or ``"hourly"`` (timestamp floored to the hour).
    """
    if freq not in FREQUENCIES:
        raise ValueError(f"freq must be one of {FREQUENCIES}, got {freq!r}")

    df = readings.copy()
    if freq == "overall":
        df[PERIOD] = "all"
    elif freq == "daily":
        df[PERIOD] = calendar_dates(df[TIMESTAMP])
    else:
        df[PERIOD] = df[TIMESTAMP].dt.floor("h")

    return df.groupby([SITE_ID, PERIOD], as_index=False, sort=True).agg(
        temperature=(TEMPERATURE, "mean"),
        elevation_km=(ELEVATION_KM, "mean"),
        n_readings=(TEMPERATURE, "size"),
    )
