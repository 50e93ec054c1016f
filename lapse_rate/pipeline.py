"""
End-to-end lapse-rate analysis over validated readings, sites and sun boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from lapse_rate.config import DAY, NIGHT
from lapse_rate.diurnal import (
    DAY_NIGHT,
    PERIOD,
    classify_day_night,
    diurnal_averages,
    period_averages,
)
from lapse_rate.regression import (
    RegressionResult,
    check_unique_groups,
    fit_by_key,
    fits_to_frame,
)
from lapse_rate.results import merge_day_night
from lapse_rate.sites import attach_sites
from lapse_rate.sun import DATE


@dataclass
class LapseRateReport:
    overall: Optional[RegressionResult]
    daily: pd.DataFrame
    hourly: pd.DataFrame
    diurnal: pd.DataFrame
    gaps: Dict[str, List] = field(default_factory=dict)


def _fit_partition(averages: pd.DataFrame, label: str, verbose: bool):
    subset = averages[averages[DAY_NIGHT] == label]
    fits = fit_by_key(subset, [DATE], verbose=verbose)
    gaps = [(d, label) for d in sorted(subset[DATE].unique()) if (d,) not in fits]
    return fits_to_frame(fits, [DATE]), gaps


def _diurnal_table(averages: pd.DataFrame, verbose: bool = False):
    check_unique_groups(averages, [DATE, DAY_NIGHT])
    day, day_gaps = _fit_partition(averages, DAY, verbose)
    night, night_gaps = _fit_partition(averages, NIGHT, verbose)
    return merge_day_night(day, night), sorted(day_gaps + night_gaps)


def run_diurnal(
    readings: pd.DataFrame,
    sites: pd.DataFrame,
    boundaries: pd.DataFrame,
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Day/night lapse rate per calendar date.

    Returns (date, partition, lapse_rate, intercept, r_squared, n_sites) rows
    sorted by date, day before night. Dates where a partition has fewer than
    two sites reporting have no row for that partition.
    """
    classified = classify_day_night(attach_sites(readings, sites), boundaries)
    table, _ = _diurnal_table(diurnal_averages(classified), verbose=verbose)
    return table


def _fit_resolution(with_sites: pd.DataFrame, freq: str, verbose: bool):
    averages = period_averages(with_sites, freq)
    fits = fit_by_key(averages, [PERIOD], verbose=verbose)
    gaps = sorted(p for p in averages[PERIOD].unique() if (p,) not in fits)
    return fits, gaps


def run_all(
    readings: pd.DataFrame,
    sites: pd.DataFrame,
    boundaries: pd.DataFrame,
    verbose: bool = False,
) -> LapseRateReport:
    """Fit the overall, daily, hourly and day/night lapse rates in one pass."""
    with_sites = attach_sites(readings, sites)

    overall_fits, overall_gaps = _fit_resolution(with_sites, "overall", verbose)
    daily_fits, daily_gaps = _fit_resolution(with_sites, "daily", verbose)
    hourly_fits, hourly_gaps = _fit_resolution(with_sites, "hourly", verbose)

    classified = classify_day_night(with_sites, boundaries)
    diurnal, diurnal_gaps = _diurnal_table(diurnal_averages(classified), verbose=verbose)

    daily = fits_to_frame(daily_fits, [PERIOD]).rename(columns={PERIOD: DATE})
    hourly = fits_to_frame(hourly_fits, [PERIOD]).rename(columns={PERIOD: "hour"})

    return LapseRateReport(
        overall=overall_fits.get(("all",)),
        daily=daily,
        hourly=hourly,
        diurnal=diurnal,
        gaps={
            "overall": overall_gaps,
            "daily": daily_gaps,
            "hourly": hourly_gaps,
            "diurnal": diurnal_gaps,
        },
    )
