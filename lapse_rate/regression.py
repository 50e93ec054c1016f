"""
Ordinary least squares of temperature on elevation, one fit per period.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd

from lapse_rate.errors import DegenerateRegressionError, DuplicateGroupError
from lapse_rate.readings import SITE_ID, TEMPERATURE
from lapse_rate.sites import ELEVATION_KM

LAPSE_RATE = "lapse_rate"
INTERCEPT = "intercept"
R_SQUARED = "r_squared"
N_SITES = "n_sites"

RESULT_COLUMNS = [LAPSE_RATE, INTERCEPT, R_SQUARED, N_SITES]


@dataclass(frozen=True)
class RegressionResult:
    slope: float  # degC per km
    intercept: float  # degC at 0 km
    r_squared: float
    n_sites: int


def fit_lapse_rate(elevation_km: Sequence[float], temperature: Sequence[float]) -> RegressionResult:
    """
    Fit temperature = intercept + slope * elevation_km.

    Raises DegenerateRegressionError for fewer than two points or fewer than two
    distinct elevations; the slope is undefined there, not zero.
    """
    x = np.asarray(elevation_km, dtype=float)
    y = np.asarray(temperature, dtype=float)
    if x.shape != y.shape:
        raise DegenerateRegressionError(f"elevation and temperature lengths differ: {x.size} vs {y.size}")
    if x.size < 2:
        raise DegenerateRegressionError(f"need at least 2 points, got {x.size}")

    x_mean = x.mean()
    y_mean = y.mean()
    dx = x - x_mean
    sxx = float(np.sum(dx * dx))
    if np.unique(x).size < 2 or sxx == 0.0:
        raise DegenerateRegressionError("elevation has zero variance")

    # Flat temperatures: exact fit, but y - y_mean is rounding noise, not signal.
    if np.ptp(y) == 0.0:
        return RegressionResult(slope=0.0, intercept=float(y[0]), r_squared=1.0, n_sites=int(x.size))

    slope = float(np.sum(dx * (y - y_mean)) / sxx)
    intercept = float(y_mean - slope * x_mean)

    residuals = y - (intercept + slope * x)
    ss_res = float(np.sum(residuals ** 2))
    ss_tot = float(np.sum((y - y_mean) ** 2))
    r_squared = float(np.clip(1.0 - ss_res / ss_tot, 0.0, 1.0))

    return RegressionResult(slope=slope, intercept=intercept, r_squared=r_squared, n_sites=int(x.size))


def check_unique_groups(averages: pd.DataFrame, keys: Sequence[str]) -> None:
    """Abort with DuplicateGroupError if any (site_id, *keys) appears twice."""
    subset = [SITE_ID, *keys]
    dupes = averages.duplicated(subset=subset, keep=False)
    if dupes.any():
        offending = averages.loc[dupes, subset].drop_duplicates()
        raise DuplicateGroupError(offending.itertuples(index=False, name=None))


def fit_by_key(
    averages: pd.DataFrame,
    keys: Sequence[str],
    verbose: bool = False,
) -> Dict[Tuple, RegressionResult]:
    """
    Run one independent fit per distinct value of ``keys``.

    ``averages`` holds one row per (site_id, *keys) with ``elevation_km`` and
    ``temperature``. Keys whose fit is degenerate are left out of the result.
    """
    keys = list(keys)
    check_unique_groups(averages, keys)

    fits: Dict[Tuple, RegressionResult] = {}
    gaps = []
    for key, group in averages.groupby(keys, sort=True):
        try:
            fits[key] = fit_lapse_rate(group[ELEVATION_KM], group[TEMPERATURE])
        except DegenerateRegressionError:
            gaps.append(key)

    if verbose:
        print(f"[FIT] {'/'.join(keys)}: {len(fits)} fits, {len(gaps)} gaps")
    return fits


def fits_to_frame(fits: Dict[Tuple, RegressionResult], keys: Sequence[str]) -> pd.DataFrame:
    """Flatten a key -> result mapping into a table sorted by key."""
    keys = list(keys)
    rows = []
    for key in sorted(fits):
        result = asdict(fits[key])
        row = dict(zip(keys, key))
        row[LAPSE_RATE] = result["slope"]
        row[INTERCEPT] = result["intercept"]
        row[R_SQUARED] = result["r_squared"]
        row[N_SITES] = result["n_sites"]
        rows.append(row)
    return pd.DataFrame(rows, columns=keys + RESULT_COLUMNS)


def fit_periods(averages: pd.DataFrame, keys: Sequence[str], verbose: bool = False) -> pd.DataFrame:
    """``fit_by_key`` followed by ``fits_to_frame``."""
    return fits_to_frame(fit_by_key(averages, keys, verbose=verbose), keys)
