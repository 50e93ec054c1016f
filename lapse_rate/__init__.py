"""Temperature lapse-rate analysis for the 2019 elevation transect."""

from lapse_rate.errors import (
    DegenerateRegressionError,
    DuplicateGroupError,
    LapseRateError,
    MissingBoundaryError,
)
from lapse_rate.pipeline import LapseRateReport, run_all, run_diurnal
from lapse_rate.regression import RegressionResult, fit_lapse_rate

__all__ = [
    "DegenerateRegressionError",
    "DuplicateGroupError",
    "LapseRateError",
    "LapseRateReport",
    "MissingBoundaryError",
    "RegressionResult",
    "fit_lapse_rate",
    "run_all",
    "run_diurnal",
]
