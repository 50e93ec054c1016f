"""Exceptions raised by the lapse-rate pipeline."""

from __future__ import annotations


class LapseRateError(Exception):
    """Base class for every error the analysis raises on bad input."""


class ReadingsValidationError(LapseRateError, ValueError):
    pass


class SiteRegistryError(LapseRateError, ValueError):
    pass


class MissingBoundaryError(LapseRateError):
    """A reading falls on a calendar date with no sunrise/sunset record."""

    def __init__(self, dates):
        self.dates = sorted(dates)
        shown = ", ".join(str(d) for d in self.dates[:5])
        if len(self.dates) > 5:
            shown += f", ... ({len(self.dates)} dates)"
        super().__init__(f"No sunrise/sunset boundary for: {shown}")


class DegenerateRegressionError(LapseRateError, ValueError):
    """Fewer than two distinct elevations are available for a fit."""


class DuplicateGroupError(LapseRateError):
    """More than one averaged row exists for the same (site, period) key."""

    def __init__(self, keys):
        self.keys = list(keys)
        shown = ", ".join(str(k) for k in self.keys[:5])
        super().__init__(f"Duplicate averaged rows for {len(self.keys)} key(s): {shown}")
