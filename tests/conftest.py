from __future__ import annotations

from datetime import date

import pandas as pd
import pytest

TZ = "America/Denver"


def make_boundaries(days, tz: str = TZ, sunrise: str = "06:00", sunset: str = "20:00") -> pd.DataFrame:
    return pd.DataFrame(
        {
            "date": list(days),
            "sunrise": [pd.Timestamp(f"{d} {sunrise}", tz=tz) for d in days],
            "sunset": [pd.Timestamp(f"{d} {sunset}", tz=tz) for d in days],
        }
    )


def make_readings(rows, tz: str = TZ) -> pd.DataFrame:
    """rows: iterable of (local time string, site_id, temperature)."""
    return pd.DataFrame(
        {
            "timestamp": [pd.Timestamp(ts, tz=tz) for ts, _, _ in rows],
            "site_id": [site for _, site, _ in rows],
            "temperature": [float(t) for _, _, t in rows],
        }
    )


def make_sites(elevations: dict) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "site_id": list(elevations),
            "elevation_m": [float(e) for e in elevations.values()],
            "utm_easting": [300000.0 + 100 * i for i in range(len(elevations))],
            "utm_northing": [4300000.0 + 100 * i for i in range(len(elevations))],
        }
    )


@pytest.fixture
def transect_days():
    return [date(2019, 7, 10), date(2019, 7, 11), date(2019, 7, 12)]


@pytest.fixture
def two_site_readings(transect_days):
    """Two sites, one day and one night reading per date, colder uphill."""
    temps = {
        "LOW": {"day": 20.0, "night": 10.0},
        "HIGH": {"day": 14.0, "night": 6.0},
    }
    rows = []
    for d in transect_days:
        for site, t in temps.items():
            rows.append((f"{d} 12:00", site, t["day"]))
            rows.append((f"{d} 03:00", site, t["night"]))
    return make_readings(rows)


@pytest.fixture
def two_sites():
    return make_sites({"LOW": 1000.0, "HIGH": 2000.0})
