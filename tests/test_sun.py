"""Tests for the sunrise/sunset fetcher and its disk cache. No network access."""

from __future__ import annotations

from datetime import date

import pandas as pd
import pytest
import requests

from lapse_rate import sun
from lapse_rate.errors import LapseRateError, MissingBoundaryError
from lapse_rate.sun import (
    check_coverage,
    fetch_sun_boundaries,
    fetch_sun_boundaries_cached,
    load_sun_boundaries,
    missing_dates,
    save_sun_boundaries,
)

TZ = "America/Denver"


class _FakeResponse:
    def __init__(self, payload: dict) -> None:
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self) -> dict:
        return self._payload


def _fake_get(calls: list):
    def fake_get(url, params=None, timeout=None):
        calls.append(params["date"])
        day = params["date"]
        next_day = (pd.Timestamp(day) + pd.Timedelta(days=1)).strftime("%Y-%m-%d")
        return _FakeResponse(
            {
                "status": "OK",
                "results": {
                    "sunrise": f"{day}T12:00:00+00:00",
                    "sunset": f"{next_day}T02:30:00+00:00",
                },
            }
        )

    return fake_get


def test_fetch_converts_to_local_zone(monkeypatch) -> None:
    calls: list = []
    monkeypatch.setattr(sun.requests, "get", _fake_get(calls))

    df = fetch_sun_boundaries(38.0, -107.0, "2019-07-10", "2019-07-11", tz=TZ)

    assert calls == ["2019-07-10", "2019-07-11"]
    assert df["date"].tolist() == [date(2019, 7, 10), date(2019, 7, 11)]
    assert df.loc[0, "sunrise"] == pd.Timestamp("2019-07-10 06:00", tz=TZ)
    assert df.loc[0, "sunset"] == pd.Timestamp("2019-07-10 20:30", tz=TZ)


def test_fetch_retries_connection_errors(monkeypatch) -> None:
    calls: list = []
    good = _fake_get(calls)
    failures = {"left": 2}

    def flaky_get(url, params=None, timeout=None):
        if failures["left"]:
            failures["left"] -= 1
            raise requests.exceptions.ConnectionError("down")
        return good(url, params=params, timeout=timeout)

    monkeypatch.setattr(sun.requests, "get", flaky_get)
    monkeypatch.setattr(sun.time, "sleep", lambda seconds: None)

    df = fetch_sun_boundaries(38.0, -107.0, "2019-07-10", "2019-07-10", tz=TZ)

    assert len(df) == 1
    assert calls == ["2019-07-10"]


def test_fetch_gives_up_after_max_retries(monkeypatch) -> None:
    def down(url, params=None, timeout=None):
        raise requests.exceptions.Timeout("slow")

    monkeypatch.setattr(sun.requests, "get", down)
    monkeypatch.setattr(sun.time, "sleep", lambda seconds: None)

    with pytest.raises(requests.exceptions.Timeout):
        fetch_sun_boundaries(38.0, -107.0, "2019-07-10", "2019-07-10", tz=TZ)


def test_fetch_makes_one_attempt_when_retries_disabled(monkeypatch) -> None:
    calls: list = []
    monkeypatch.setattr(sun, "FETCH_MAX_RETRIES", 0)
    monkeypatch.setattr(sun.requests, "get", _fake_get(calls))

    df = fetch_sun_boundaries(38.0, -107.0, "2019-07-10", "2019-07-10", tz=TZ)

    assert len(df) == 1
    assert calls == ["2019-07-10"]

    attempts: list = []

    def down(url, params=None, timeout=None):
        attempts.append(params["date"])
        raise requests.exceptions.ConnectionError("down")

    monkeypatch.setattr(sun.requests, "get", down)
    with pytest.raises(requests.exceptions.ConnectionError):
        fetch_sun_boundaries(38.0, -107.0, "2019-07-10", "2019-07-10", tz=TZ)
    assert attempts == ["2019-07-10"]


def test_fetch_rejects_non_ok_payload(monkeypatch) -> None:
    monkeypatch.setattr(
        sun.requests, "get", lambda url, params=None, timeout=None: _FakeResponse({"status": "INVALID_DATE"})
    )

    with pytest.raises(LapseRateError, match="INVALID_DATE"):
        fetch_sun_boundaries(38.0, -107.0, "2019-07-10", "2019-07-10", tz=TZ)


def test_cached_fetch_reuses_disk_copy(monkeypatch, tmp_path) -> None:
    calls: list = []
    monkeypatch.setattr(sun.requests, "get", _fake_get(calls))
    first = fetch_sun_boundaries_cached(38.0, -107.0, "2019-07-10", "2019-07-12", tz=TZ, cache_dir=tmp_path)

    def no_network(*args, **kwargs):
        raise AssertionError("cache should have been used")

    monkeypatch.setattr(sun.requests, "get", no_network)
    second = fetch_sun_boundaries_cached(38.0, -107.0, "2019-07-10", "2019-07-12", tz=TZ, cache_dir=tmp_path)

    assert len(calls) == 3
    pd.testing.assert_frame_equal(first, second)


def test_save_and_load_keep_instants(tmp_path) -> None:
    df = pd.DataFrame(
        {
            "date": [date(2019, 7, 10)],
            "sunrise": [pd.Timestamp("2019-07-10 05:53", tz=TZ)],
            "sunset": [pd.Timestamp("2019-07-10 20:31", tz=TZ)],
        }
    )

    path = save_sun_boundaries(df, tmp_path / "sun.csv")
    loaded = load_sun_boundaries(path, tz=TZ)

    assert loaded.loc[0, "date"] == date(2019, 7, 10)
    assert loaded.loc[0, "sunrise"] == df.loc[0, "sunrise"]
    assert loaded.loc[0, "sunset"] == df.loc[0, "sunset"]


def test_duplicate_dates_in_boundary_file_rejected(tmp_path) -> None:
    path = tmp_path / "sun.csv"
    path.write_text(
        "date,sunrise,sunset\n"
        "2019-07-10,2019-07-10T12:00:00+0000,2019-07-11T02:30:00+0000\n"
        "2019-07-10,2019-07-10T12:01:00+0000,2019-07-11T02:29:00+0000\n"
    )

    with pytest.raises(LapseRateError, match="more than one row"):
        load_sun_boundaries(path, tz=TZ)


def test_coverage_checks() -> None:
    boundaries = pd.DataFrame({"date": [date(2019, 7, 10), date(2019, 7, 12)]})

    check_coverage(boundaries, [date(2019, 7, 10)])
    with pytest.raises(MissingBoundaryError) as excinfo:
        check_coverage(boundaries, [date(2019, 7, 11), date(2019, 7, 12)])

    assert excinfo.value.dates == [date(2019, 7, 11)]
    assert missing_dates(boundaries, date(2019, 7, 10), date(2019, 7, 12)) == [date(2019, 7, 11)]


def test_boundaries_loaded_in_utc_for_western_site_rejected(tmp_path) -> None:
    # Sunset at 02:30Z falls on the next UTC date, so UTC cannot be the site zone here.
    path = tmp_path / "sun.csv"
    path.write_text("date,sunrise,sunset\n2019-07-10,2019-07-10T12:00:00+0000,2019-07-11T02:30:00+0000\n")

    assert load_sun_boundaries(path, tz=TZ).loc[0, "date"] == date(2019, 7, 10)
    with pytest.raises(LapseRateError, match="local zone"):
        load_sun_boundaries(path, tz="UTC")
