#!/usr/bin/env python3
"""
Download and cache sunrise/sunset boundaries locally for reproducible reruns.
"""

from __future__ import annotations

import argparse

import requests

from lapse_rate.config import ANALYSIS_END, ANALYSIS_START, CACHE_DIR
from lapse_rate.errors import LapseRateError
from lapse_rate.sun import cache_path_for, fetch_sun_boundaries_cached, missing_dates


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cache sunrise/sunset boundaries locally.")
    parser.add_argument("--lat", type=float, required=True, help="Latitude of the transect, decimal degrees")
    parser.add_argument("--lon", type=float, required=True, help="Longitude of the transect, decimal degrees")
    parser.add_argument("--tz", required=True, help="Olson zone of the site, e.g. America/Denver")
    parser.add_argument("--start", default=ANALYSIS_START.isoformat(), help="Start date YYYY-MM-DD")
    parser.add_argument("--end", default=ANALYSIS_END.isoformat(), help="End date YYYY-MM-DD")
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Force API fetch even if cache exists.",
    )
    parser.add_argument(
        "--cache-dir",
        default=str(CACHE_DIR),
        help="Cache directory for boundary files.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    try:
        df = fetch_sun_boundaries_cached(
            args.lat,
            args.lon,
            args.start,
            args.end,
            tz=args.tz,
            cache_dir=args.cache_dir,
            refresh=args.refresh,
        )
    except (LapseRateError, requests.RequestException) as exc:
        print(f"ERROR: {type(exc).__name__}: {exc}")
        return 1

    if df.empty:
        print("No boundaries returned.")
        return 1

    gaps = missing_dates(df, df["date"].min(), df["date"].max())

    print("\nCache complete")
    print("=" * 70)
    print(f"location    : ({args.lat}, {args.lon})")
    print(f"tz          : {args.tz}")
    print(f"rows        : {len(df)}")
    print(f"date min    : {df['date'].min()}")
    print(f"date max    : {df['date'].max()}")
    print(f"gaps        : {len(gaps)}")
    print(f"cache file  : {cache_path_for(args.lat, args.lon, args.start, args.end, args.cache_dir)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
