#!/usr/bin/env python3
"""
Lapse-rate report for the elevation transect.

What it does:
1) Loads the per-site logger CSVs and the site registry
2) Loads the cached sunrise/sunset table (see cache_sun_boundaries.py)
3) Fits temperature vs. elevation overall, per day, per hour and per day/night
4) Prints a summary and writes CSV outputs (and optionally a figure)

Primary use:
python scripts/run_lapse_rate_report.py --data-dir data/loggers --sites data/sites.csv \
    --sun data/sun_cache/sun_....csv --tz America/Denver
"""

from __future__ import annotations

import argparse
from datetime import date
from pathlib import Path

import pandas as pd

from lapse_rate.config import DEFAULT_OUTDIR, EXPECTED_SITE_COUNT
from lapse_rate.errors import LapseRateError
from lapse_rate.pipeline import run_all
from lapse_rate.readings import load_readings
from lapse_rate.regression import INTERCEPT, LAPSE_RATE, N_SITES, R_SQUARED
from lapse_rate.results import PARTITION, filter_from, write_table
from lapse_rate.sites import load_sites
from lapse_rate.sun import load_sun_boundaries


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Fit environmental lapse rates from the logger transect.")
    p.add_argument("--data-dir", required=True, help="Directory of per-site logger CSVs.")
    p.add_argument("--pattern", default="*.csv", help="Glob for logger files inside --data-dir.")
    p.add_argument("--sites", required=True, help="Site registry CSV.")
    p.add_argument("--sun", required=True, help="Cached sunrise/sunset CSV.")
    p.add_argument(
        "--tz",
        required=True,
        help="Olson zone of the site, e.g. America/Denver. Calendar dates and day/night are cut in it.",
    )
    p.add_argument(
        "--clock-tz",
        default=None,
        help="Olson zone the logger clocks were set to, for naive timestamps. Defaults to --tz.",
    )
    p.add_argument(
        "--expected-sites",
        type=int,
        default=EXPECTED_SITE_COUNT,
        help="Required registry size; 0 disables the check.",
    )
    p.add_argument(
        "--min-date",
        type=date.fromisoformat,
        default=None,
        help="Drop results before this date (YYYY-MM-DD) when presenting.",
    )
    p.add_argument("--plot", action="store_true", help="Also write the day/night figure.")
    p.add_argument("--outdir", default=str(DEFAULT_OUTDIR), help="Directory for outputs.")
    return p.parse_args()


def main() -> int:
    args = parse_args()

    data_dir = Path(args.data_dir)
    paths = sorted(data_dir.glob(args.pattern))
    if not paths:
        print(f"ERROR: no logger files matching {args.pattern!r} in {data_dir}")
        return 1

    try:
        readings = load_readings(paths, tz=args.tz, clock_tz=args.clock_tz)
        sites = load_sites(args.sites, expected_count=args.expected_sites or None)
        boundaries = load_sun_boundaries(args.sun, tz=args.tz)
        report = run_all(readings, sites, boundaries, verbose=True)
    except LapseRateError as exc:
        print(f"ERROR: {type(exc).__name__}: {exc}")
        return 2

    diurnal = filter_from(report.diurnal, args.min_date)
    daily = filter_from(report.daily, args.min_date)
    hourly = filter_from(report.hourly, args.min_date, column="hour")

    pd.set_option("display.width", 200)

    print("\nOverall Fit")
    print("=" * 80)
    if report.overall is None:
        print("No overall fit (fewer than two sites with distinct elevations).")
    else:
        o = report.overall
        print(f"lapse rate : {o.slope:.3f} C/km")
        print(f"intercept  : {o.intercept:.3f} C")
        print(f"r_squared  : {o.r_squared:.4f}")
        print(f"sites      : {o.n_sites}")

    print("\nDay/Night Summary")
    print("=" * 80)
    if diurnal.empty:
        print("No day/night fits.")
    else:
        summary = diurnal.groupby(PARTITION).agg(
            days=(LAPSE_RATE, "size"),
            mean_lapse_rate=(LAPSE_RATE, "mean"),
            min_lapse_rate=(LAPSE_RATE, "min"),
            max_lapse_rate=(LAPSE_RATE, "max"),
            mean_r_squared=(R_SQUARED, "mean"),
        )
        print(summary.to_string())

    print("\nGaps (degenerate fits skipped)")
    print("=" * 80)
    for name, gaps in report.gaps.items():
        print(f"{name:<8}: {len(gaps)}")

    outdir = Path(args.outdir).resolve()
    saved = [
        write_table(diurnal, outdir / "lapse_rate_daynight.csv"),
        write_table(daily, outdir / "lapse_rate_daily.csv"),
        write_table(hourly, outdir / "lapse_rate_hourly.csv"),
    ]
    if report.overall is not None:
        overall = pd.DataFrame(
            [
                {
                    LAPSE_RATE: report.overall.slope,
                    INTERCEPT: report.overall.intercept,
                    R_SQUARED: report.overall.r_squared,
                    N_SITES: report.overall.n_sites,
                }
            ]
        )
        saved.append(write_table(overall, outdir / "lapse_rate_overall.csv"))

    if args.plot:
        from lapse_rate.plotting import plot_diurnal_series

        overall_slope = report.overall.slope if report.overall is not None else None
        saved.append(plot_diurnal_series(diurnal, outdir / "lapse_rate_daynight.png", overall_slope=overall_slope))

    print("\nSaved Files")
    print("=" * 80)
    for path in saved:
        print(path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
