"""Figures for the lapse-rate report."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from lapse_rate.config import DAY, NIGHT
from lapse_rate.regression import LAPSE_RATE, R_SQUARED
from lapse_rate.results import PARTITION
from lapse_rate.sun import DATE

_COLORS = {DAY: "tab:orange", NIGHT: "tab:blue"}


def plot_diurnal_series(table: pd.DataFrame, out_png: Path, overall_slope: Optional[float] = None) -> Path:
    """Day and night lapse rate by date (top) and R^2 by date (bottom)."""
    fig, axes = plt.subplots(2, 1, figsize=(13, 8), sharex=True)

    ax = axes[0]
    for label in (DAY, NIGHT):
        part = table[table[PARTITION] == label]
        if part.empty:
            continue
        dates = pd.to_datetime(part[DATE])
        ax.plot(dates, part[LAPSE_RATE], color=_COLORS[label], linewidth=1.3, marker="o", markersize=3, label=label.title())
    if overall_slope is not None:
        ax.axhline(overall_slope, color="k", linestyle="--", linewidth=1, label=f"Overall ({overall_slope:.2f})")
    ax.axhline(0.0, color="gray", linewidth=0.8)
    ax.set_ylabel("Lapse rate (C/km)")
    ax.set_title("Day/Night Lapse Rate By Date")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper right", fontsize=9)

    ax = axes[1]
    for label in (DAY, NIGHT):
        part = table[table[PARTITION] == label]
        if part.empty:
            continue
        ax.plot(pd.to_datetime(part[DATE]), part[R_SQUARED], color=_COLORS[label], linewidth=1.1, label=label.title())
    ax.set_ylim(0.0, 1.0)
    ax.set_ylabel("R^2")
    ax.set_xlabel("Date")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="lower right", fontsize=9)

    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)
    plt.tight_layout()
    fig.savefig(out_png, dpi=160)
    plt.close(fig)
    return out_png
