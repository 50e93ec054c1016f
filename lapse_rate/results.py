"""
Merge the per-partition regression series into one long-format table and
write it out.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from lapse_rate.config import DAY, FLOAT_FORMAT, NIGHT, PARTITIONS
from lapse_rate.regression import RESULT_COLUMNS
from lapse_rate.sun import DATE

PARTITION = "partition"

LAPSE_RATE_COLUMNS = [DATE, PARTITION, *RESULT_COLUMNS]


def merge_day_night(day: pd.DataFrame, night: pd.DataFrame) -> pd.DataFrame:
    """
    Stack the day and night fit series into (date, partition, ...) rows.

    Every date from either input appears; a date missing from one partition
    has no row for that partition rather than a null-filled one.
    """
    parts = []
    for label, frame in ((DAY, day), (NIGHT, night)):
        if frame.empty:
            continue
        part = frame[[DATE, *RESULT_COLUMNS]].copy()
        part.insert(1, PARTITION, label)
        parts.append(part)

    if not parts:
        return pd.DataFrame(columns=LAPSE_RATE_COLUMNS)

    out = pd.concat(parts, ignore_index=True)
    order = {label: i for i, label in enumerate(PARTITIONS)}
    out = out.sort_values([DATE, PARTITION], key=lambda s: s.map(order) if s.name == PARTITION else s)
    return out.reset_index(drop=True)[LAPSE_RATE_COLUMNS]


def filter_from(table: pd.DataFrame, start: Optional[date], column: str = DATE) -> pd.DataFrame:
    """Drop rows before ``start``, e.g. days before every sensor was online."""
    if start is None:
        return table
    values = table[column]
    if pd.api.types.is_datetime64_any_dtype(values):
        values = values.dt.date
    return table[values >= start].reset_index(drop=True)


def write_table(table: pd.DataFrame, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(path, index=False, float_format=FLOAT_FORMAT)
    return path
