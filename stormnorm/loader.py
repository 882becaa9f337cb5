"""
Dataset loader (table -> typed records)
=======================================

Reads the storm events table and the monthly price index series and
turns each row into an immutable record.

Key ideas:
- We try multiple possible column names because exports vary
  ("BGN_DATE", "Begin Date", "begin_date" all work).
- Conversion helpers (_to_int/_to_magnitude/_to_str) turn blanks into 0 / "".
  A damage magnitude that is not a number becomes NaN, which the decoder
  treats as missing rather than as zero damage.
- The date column is parsed once for the whole table.
- An unreadable begin date becomes `None`; the pipeline drops and counts
  those rows instead of failing here.
- Both CSV and Excel (.xlsx, via openpyxl) files are accepted.
"""

from __future__ import annotations
from datetime import datetime
from typing import List, Optional
import logging
import math
import re

import pandas as pd

from .models import PriceIndexEntry, RawEventRecord

logger = logging.getLogger(__name__)


def _to_int(x) -> int:
    """Convert a cell to int; blanks and junk count as 0."""
    if pd.isna(x): return 0
    try: return int(float(x))
    except (TypeError, ValueError): return 0

def _to_magnitude(x) -> float:
    """Convert a damage cell to float. Blank is 0.0; junk is NaN (decoded as missing)."""
    if pd.isna(x) or (isinstance(x, str) and not x.strip()): return 0.0
    try: return float(x)
    except (TypeError, ValueError): return math.nan

def _to_str(x) -> str:
    if pd.isna(x): return ""
    return str(x).strip()

def _to_id(x, fallback: str) -> str:
    """Numeric ids read back as 1.0; keep them as "1"."""
    if isinstance(x, float) and x.is_integer():
        return str(int(x))
    return _to_str(x) or fallback

def _parse_dates(values: pd.Series) -> List[Optional[datetime]]:
    """Parse a whole date column; cells the inferred format misses are retried one by one."""
    parsed = pd.to_datetime(values, errors="coerce")
    retry = parsed.isna() & values.notna()
    if retry.any():
        parsed = parsed.astype(object)
        parsed[retry] = [pd.to_datetime(str(v).strip(), errors="coerce") for v in values[retry]]
    return [None if pd.isna(ts) else pd.Timestamp(ts).to_pydatetime() for ts in parsed]

def _norm(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _col(df: pd.DataFrame, *names: str) -> str:
    cols = list(df.columns)
    for n in names:
        if n in cols:
            return n
    norm_map = {_norm(c): c for c in cols}
    for n in names:
        nn = _norm(n)
        if nn in norm_map:
            return norm_map[nn]
    raise KeyError(f"Missing required column. Tried={names}. Available={cols}")

def _read_table(path: str) -> pd.DataFrame:
    if str(path).lower().endswith((".xlsx", ".xlsm")):
        df = pd.read_excel(path, engine="openpyxl")
    else:
        df = pd.read_csv(path, low_memory=False)
    df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
    return df


# ---------------- Storm events ----------------
def records_from_frame(df: pd.DataFrame) -> List[RawEventRecord]:
    """Convert a storm events DataFrame into `RawEventRecord`s."""
    id_col = _col(df, "REFNUM", "EVENT_ID", "Event Id", "id")
    date_col = _col(df, "BGN_DATE", "BEGIN_DATE", "Begin Date", "begin_date")
    type_col = _col(df, "EVTYPE", "EVENT_TYPE", "Event Type", "event_type")
    prop_col = _col(df, "PROPDMG", "Property Damage", "prop_dmg")
    prop_exp_col = _col(df, "PROPDMGEXP", "Property Damage Exp", "prop_dmg_exp")
    crop_col = _col(df, "CROPDMG", "Crop Damage", "crop_dmg")
    crop_exp_col = _col(df, "CROPDMGEXP", "Crop Damage Exp", "crop_dmg_exp")
    deaths_col = _col(df, "FATALITIES", "Deaths", "fatalities")
    injuries_col = _col(df, "INJURIES", "injuries")

    dates = _parse_dates(df[date_col])
    records: List[RawEventRecord] = []
    for (i, row), begin_date in zip(df.iterrows(), dates):
        records.append(RawEventRecord(
            event_id=_to_id(row[id_col], fallback=str(i)),
            begin_date=begin_date,
            event_type=_to_str(row[type_col]),
            prop_dmg=_to_magnitude(row[prop_col]),
            prop_dmg_exp=_to_str(row[prop_exp_col]),
            crop_dmg=_to_magnitude(row[crop_col]),
            crop_dmg_exp=_to_str(row[crop_exp_col]),
            fatalities=_to_int(row[deaths_col]),
            injuries=_to_int(row[injuries_col]),
        ))

    unreadable = sum(1 for r in records if math.isnan(r.prop_dmg) or math.isnan(r.crop_dmg))
    if unreadable:
        logger.warning("%d events have an unreadable damage magnitude; their damages will be missing", unreadable)
    return records

def load_storm_events(path: str) -> List[RawEventRecord]:
    """Load a storm events CSV/Excel export."""
    records = records_from_frame(_read_table(path))
    logger.info("Loaded %d storm events from %s", len(records), path)
    return records


# ---------------- Price index ----------------
def price_entries_from_frame(
    df: pd.DataFrame,
    date_column: Optional[str] = None,
    value_column: Optional[str] = None,
) -> List[PriceIndexEntry]:
    """Convert a (date, value) series into monthly `PriceIndexEntry`s.

    Series finer than monthly are averaged per (year, month). Rows with an
    unreadable date or value are skipped.
    """
    date_col = date_column or _col(df, "DATE", "observation_date", "date")
    if value_column is None:
        others = [c for c in df.columns if c != date_col]
        if not others:
            raise KeyError(f"Price index needs a value column next to {date_col!r}")
        value_column = others[0]

    series = pd.DataFrame({
        "date": pd.to_datetime(df[date_col], errors="coerce"),
        "value": pd.to_numeric(df[value_column], errors="coerce"),
    }).dropna()
    skipped = len(df) - len(series)
    if skipped:
        logger.warning("Skipped %d unreadable price index rows", skipped)

    monthly = series.groupby([series["date"].dt.year.rename("year"), series["date"].dt.month.rename("month")])["value"].mean()
    return [
        PriceIndexEntry(year=int(y), month=int(m), value=float(v))
        for (y, m), v in monthly.items()
    ]

def load_price_index(path: str, value_column: Optional[str] = None) -> List[PriceIndexEntry]:
    """Load a monthly price series (e.g. FRED CPIAUCSL: DATE,CPIAUCSL)."""
    entries = price_entries_from_frame(_read_table(path), value_column=value_column)
    logger.info("Loaded %d monthly price index entries from %s", len(entries), path)
    return entries
