"""
Data model
==========

Every storm row becomes a `RawEventRecord`; the pipeline turns it into a
`ClassifiedRecord`. All records are immutable (`frozen=True`) so that:
- records cannot be accidentally modified after loading, and
- aggregates are always recomputed from the records, never edited.

Missing damages are `None`. A value of `0.0` means "no damage", which is
a different thing.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RawEventRecord:
    """One storm event row, as delivered by the source table."""
    event_id: str
    # None when the source date could not be parsed
    begin_date: Optional[datetime]
    event_type: str
    # NaN when the source magnitude was not a number
    prop_dmg: float
    prop_dmg_exp: str
    crop_dmg: float
    crop_dmg_exp: str
    fatalities: int
    injuries: int


@dataclass(frozen=True)
class PriceIndexEntry:
    """One monthly observation of the price index (e.g. CPI)."""
    year: int
    month: int
    value: float


@dataclass(frozen=True)
class ClassifiedRecord:
    """Pipeline output for one event."""
    event_id: str
    year: int
    month: int
    category: str
    # deflated to the reference month; None when it could not be determined
    damages_adjusted: Optional[float]
    fatalities: int
    injuries: int


@dataclass(frozen=True)
class YearCategoryAggregate:
    year: int
    category: str
    event_count: int
    damages: float
    deaths: int
    injuries: int


@dataclass(frozen=True)
class CategoryAggregate:
    """Per-category summary of the yearly sums in `YearCategoryAggregate`."""
    category: str
    event_count: int
    year_count: int
    mean_damages: float
    median_damages: float
    mean_deaths: float
    median_deaths: float
    mean_injuries: float
    median_injuries: float

    def stat(self, metric: str, statistic: str = "median") -> float:
        """Return e.g. `stat("damages", "median")` -> median_damages."""
        if metric not in ("damages", "deaths", "injuries"):
            raise ValueError("metric must be: damages, deaths, injuries")
        if statistic not in ("mean", "median"):
            raise ValueError("statistic must be: mean, median")
        return getattr(self, f"{statistic}_{metric}")
