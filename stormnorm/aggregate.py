"""
Aggregator
==========

Two tables, both recomputed from `ClassifiedRecord`s:

- per (year, category): event count, summed damages, deaths, injuries
- per category: mean and median of those YEARLY sums, plus event count

Damage sums skip missing values (see `magnitude.sum_present`).

The (year, category) step is a plain grouped sum, so it can be computed
on chunks of records and combined with `merge_year_aggregates`. Medians
are only taken afterwards, over the merged yearly sums.

Rankings use the median yearly value: one catastrophic hurricane season
moves the mean a lot but the median very little.
"""

from __future__ import annotations
from dataclasses import asdict, fields
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import heapq

import numpy as np
import pandas as pd

from .magnitude import sum_present
from .models import CategoryAggregate, ClassifiedRecord, YearCategoryAggregate
from .pipeline import exclude_other


def aggregate_by_year(records: Iterable[ClassifiedRecord]) -> List[YearCategoryAggregate]:
    """Group by (year, category). Records in the `other` bucket are skipped."""
    groups: Dict[Tuple[int, str], List[ClassifiedRecord]] = {}
    for r in exclude_other(records):
        groups.setdefault((r.year, r.category), []).append(r)

    out: List[YearCategoryAggregate] = []
    for (year, category), rows in sorted(groups.items()):
        out.append(YearCategoryAggregate(
            year=year,
            category=category,
            event_count=len(rows),
            damages=sum_present(r.damages_adjusted for r in rows),
            deaths=sum(r.fatalities for r in rows),
            injuries=sum(r.injuries for r in rows),
        ))
    return out


def merge_year_aggregates(*parts: Iterable[YearCategoryAggregate]) -> List[YearCategoryAggregate]:
    """Combine partial (year, category) tables computed on separate chunks."""
    merged: Dict[Tuple[int, str], YearCategoryAggregate] = {}
    for part in parts:
        for a in part:
            key = (a.year, a.category)
            prev = merged.get(key)
            if prev is None:
                merged[key] = a
                continue
            merged[key] = YearCategoryAggregate(
                year=a.year,
                category=a.category,
                event_count=prev.event_count + a.event_count,
                damages=prev.damages + a.damages,
                deaths=prev.deaths + a.deaths,
                injuries=prev.injuries + a.injuries,
            )
    return [merged[k] for k in sorted(merged)]


def summarize_categories(year_aggregates: Iterable[YearCategoryAggregate]) -> List[CategoryAggregate]:
    """Mean/median of each category's yearly sums, across the years it appears in."""
    by_category: Dict[str, List[YearCategoryAggregate]] = {}
    for a in year_aggregates:
        by_category.setdefault(a.category, []).append(a)

    out: List[CategoryAggregate] = []
    for category, rows in sorted(by_category.items()):
        damages = np.array([a.damages for a in rows], dtype=float)
        deaths = np.array([a.deaths for a in rows], dtype=float)
        injuries = np.array([a.injuries for a in rows], dtype=float)
        out.append(CategoryAggregate(
            category=category,
            event_count=sum(a.event_count for a in rows),
            year_count=len(rows),
            mean_damages=float(np.mean(damages)),
            median_damages=float(np.median(damages)),
            mean_deaths=float(np.mean(deaths)),
            median_deaths=float(np.median(deaths)),
            mean_injuries=float(np.mean(injuries)),
            median_injuries=float(np.median(injuries)),
        ))
    return out


def aggregate(records: Iterable[ClassifiedRecord]) -> Tuple[List[YearCategoryAggregate], List[CategoryAggregate]]:
    """Both output tables for a batch of classified records."""
    year_aggregates = aggregate_by_year(records)
    return year_aggregates, summarize_categories(year_aggregates)


def rank_categories(
    summaries: Sequence[CategoryAggregate],
    n: Optional[int] = None,
    metric: str = "damages",
    statistic: str = "median",
) -> List[CategoryAggregate]:
    """Top-n categories by `statistic` of yearly `metric` (largest first, ties by name)."""
    if n is None:
        n = len(summaries)
    return heapq.nsmallest(n, summaries, key=lambda s: (-s.stat(metric, statistic), s.category))


# ---------------- Tables ----------------
def year_category_frame(year_aggregates: Iterable[YearCategoryAggregate]) -> pd.DataFrame:
    columns = [f.name for f in fields(YearCategoryAggregate)]
    return pd.DataFrame([asdict(a) for a in year_aggregates], columns=columns)


def category_frame(summaries: Iterable[CategoryAggregate]) -> pd.DataFrame:
    columns = [f.name for f in fields(CategoryAggregate)]
    return pd.DataFrame([asdict(s) for s in summaries], columns=columns)
