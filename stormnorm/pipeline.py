"""
Normalization pipeline
======================

Per record:

1) (year, month) from the begin date
2) property + crop damages via the magnitude decoder (missing is contagious)
3) deflate the total to the reference month via the price index
4) canonical category via the classifier

`run_pipeline` does this for a whole batch. Each record is independent
of the others, so input order never changes the output. A record whose
date cannot be read is dropped and counted; it never aborts the batch.

Records classified as `other` are kept in `PipelineResult.classified`
for auditing, but `PipelineResult.retained` (what the aggregator sees)
leaves them out.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple
import logging

import pandas as pd

from .classifier import OTHER, classify
from .errors import ConfigurationError, UnparseableDateError
from .magnitude import add_damages, decode
from .models import ClassifiedRecord, PriceIndexEntry, RawEventRecord
from .price_index import PriceIndex, YearMonth, build_index

logger = logging.getLogger(__name__)


def event_year_month(begin_date: object) -> YearMonth:
    """(year, month) of a date, datetime, Timestamp, numpy datetime64 or date string."""
    if begin_date is None or (not isinstance(begin_date, str) and pd.isna(begin_date)):
        raise UnparseableDateError("begin date is missing")
    if not isinstance(begin_date, date):
        if isinstance(begin_date, str):
            begin_date = begin_date.strip()
        try:
            parsed = pd.to_datetime(begin_date, errors="coerce")
        except (TypeError, ValueError) as e:
            raise UnparseableDateError(f"cannot parse begin date {begin_date!r}") from e
        if pd.isna(parsed):
            raise UnparseableDateError(f"cannot parse begin date {begin_date!r}")
        begin_date = parsed
    return int(begin_date.year), int(begin_date.month)


def normalize(raw: RawEventRecord, price_index: PriceIndex) -> ClassifiedRecord:
    """Turn one raw record into a `ClassifiedRecord`.

    Raises:
        UnparseableDateError: the begin date is missing or unreadable.
    """
    year, month = event_year_month(raw.begin_date)
    total = add_damages(decode(raw.prop_dmg, raw.prop_dmg_exp), decode(raw.crop_dmg, raw.crop_dmg_exp))
    return ClassifiedRecord(
        event_id=raw.event_id,
        year=year,
        month=month,
        category=classify(raw.event_type),
        damages_adjusted=price_index.deflate(total, year, month),
        fatalities=raw.fatalities,
        injuries=raw.injuries,
    )


def exclude_other(records: Iterable[ClassifiedRecord]) -> List[ClassifiedRecord]:
    return [r for r in records if r.category != OTHER]


def latest_year_month(records: Iterable[RawEventRecord]) -> YearMonth:
    """Latest (year, month) among records with a readable date; the default reference."""
    latest: Optional[YearMonth] = None
    for r in records:
        try:
            ym = event_year_month(r.begin_date)
        except UnparseableDateError:
            continue
        if latest is None or ym > latest:
            latest = ym
    if latest is None:
        raise ConfigurationError("No event has a readable begin date; cannot choose a reference month")
    return latest


@dataclass
class PipelineResult:
    """Everything one pipeline run produced."""
    classified: List[ClassifiedRecord]
    reference: YearMonth
    dropped: int = 0
    dropped_ids: List[str] = field(default_factory=list)

    @property
    def retained(self) -> List[ClassifiedRecord]:
        return exclude_other(self.classified)

    @property
    def other_count(self) -> int:
        return sum(1 for r in self.classified if r.category == OTHER)

    @property
    def missing_damages(self) -> int:
        return sum(1 for r in self.classified if r.damages_adjusted is None)


def run_pipeline(
    raw_records: Sequence[RawEventRecord],
    price_entries: Iterable[PriceIndexEntry],
    reference: Optional[Tuple[int, int]] = None,
) -> PipelineResult:
    """Normalize a batch of raw records.

    The price index is built (and the reference month checked) once,
    before any record is touched.

    Raises:
        ConfigurationError: the reference month is not in the price index,
            or no reference was given and no record has a readable date.
    """
    if reference is None:
        reference = latest_year_month(raw_records)
    price_index = build_index(price_entries, reference[0], reference[1])

    classified: List[ClassifiedRecord] = []
    dropped_ids: List[str] = []
    for raw in raw_records:
        try:
            classified.append(normalize(raw, price_index))
        except UnparseableDateError as e:
            logger.debug("Dropping event %s: %s", raw.event_id, e)
            dropped_ids.append(raw.event_id)

    result = PipelineResult(
        classified=classified,
        reference=reference,
        dropped=len(dropped_ids),
        dropped_ids=dropped_ids,
    )
    logger.info(
        "Normalized %d of %d events (dropped=%d, other=%d, missing damages=%d)",
        len(classified), len(raw_records), result.dropped, result.other_count, result.missing_damages,
    )
    return result
