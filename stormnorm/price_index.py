"""
Temporal price index
====================

Builds a (year, month) -> ratio lookup from a monthly price series,
relative to one reference month:

    ratio(y, m) = value(y, m) / value(reference_year, reference_month)

Deflating divides a nominal amount by that ratio, so amounts from the
reference month come back unchanged (ratio exactly 1.0).

A month absent from the series is not an error: `lookup` returns None
and `deflate` propagates it as a missing value. The only fatal case is
a missing reference month, checked once in `build_index`.
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple
import logging

from .errors import ConfigurationError
from .models import PriceIndexEntry

logger = logging.getLogger(__name__)

YearMonth = Tuple[int, int]


@dataclass(frozen=True)
class PriceIndex:
    """Ratio lookup keyed by (year, month)."""
    ratios: Mapping[YearMonth, float]
    reference: YearMonth

    def lookup(self, year: int, month: int) -> Optional[float]:
        return self.ratios.get((year, month))

    def deflate(self, raw_value: Optional[float], year: int, month: int) -> Optional[float]:
        """Express `raw_value` in reference-month terms; None if either side is missing."""
        if raw_value is None:
            return None
        ratio = self.lookup(year, month)
        if ratio is None:
            return None
        return raw_value / ratio

    def __len__(self) -> int:
        return len(self.ratios)


def build_index(entries: Iterable[PriceIndexEntry], reference_year: int, reference_month: int) -> PriceIndex:
    """Build a `PriceIndex` normalized to (reference_year, reference_month).

    Raises:
        ConfigurationError: the reference month is absent, or an entry is
            malformed (month outside 1..12, non-positive value, duplicate key).
    """
    values: Dict[YearMonth, float] = {}
    for e in entries:
        if not 1 <= e.month <= 12:
            raise ConfigurationError(f"Price index entry has invalid month: {e.year}-{e.month}")
        if not e.value > 0:
            raise ConfigurationError(f"Price index value must be positive: {e.year}-{e.month:02d}={e.value}")
        key = (e.year, e.month)
        if key in values:
            raise ConfigurationError(f"Duplicate price index entry for {e.year}-{e.month:02d}")
        values[key] = float(e.value)

    reference = (reference_year, reference_month)
    base = values.get(reference)
    if base is None:
        raise ConfigurationError(
            f"Reference month {reference_year}-{reference_month:02d} is not in the price index "
            f"({len(values)} months available)"
        )

    ratios = {key: v / base for key, v in values.items()}
    # exact 1.0 so reference-month amounts deflate to themselves
    ratios[reference] = 1.0
    logger.info("Built price index: %d months, reference %d-%02d", len(ratios), reference_year, reference_month)
    return PriceIndex(ratios=MappingProxyType(ratios), reference=reference)
