"""
Magnitude decoder
=================

Storm damage is stored as a magnitude plus a one-character scale code,
e.g. (25.0, "K") == 25,000. Codes outside `SCALE_CODES` ("", "+", "-",
"?", digits, ...) cannot be decoded: the result is `None` ("missing"),
not an exception and not zero. An unreadable magnitude (NaN) is missing
too.

Two different "sum" rules apply to missing values:
- `add_damages`: property + crop for ONE record. Missing is contagious.
- `sum_present`: a group total. Missing values are skipped, and a group
  with nothing but missing values sums to 0.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Iterable, Mapping, Optional
import math

# Case-sensitive: "b" is not a known code, only "B".
SCALE_CODES: Mapping[str, float] = MappingProxyType({
    "h": 1e2, "H": 1e2,
    "k": 1e3, "K": 1e3,
    "m": 1e6, "M": 1e6,
    "B": 1e9,
})


def decode(magnitude: float, scale_code: object) -> Optional[float]:
    """Convert (magnitude, scale_code) into a monetary value, or None."""
    if magnitude is None or math.isnan(magnitude):
        return None
    if magnitude == 0:
        return 0.0
    multiplier = SCALE_CODES.get(scale_code) if isinstance(scale_code, str) else None
    if multiplier is None:
        return None
    return magnitude * multiplier


def add_damages(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None or b is None:
        return None
    return a + b


def sum_present(values: Iterable[Optional[float]]) -> float:
    return float(sum(v for v in values if v is not None))
