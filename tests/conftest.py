"""
Shared pytest fixtures for the stormnorm test suite.

Provides factories for raw storm records and a small monthly price index
(2011-10 = 100, 2011-11 = 200, reference 2011-11).
"""

from datetime import datetime
from itertools import count
from typing import List

import pytest

from stormnorm.models import PriceIndexEntry, RawEventRecord
from stormnorm.price_index import PriceIndex, build_index


@pytest.fixture
def make_raw_record():
    """
    Return a function that creates RawEventRecord objects with sensible defaults.

    Example:
        rec = make_raw_record(event_type="FLASH FLOOD", prop_dmg=5, prop_dmg_exp="K")
    """
    ids = count(1)

    def _make(**kwargs) -> RawEventRecord:
        defaults = {
            "event_id": str(next(ids)),
            "begin_date": datetime(2011, 11, 15),
            "event_type": "TORNADO",
            "prop_dmg": 0.0,
            "prop_dmg_exp": "",
            "crop_dmg": 0.0,
            "crop_dmg_exp": "",
            "fatalities": 0,
            "injuries": 0,
        }
        defaults.update(kwargs)
        return RawEventRecord(**defaults)

    return _make


@pytest.fixture
def price_entries() -> List[PriceIndexEntry]:
    return [
        PriceIndexEntry(year=2011, month=9, value=50.0),
        PriceIndexEntry(year=2011, month=10, value=100.0),
        PriceIndexEntry(year=2011, month=11, value=200.0),
    ]


@pytest.fixture
def price_index(price_entries) -> PriceIndex:
    return build_index(price_entries, 2011, 11)
