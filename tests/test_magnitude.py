"""Tests for the magnitude decoder and the two missing-value sum rules."""

import pytest

from stormnorm.magnitude import SCALE_CODES, add_damages, decode, sum_present


@pytest.mark.parametrize("code", ["K", "M", "B", "h", "", "?", "+", "-", "0", "5", "b", None])
def test_zero_magnitude_is_zero_for_any_code(code):
    assert decode(0, code) == 0


@pytest.mark.parametrize("code, multiplier", [
    ("h", 100), ("H", 100), ("k", 1000), ("K", 1000),
    ("m", 1e6), ("M", 1e6), ("B", 1e9),
])
def test_known_codes_multiply(code, multiplier):
    assert decode(2.5, code) == 2.5 * multiplier


@pytest.mark.parametrize("code", ["?", "", "+", "-", "0", "7", "b", "KK", None])
def test_unknown_code_with_nonzero_magnitude_is_missing(code):
    assert decode(3, code) is None


@pytest.mark.parametrize("code", ["K", "B", "?", ""])
def test_nan_magnitude_is_missing(code):
    assert decode(float("nan"), code) is None


def test_none_magnitude_is_missing():
    assert decode(None, "K") is None


def test_lowercase_b_is_not_billion():
    assert "b" not in SCALE_CODES
    assert decode(1, "b") is None


def test_scale_table_is_read_only():
    with pytest.raises(TypeError):
        SCALE_CODES["T"] = 1e12


def test_add_damages_missing_is_contagious():
    assert add_damages(5000.0, 0.0) == 5000.0
    assert add_damages(None, 10.0) is None
    assert add_damages(10.0, None) is None
    assert add_damages(None, None) is None


def test_sum_present_skips_missing():
    assert sum_present([1.0, None, 2.5]) == 3.5


def test_sum_present_all_missing_is_zero():
    assert sum_present([None, None]) == 0
    assert sum_present([]) == 0
