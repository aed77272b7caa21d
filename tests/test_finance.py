import pytest

from previous.finance import (
    int64_to_money,
    money_to_int64,
    multiply_by_percentage_f64,
    multiply_by_percentage_s64,
    process_discount,
    round_down_to_floor,
    round_up_to_ceiling,
    split_int64,
)


def test_tax():
    result = multiply_by_percentage_s64(15345, 8.625)
    assert result == 1324
    assert int64_to_money(result) == "13.24"


def test_split_int64():
    assert split_int64(123456) == ("1234", "56")
    assert split_int64(105) == ("1", "05")
    assert split_int64(-12345) == ("-123", "-45")


@pytest.mark.parametrize(
    "text,cents",
    [("12", 1200), ("12.5", 1250), ("12.34", 1234), ("1,234.56", 123456), ("1 000", 100000), ("abc", 0)],
)
def test_money_to_int64(text, cents):
    assert money_to_int64(text) == cents


@pytest.mark.parametrize("cents", [0, 1, 99, 100, 1324, 987654])
def test_money_round_trip(cents):
    assert money_to_int64(int64_to_money(cents)) == cents


def test_rounding():
    assert round_up_to_ceiling(1201) == 1300
    assert round_up_to_ceiling(1200) == 1200
    assert round_down_to_floor(1299) == 1200
    assert round_down_to_floor(1200) == 1200


def test_multiply_f64():
    assert multiply_by_percentage_f64(200, 0.5) == pytest.approx(1.0)


def test_multiply_s64_rounds_half_away_from_zero():
    assert multiply_by_percentage_s64(100, 0.5) == 1
    assert multiply_by_percentage_s64(-100, 0.5) == -1


@pytest.mark.parametrize("text,expected", [("15", 15.0), ("-3", 0.0), ("150", 100.0), ("x", 0.0), (" 5", 0.0)])
def test_process_discount(text, expected):
    assert process_discount(text) == expected