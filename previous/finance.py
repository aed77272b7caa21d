"""Money helpers working on integer cents."""

from __future__ import annotations

import math
import re

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT_RE = re.compile(r"[+-]?[0-9]+")


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def _trunc_rem(a: int, b: int) -> int:
    return a - b * _trunc_div(a, b)


def _round_half_away(x: float) -> float:
    whole = math.trunc(x)
    if abs(x - whole) >= 0.5:
        whole += math.copysign(1, x)
    return whole


def _atoi(text: str) -> int:
    if _INT_RE.fullmatch(text) is None:
        return 0
    return min(max(int(text), _INT64_MIN), _INT64_MAX)


def split_int64(n: int) -> tuple[str, str]:
    """Split cents into whole and two-digit fractional strings: 123456 -> ("1234", "56")."""
    return str(_trunc_div(n, 100)), f"{_trunc_rem(n, 100):02d}"


def int64_to_money(value: int) -> str:
    """Format cents as a decimal amount with two places."""
    return f"{value / 100.0:.2f}".replace(",", ".")


def money_to_int64(text: str) -> int:
    """Parse a decimal amount into cents; unparseable input gives 0."""
    if "." not in text:
        text += ".00"
    elif text.count(".") == 1 and len(text.split(".")[1]) == 1:
        text += "0"
    digits = text.replace(".", "").replace(",", "").replace(" ", "")
    return _atoi(digits)


def round_up_to_ceiling(value: int) -> int:
    """Round cents up to a whole unit."""
    remainder = _trunc_rem(value, 100)
    return value if remainder == 0 else value + 100 - remainder


def round_down_to_floor(value: int) -> int:
    """Round cents down to a whole unit."""
    remainder = _trunc_rem(value, 100)
    return value if remainder == 0 else value - remainder


def multiply_by_percentage_s64(amount: int, percentage: float) -> int:
    """``percentage`` percent of ``amount`` cents, rounded to whole cents."""
    result = (amount / 100) * (percentage / 100)
    return int(_round_half_away(result * 100))


def multiply_by_percentage_f64(amount: int, percentage: float) -> float:
    """``amount`` cents as units, multiplied by ``percentage``."""
    return (amount / 100) * percentage


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def process_discount(discount: str) -> float:
    """Parse a discount percentage, clamped to 0..100; bad input gives 0."""
    value = _parse_float(discount)
    if value < 0:
        return 0.0
    if value > 100:
        return 100.0
    return value