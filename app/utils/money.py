"""
Numeric coercion and EUR <-> UGX conversion helpers.

Every figure in the dataset passes through ``to_number`` before it is used
in arithmetic, so raw inputs may be numbers, numeric strings, ``None`` or
garbage without the calculations ever raising.
"""

from __future__ import annotations

import math
import re
from typing import Any

from app.utils.constants import EXCHANGE_RATE

_NUMBER_NOISE = re.compile(r"[,\s_]")


def is_formula(value: Any) -> bool:
    """Return ``True`` for spreadsheet-style formula strings (``"=D3/3"``)."""
    return isinstance(value, str) and value.startswith("=")


def parse_number(value: Any) -> float | None:
    """Parse *value* to a finite float, or ``None`` when it is not a number.

    Thousands separators and surrounding whitespace are ignored, so
    ``"1,200,000"`` parses to ``1200000.0``.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = _NUMBER_NOISE.sub("", str(value).strip())
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce *value* to float, falling back to *default* when it does not parse."""
    number = parse_number(value)
    return default if number is None else number


def eur_to_ugx(amount: Any, rate: float = EXCHANGE_RATE) -> float:
    """Convert a EUR amount to UGX."""
    return to_number(amount) * rate


def ugx_to_eur(amount: Any, rate: float = EXCHANGE_RATE) -> float:
    """Convert a UGX amount to EUR.

    Raises:
        ValueError: If *rate* is not positive.
    """
    if rate <= 0:
        raise ValueError(f"Exchange rate must be positive, got {rate!r}")
    return to_number(amount) / rate
