"""Tests for numeric coercion and currency conversion helpers."""

from __future__ import annotations

import math

import pytest

from app.utils.money import eur_to_ugx, is_formula, parse_number, to_number, ugx_to_eur


class TestParseNumber:
    def test_numbers_pass_through(self) -> None:
        assert parse_number(5) == 5.0
        assert parse_number(2.5) == 2.5

    def test_thousands_separators(self) -> None:
        """Commas, spaces and underscores are ignored."""
        assert parse_number("1,200,000") == 1200000.0
        assert parse_number(" 45 000 ") == 45000.0

    def test_garbage_is_none(self) -> None:
        assert parse_number("abc") is None
        assert parse_number("") is None
        assert parse_number(None) is None

    def test_non_finite_is_none(self) -> None:
        assert parse_number(math.inf) is None
        assert parse_number("nan") is None


class TestToNumber:
    def test_default_on_failure(self) -> None:
        assert to_number("n/a") == 0.0
        assert to_number(None, default=-1.0) == -1.0

    def test_negative_string(self) -> None:
        assert to_number("-23000") == -23000.0


class TestConversion:
    def test_eur_to_ugx(self) -> None:
        assert eur_to_ugx(70, 4100) == pytest.approx(287000)

    def test_ugx_to_eur(self) -> None:
        assert ugx_to_eur(410000, 4100) == pytest.approx(100)

    def test_conversion_coerces_strings(self) -> None:
        assert eur_to_ugx("70", 4100) == pytest.approx(287000)

    def test_non_positive_rate_rejected(self) -> None:
        with pytest.raises(ValueError):
            ugx_to_eur(100, 0)


def test_is_formula() -> None:
    assert is_formula("=D3/3")
    assert not is_formula("D3/3")
    assert not is_formula(200000)
