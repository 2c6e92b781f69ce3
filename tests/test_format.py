"""Tests for French number/date formatting helpers."""

from __future__ import annotations

from statsfr.utils.format import (
    NNBSP,
    format_compact_fr,
    format_date_month_year_fr,
    format_number_fr,
    format_percent_fr,
)


def test_format_number_fr() -> None:
    assert format_number_fr(1234567) == f"1{NNBSP}234{NNBSP}567"
    assert format_number_fr(1234.56, 1) == f"1{NNBSP}234,6"
    assert format_number_fr(0.3, 1) == "0,3"


def test_format_percent_fr() -> None:
    assert format_percent_fr(0.505) == f"50,5{NNBSP}%"


def test_format_date_month_year_fr() -> None:
    assert format_date_month_year_fr("2025-01") == "janv. 2025"
    assert format_date_month_year_fr("2023-08-15") == "août 2023"
    assert format_date_month_year_fr("2024") == "janv. 2024"
    assert format_date_month_year_fr("pas une date") == "pas une date"


def test_format_compact_fr() -> None:
    assert format_compact_fr(325800) == "325,8 k"
    assert format_compact_fr(69_080_000) == "69,1 M"
    assert format_compact_fr(950) == "950"
