"""Tests for timeseries derivations (rolling mean, felt inflation, KPIs)."""

from __future__ import annotations

import random

import pytest

from statsfr.data_pipeline.transforms import (
    FELT_MAX,
    FELT_MIN,
    TimeseriesPoint,
    acceleration,
    as_points,
    felt_inflation_proxy,
    felt_to_frame,
    filter_last_months,
    get_kpis,
    growth_rate,
    latest_value,
    rolling_average,
    round1,
    series_change,
    to_frame,
    yoy_comparison,
)


def _series(values: list[float], start_year: int = 2022) -> list[TimeseriesPoint]:
    return [
        TimeseriesPoint(date=f"{start_year + i // 12}-{i % 12 + 1:02d}", value=v)
        for i, v in enumerate(values)
    ]


def test_round1_rounds_half_up() -> None:
    assert round1(3.25) == 3.3
    assert round1(-0.25) == -0.2
    assert round1(2.94) == 2.9


def test_rolling_average_two_point_scenario() -> None:
    series = as_points([{"date": "2022-01", "value": 2.9}, {"date": "2022-02", "value": 3.6}])
    out = rolling_average(series, 6)
    assert [p.date for p in out] == ["2022-01", "2022-02"]
    assert out[0].value == 2.9
    # moyenne 3.25, arrondie à une décimale
    assert out[1].value == 3.3


def test_rolling_average_is_left_truncated_trailing_mean() -> None:
    rng = random.Random(7)
    values = [round(rng.uniform(-2, 12), 1) for _ in range(40)]
    series = _series(values)
    for window in (1, 3, 6, 12):
        out = rolling_average(series, window)
        for i, p in enumerate(out):
            chunk = values[max(0, i - window + 1): i + 1]
            assert p.value == round1(sum(chunk) / len(chunk))


def test_rolling_average_rejects_bad_window() -> None:
    with pytest.raises(ValueError):
        rolling_average(_series([1.0]), 0)


def test_acceleration_first_difference() -> None:
    series = _series([1.0, 1.5, 1.2, 1.2])
    acc = acceleration(series)
    assert acc[0] == 0
    for i in range(1, len(series)):
        assert acc[i] == series[i].value - series[i - 1].value
    assert acceleration([]) == []


def test_felt_inflation_formula() -> None:
    series = _series([2.0, 3.0])
    out = felt_inflation_proxy(series)
    # point 0: 1.1 * (0.6*2 + 0.4*2 + 0) = 2.2
    assert out[0].felt == 2.2
    # point 1: memory=2.5, accel=+1 -> shock 0.3 ; 1.1 * (1.8 + 1.0 + 0.3) = 3.41
    assert out[1].felt == 3.4
    assert out[1].official == 3.0


def test_felt_inflation_negative_acceleration_is_damped() -> None:
    out = felt_inflation_proxy(_series([4.0, 2.0]))
    # memory=3.0, accel=-2 -> shock -0.2 ; 1.1 * (1.2 + 1.2 - 0.2) = 2.42
    assert out[1].felt == 2.4


def test_felt_inflation_is_clamped() -> None:
    high = felt_inflation_proxy(_series([30.0, 40.0]))
    low = felt_inflation_proxy(_series([-5.0, -8.0]))
    assert all(p.felt == FELT_MAX for p in high)
    assert all(p.felt == FELT_MIN for p in low)


def test_felt_inflation_always_within_bounds() -> None:
    rng = random.Random(11)
    values = [rng.uniform(-50, 50) for _ in range(60)]
    for p in felt_inflation_proxy(_series(values)):
        assert FELT_MIN <= p.felt <= FELT_MAX


def test_get_kpis_empty_series() -> None:
    kpis = get_kpis([])
    assert (kpis.latest_yoy, kpis.avg_12_months, kpis.peak_10_years) == (0, 0, 0)
    assert kpis.peak_date is None


def test_get_kpis_uses_last_twelve_points() -> None:
    values = [10.0] * 6 + [1.0] * 12
    kpis = get_kpis(_series(values))
    assert kpis.latest_yoy == 1.0
    assert kpis.avg_12_months == 1.0
    assert kpis.peak_10_years == 10.0
    assert kpis.peak_date == "2022-01"


def test_get_kpis_peak_tie_break_is_earliest_occurrence() -> None:
    series = _series([5.0, 6.2, 4.0, 6.2, 3.0])
    assert get_kpis(series).peak_date == "2022-02"


def test_get_kpis_short_series_average() -> None:
    kpis = get_kpis(_series([2.9, 3.6]))
    assert kpis.avg_12_months == 3.3
    assert kpis.latest_yoy == 3.6


def test_series_change() -> None:
    change = series_change(_series([66.4, 67.0, 69.08]))
    assert change is not None
    assert change.absolute == pytest.approx(2.68)
    assert change.percent == pytest.approx(2.68 / 66.4 * 100)
    assert series_change(_series([1.0])) is None
    assert series_change([]) is None


def test_growth_rate_and_latest_value() -> None:
    series = _series([100.0, 110.0])
    assert growth_rate(series) == pytest.approx(10.0)
    assert growth_rate(series[:1]) is None
    assert latest_value(series) == 110.0
    assert latest_value([]) is None


def test_filter_last_months_and_yoy_comparison() -> None:
    series = _series([float(i) for i in range(30)])
    assert [p.value for p in filter_last_months(series, 3)] == [27.0, 28.0, 29.0]
    assert filter_last_months(series, 0) == list(series)

    cmp = yoy_comparison(series)
    assert cmp is not None
    assert cmp["current_12_months"][0].value == 18.0
    assert cmp["previous_12_months"][0].value == 6.0
    assert yoy_comparison(series[:23]) is None


def test_to_frame_indexes_by_month_start() -> None:
    df = to_frame(_series([1.0, 2.0]), "ipc")
    assert list(df.columns) == ["ipc"]
    assert str(df.index[1].date()) == "2022-02-01"

    yearly = to_frame([TimeseriesPoint("2023", 1.0)])
    assert str(yearly.index[0].date()) == "2023-01-01"
    assert to_frame([]).empty


def test_felt_to_frame_columns() -> None:
    df = felt_to_frame(felt_inflation_proxy(_series([2.0, 3.0])))
    assert list(df.columns) == ["official", "felt"]
    assert len(df) == 2
