# statsfr/data_pipeline/transforms.py
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping, Sequence

import pandas as pd

from statsfr.utils.time import to_month_start_index

# Inflation ressentie: coefficients historiques du tableau de bord (origine non documentée),
# ne pas modifier sans validation produit.
FELT_WEIGHT_CURRENT = 0.6
FELT_WEIGHT_MEMORY = 0.4
FELT_SHOCK_UP = 0.3
FELT_SHOCK_DOWN = 0.1
FELT_PESSIMISM_BIAS = 1.1
FELT_MIN = 0.0
FELT_MAX = 15.0
FELT_MEMORY_MONTHS = 6


@dataclass(frozen=True)
class TimeseriesPoint:
    date: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, m: Mapping[str, Any]) -> "TimeseriesPoint":
        return cls(date=str(m["date"]), value=float(m["value"]))


@dataclass(frozen=True)
class FeltInflationPoint:
    date: str
    official: float
    felt: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class InflationKPIs:
    latest_yoy: float
    avg_12_months: float
    peak_10_years: float
    peak_date: str | None = None


@dataclass(frozen=True)
class SeriesChange:
    absolute: float
    percent: float


def round1(x: float) -> float:
    """Arrondi à 1 décimale, demi vers +inf (3.25 -> 3.3, -0.25 -> -0.2)."""
    return math.floor(x * 10 + 0.5) / 10


def as_points(series: Iterable[TimeseriesPoint | Mapping[str, Any]]) -> list[TimeseriesPoint]:
    return [p if isinstance(p, TimeseriesPoint) else TimeseriesPoint.from_mapping(p) for p in series]


def rolling_average(series: Sequence[TimeseriesPoint], window_months: int) -> list[TimeseriesPoint]:
    """
    Moyenne glissante arrière tronquée à gauche: le point i moyenne
    series[max(0, i-window+1) .. i]; les premiers points ont une fenêtre plus courte.
    """
    if window_months < 1:
        raise ValueError(f"window_months doit être >= 1 (reçu {window_months})")

    out: list[TimeseriesPoint] = []
    for i, p in enumerate(series):
        window = series[max(0, i - window_months + 1): i + 1]
        avg = sum(w.value for w in window) / len(window)
        out.append(TimeseriesPoint(date=p.date, value=round1(avg)))
    return out


def acceleration(series: Sequence[TimeseriesPoint]) -> list[float]:
    if not series:
        return []
    return [0.0] + [series[i].value - series[i - 1].value for i in range(1, len(series))]


def felt_inflation_proxy(series: Sequence[TimeseriesPoint]) -> list[FeltInflationPoint]:
    """
    Indicateur ludique (non officiel):
      felt = 1.1 * (0.6 * courant + 0.4 * moyenne_6m + choc)
      choc = accel * 0.3 si accel > 0, sinon accel * 0.1
    borné à [0, 15], arrondi à 1 décimale.
    """
    memory = rolling_average(series, FELT_MEMORY_MONTHS)
    accel = acceleration(series)

    out: list[FeltInflationPoint] = []
    for p, m, a in zip(series, memory, accel):
        shock = a * FELT_SHOCK_UP if a > 0 else a * FELT_SHOCK_DOWN
        felt = FELT_PESSIMISM_BIAS * (FELT_WEIGHT_CURRENT * p.value + FELT_WEIGHT_MEMORY * m.value + shock)
        felt = max(FELT_MIN, min(felt, FELT_MAX))
        out.append(FeltInflationPoint(date=p.date, official=p.value, felt=round1(felt)))
    return out


def get_kpis(series: Sequence[TimeseriesPoint]) -> InflationKPIs:
    if not series:
        return InflationKPIs(latest_yoy=0.0, avg_12_months=0.0, peak_10_years=0.0, peak_date=None)

    latest = series[-1].value
    last12 = series[-12:]
    avg12 = sum(p.value for p in last12) / len(last12)

    # premier point atteignant le max (départage: occurrence la plus ancienne)
    peak = max(p.value for p in series)
    peak_point = next(p for p in series if p.value == peak)

    return InflationKPIs(
        latest_yoy=round1(latest),
        avg_12_months=round1(avg12),
        peak_10_years=round1(peak),
        peak_date=peak_point.date,
    )


def series_change(series: Sequence[TimeseriesPoint]) -> SeriesChange | None:
    if len(series) < 2:
        return None
    first = series[0].value
    absolute = series[-1].value - first
    return SeriesChange(absolute=absolute, percent=absolute / first * 100)


def growth_rate(series: Sequence[TimeseriesPoint]) -> float | None:
    """Variation (%) du dernier point par rapport au précédent."""
    if len(series) < 2:
        return None
    prev, last = series[-2].value, series[-1].value
    return (last - prev) / prev * 100


def latest_value(series: Sequence[TimeseriesPoint]) -> float | None:
    return series[-1].value if series else None


def filter_last_months(series: Sequence[TimeseriesPoint], months: int) -> list[TimeseriesPoint]:
    """Les n derniers points; n = 0 renvoie la série entière."""
    return list(series[-months:])


def yoy_comparison(series: Sequence[TimeseriesPoint]) -> dict[str, list[TimeseriesPoint]] | None:
    if len(series) < 24:
        return None
    return {
        "current_12_months": list(series[-12:]),
        "previous_12_months": list(series[-24:-12]),
    }


def to_frame(series: Sequence[TimeseriesPoint], value_name: str = "value") -> pd.DataFrame:
    """DataFrame indexé par début de mois (colonne `value_name`), pour l'affichage."""
    if not series:
        return pd.DataFrame(columns=[value_name], index=pd.DatetimeIndex([], name="date"))
    df = pd.DataFrame({value_name: [p.value for p in series]}, index=to_month_start_index([p.date for p in series]))
    df.index.name = "date"
    return df


def felt_to_frame(points: Sequence[FeltInflationPoint]) -> pd.DataFrame:
    if not points:
        return pd.DataFrame(columns=["official", "felt"], index=pd.DatetimeIndex([], name="date"))
    df = pd.DataFrame(
        {"official": [p.official for p in points], "felt": [p.felt for p in points]},
        index=to_month_start_index([p.date for p in points]),
    )
    df.index.name = "date"
    return df
