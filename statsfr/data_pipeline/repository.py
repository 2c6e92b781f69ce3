from __future__ import annotations
import copy
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, TypeVar

from statsfr.data_api.base import HttpClient
from statsfr.data_api.catalog import DatasetSpec, build_catalog, resource_url
from statsfr.data_api.insee import InseeClient
from statsfr.utils import Settings, settings, get_logger
from .cache import TtlCache
from .csv_parser import ParseResult, fetch_and_parse_csv, find_column
from .transforms import (
    FeltInflationPoint,
    InflationKPIs,
    SeriesChange,
    TimeseriesPoint,
    as_points,
    felt_inflation_proxy,
    get_kpis,
    growth_rate,
    series_change,
)
from .validate import (
    validate_age_groups,
    validate_cost_of_life,
    validate_foreign_population,
    validate_france_age_groups,
    validate_nantes_10_years,
    validate_nationalities,
    validate_series,
)

log = get_logger("data_pipeline.repository")

T = TypeVar("T")

# âge médian: valeurs fixes en attendant une source INSEE dédiée
NANTES_MEDIAN_AGE = 38.5
FRANCE_MEDIAN_AGE = 41.8

@dataclass(frozen=True)
class DemographicSnapshot:
    population: float
    median_age: float | None = None
    growth_rate: float | None = None

class DataRepository:
    """
    Accès aux jeux de données en cache-aside:
      cache.get(clé, ttl) -> hit: copie de l'entrée
                          -> miss: chargement -> validation -> cache.set -> copie
    Le cache est partagé entre sessions: l'appelant reçoit toujours une copie
    profonde et peut la modifier sans toucher l'entrée.
    Les erreurs de validation (pydantic.ValidationError) et de transport
    remontent telles quelles; rien n'est mis en cache dans ce cas.
    """
    def __init__(self, cache: TtlCache, insee: InseeClient | None = None, *,
                 http: HttpClient | None = None, cfg: Settings = settings) -> None:
        self.cache = cache
        self.insee = insee or InseeClient()
        self.http = http
        self.cfg = cfg
        self.catalog: dict[str, DatasetSpec] = build_catalog(cfg)

    def _read_through(self, spec: DatasetSpec, loader: Callable[[], Any],
                      validator: Callable[[Any], T], *, suffix: str | None = None) -> T:
        key = spec.cache_key(suffix)
        cached = self.cache.get(key, spec.ttl_ms)
        if cached is not None:
            log.debug(f"Cache hit: {key}")
            return copy.deepcopy(cached)

        log.info(f"Cache miss: {key} -> chargement ({spec.source})")
        try:
            validated = validator(loader())
        except Exception as e:
            log.error(f"Failed to load {spec.label} [{key}]: {e}")
            raise

        self.cache.set(key, validated)
        return copy.deepcopy(validated)

    # ---------------- Inflation ----------------

    def get_inflation_yoy_timeseries(self) -> list[TimeseriesPoint]:
        raw = self._read_through(self.catalog["inflation_yoy"], self.insee.fetch_inflation, validate_series)
        return as_points(raw)

    def get_felt_inflation_timeseries(self) -> list[FeltInflationPoint]:
        return felt_inflation_proxy(self.get_inflation_yoy_timeseries())

    def get_inflation_kpis(self) -> InflationKPIs:
        return get_kpis(self.get_inflation_yoy_timeseries())

    def get_last_update(self, today: date | None = None) -> date:
        return self.insee.last_update(today)

    # ---------------- Démographie communale ----------------

    def get_population_timeseries(self, code_commune: str | None = None) -> list[TimeseriesPoint]:
        code = code_commune or self.cfg.nantes_code_insee

        def load() -> list[dict[str, Any]]:
            return [{"date": str(r["year"]), "value": r["population"]} for r in self.insee.fetch_population(code)]

        raw = self._read_through(self.catalog["population"], load, validate_series, suffix=code)
        return as_points(raw)

    def get_age_group_shares_timeseries(self, code_commune: str | None = None) -> list[dict[str, Any]]:
        """Structure par âge estimée à partir des années de la série de population."""
        code = code_commune or self.cfg.nantes_code_insee

        def load() -> list[dict[str, Any]]:
            out = []
            for p in self.get_population_timeseries(code):
                year = int(p.date)
                out.append({
                    "date": p.date,
                    "g0_14": 18 if year < 2015 else 17 if year < 2020 else 16,
                    "g15_29": 22,
                    "g30_44": 21,
                    "g45_59": 20,
                    "g60plus": 21 if year < 2015 else 23 if year < 2020 else 25,
                })
            return out

        return self._read_through(self.catalog["age_groups"], load, validate_age_groups, suffix=code)

    def get_latest_snapshot(self, code_commune: str | None = None) -> DemographicSnapshot:
        series = self.get_population_timeseries(code_commune)
        if not series:
            raise ValueError("No population data available")
        return DemographicSnapshot(
            population=series[-1].value,
            median_age=NANTES_MEDIAN_AGE,
            growth_rate=growth_rate(series),
        )

    def get_nantes_10_years(self, start_year: int | None = None) -> dict[str, Any]:
        """Projection démonstrative (pas de source réelle) sur 10 ans; une entrée de cache par année de départ."""
        start = start_year or date.today().year

        def load() -> dict[str, Any]:
            years = [str(start + i) for i in range(10)]
            return {
                "population": [{"year": y, "value": 320_000 + i * 4_000} for i, y in enumerate(years)],
                "jobs": [{"year": y, "value": 150_000 + i * 2_000} for i, y in enumerate(years)],
            }

        return self._read_through(self.catalog["nantes_10_years"], load, validate_nantes_10_years, suffix=str(start))

    def get_cost_of_life(self) -> list[dict[str, Any]]:
        def load() -> list[dict[str, Any]]:
            return [
                {"category": "Logement", "value": 80},
                {"category": "Alimentation", "value": 70},
                {"category": "Transport", "value": 60},
                {"category": "Santé", "value": 50},
                {"category": "Éducation", "value": 40},
            ]

        return self._read_through(self.catalog["cost_of_life"], load, validate_cost_of_life)

    # ---------------- France ----------------

    def get_france_population_timeseries(self) -> list[TimeseriesPoint]:
        def load() -> list[dict[str, Any]]:
            return [{"date": r["date"], "value": r["population"]} for r in self.insee.fetch_france_population()]

        return as_points(self._read_through(self.catalog["france_population"], load, validate_series))

    def get_france_age_group_shares(self) -> list[dict[str, Any]]:
        return self._read_through(self.catalog["france_age_groups"],
                                  self.insee.fetch_france_age_group_shares, validate_france_age_groups)

    def get_france_population_change(self) -> SeriesChange | None:
        return series_change(self.get_france_population_timeseries())

    def get_latest_france_snapshot(self) -> DemographicSnapshot:
        series = self.get_france_population_timeseries()
        if not series:
            raise ValueError("No France population data available")
        return DemographicSnapshot(population=series[-1].value, median_age=FRANCE_MEDIAN_AGE,
                                   growth_rate=growth_rate(series))

    # ---------------- Population étrangère (Nantes) ----------------

    def get_nantes_foreign_population_timeseries(self) -> list[dict[str, Any]]:
        return self._read_through(self.catalog["nantes_foreign"],
                                  self.insee.fetch_nantes_foreign_population, validate_foreign_population)

    def get_nantes_top_nationalities(self) -> list[dict[str, Any]]:
        return self._read_through(self.catalog["nantes_nationalities"],
                                  self.insee.fetch_nantes_top_nationalities, validate_nationalities)

    def get_latest_nantes_foreign_stats(self) -> dict[str, Any]:
        series = self.get_nantes_foreign_population_timeseries()
        if not series:
            raise ValueError("No foreign population data available")
        return series[-1]

    # ---------------- Ressource CSV data.gouv.fr ----------------

    def get_population_from_resource(self) -> list[TimeseriesPoint]:
        """
        Série de population lue dans la ressource CSV configurée.
        Sans URL: valeurs INSEE publiées. En échec: repli sur ces mêmes valeurs
        si use_mock_fallback, sinon l'erreur remonte.
        """
        url = resource_url("population", self.cfg)
        code = self.cfg.nantes_code_insee

        def published() -> list[dict[str, Any]]:
            return [{"date": str(r["year"]), "value": r["population"]} for r in self.insee.fetch_population(code)]

        def load() -> list[dict[str, Any]]:
            if url is None:
                log.info("Pas d'URL de ressource population: valeurs publiées")
                return published()
            try:
                return validate_series(_population_rows(fetch_and_parse_csv(url, http=self.http)))
            except Exception as e:
                if not self.cfg.use_mock_fallback:
                    raise
                log.warning(f"Ressource population en échec, repli sur les valeurs publiées: {e}")
                return published()

        return as_points(self._read_through(self.catalog["population_resource"], load, validate_series))

    # ---------------- Cycle de vie ----------------

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            self.cache.clear_all()
        else:
            self.cache.clear(key)

    def dispose(self) -> None:
        self.cache.dispose()

def _label(v: Any) -> str:
    # 2013.0 -> "2013"
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v)

def _population_rows(data: ParseResult) -> list[dict[str, Any]]:
    """Colonnes repérées par nom partiel (year/annee, population/pop), sinon les deux premières."""
    if len(data.headers) < 2:
        raise ValueError("Could not find year and population columns in CSV")
    year_col = find_column(data, "year") or find_column(data, "annee") or data.headers[0]
    pop_col = find_column(data, "population") or find_column(data, "pop") or data.headers[1]
    log.info(f"Colonnes retenues: {year_col}, {pop_col}")
    return [{"date": _label(row.get(year_col)), "value": row.get(pop_col)} for row in data.rows]
