from __future__ import annotations
from dataclasses import dataclass
from typing import Literal

from statsfr.utils import Settings, settings

Source = Literal["insee", "mock", "datagouv"]
ResourceKind = Literal["population", "age_groups", "inflation"]

@dataclass(frozen=True)
class DatasetSpec:
    key: str            # clé du cache mémoire
    label: str
    source: Source
    ttl_ms: int

    def cache_key(self, suffix: str | None = None) -> str:
        return f"{self.key}-{suffix}" if suffix else self.key

def build_catalog(cfg: Settings = settings) -> dict[str, DatasetSpec]:
    return {
        "inflation_yoy": DatasetSpec("france-inflation-yoy", "Inflation IPC (FR, glissement annuel)", "insee", cfg.inflation_ttl_ms),
        "population": DatasetSpec("nantes-population", "Population communale (INSEE)", "insee", cfg.demography_ttl_ms),
        "age_groups": DatasetSpec("nantes-age-groups", "Structure par âge (estimée)", "insee", cfg.demography_ttl_ms),
        "nantes_10_years": DatasetSpec("nantes-10-years", "Projection Nantes 10 ans", "mock", cfg.demography_ttl_ms),
        "cost_of_life": DatasetSpec("cost-of-life", "Coût de la vie par poste", "mock", cfg.demography_ttl_ms),
        "france_population": DatasetSpec("france-population", "Population France (millions)", "insee", cfg.demography_ttl_ms),
        "france_age_groups": DatasetSpec("france-age-groups", "Répartition par âge France", "insee", cfg.demography_ttl_ms),
        "nantes_foreign": DatasetSpec("nantes-foreign-population", "Population étrangère et immigrée (Nantes)", "insee", cfg.demography_ttl_ms),
        "nantes_nationalities": DatasetSpec("nantes-top-nationalities", "Principales nationalités (Nantes)", "insee", cfg.demography_ttl_ms),
        "population_resource": DatasetSpec("nantes-population-resource", "Population (ressource CSV data.gouv.fr)", "datagouv", cfg.demography_ttl_ms),
    }

DATASETS: dict[str, DatasetSpec] = build_catalog()

def resource_url(kind: ResourceKind, cfg: Settings = settings) -> str | None:
    urls = {
        "population": cfg.population_resource_url,
        "age_groups": cfg.age_groups_resource_url,
        "inflation": cfg.inflation_resource_url,
    }
    return urls.get(kind) or None

def has_resource_url(kind: ResourceKind, cfg: Settings = settings) -> bool:
    return resource_url(kind, cfg) is not None
