# statsfr/data_pipeline/validate.py
from __future__ import annotations

from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictStr, TypeAdapter


def _reject_text(v: Any) -> Any:
    # "2.5" ou True ne sont pas des nombres
    if isinstance(v, (str, bool)):
        raise ValueError("nombre attendu")
    return v


Number = Annotated[float, BeforeValidator(_reject_text)]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class TimeseriesPointModel(_Frozen):
    date: StrictStr
    value: Number


class YearValueModel(_Frozen):
    year: StrictStr
    value: Number


class Nantes10YearsModel(_Frozen):
    population: List[YearValueModel]
    jobs: List[YearValueModel]


class CostOfLifeCategoryModel(_Frozen):
    category: StrictStr
    value: Number


class AgeGroupSharesModel(_Frozen):
    date: StrictStr
    g0_14: Number
    g15_29: Number
    g30_44: Number
    g45_59: Number
    g60plus: Number


class FranceAgeGroupSharesModel(_Frozen):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    year: int
    date: StrictStr
    g0_19: Number = Field(..., alias="0-19")
    g20_39: Number = Field(..., alias="20-39")
    g40_59: Number = Field(..., alias="40-59")
    g60_74: Number = Field(..., alias="60-74")
    g75plus: Number = Field(..., alias="75+")


class ForeignPopulationModel(_Frozen):
    year: int
    date: StrictStr
    total_population: Number
    foreigners: Number
    foreigners_percent: Number
    immigrants: Number
    immigrants_percent: Number


class NationalityBreakdownModel(_Frozen):
    year: int
    nationality: StrictStr
    population: Number
    percent_of_foreigners: Number
    percent_of_total: Number


class DataGouvOrganization(BaseModel):
    name: str


class DataGouvDataset(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    page: str
    resources: Optional[List[Any]] = None
    organization: Optional[DataGouvOrganization] = None
    last_update: Optional[str] = None


class DataGouvResource(BaseModel):
    id: str
    title: str
    format: str
    url: str
    filesize: Optional[int] = None
    last_modified: Optional[str] = None


_SERIES = TypeAdapter(List[TimeseriesPointModel])
_AGE_GROUPS = TypeAdapter(List[AgeGroupSharesModel])
_FRANCE_AGE_GROUPS = TypeAdapter(List[FranceAgeGroupSharesModel])
_COST = TypeAdapter(List[CostOfLifeCategoryModel])
_FOREIGN = TypeAdapter(List[ForeignPopulationModel])
_NATIONALITIES = TypeAdapter(List[NationalityBreakdownModel])


def validate_series(data: Any) -> list[dict[str, Any]]:
    """Lève pydantic.ValidationError si la forme ne correspond pas; sinon liste de {date, value}."""
    return [p.model_dump() for p in _SERIES.validate_python(data)]


def validate_age_groups(data: Any) -> list[dict[str, Any]]:
    return [a.model_dump() for a in _AGE_GROUPS.validate_python(data)]


def validate_france_age_groups(data: Any) -> list[dict[str, Any]]:
    return [a.model_dump(by_alias=True) for a in _FRANCE_AGE_GROUPS.validate_python(data)]


def validate_nantes_10_years(data: Any) -> dict[str, Any]:
    return Nantes10YearsModel.model_validate(data).model_dump()


def validate_cost_of_life(data: Any) -> list[dict[str, Any]]:
    return [c.model_dump() for c in _COST.validate_python(data)]


def validate_foreign_population(data: Any) -> list[dict[str, Any]]:
    return [f.model_dump() for f in _FOREIGN.validate_python(data)]


def validate_nationalities(data: Any) -> list[dict[str, Any]]:
    return [n.model_dump() for n in _NATIONALITIES.validate_python(data)]
