from __future__ import annotations
from dataclasses import dataclass
from typing import Any

from statsfr.utils import Settings, settings, get_logger
from statsfr.data_pipeline.validate import DataGouvDataset, DataGouvResource
from .base import ApiError, HttpClient, fetch_json

log = get_logger("data_api.datagouv")

@dataclass(frozen=True)
class DatasetSummary:
    id: str
    title: str
    url: str
    resources_count: int
    description: str | None = None
    organization: str | None = None
    last_update: str | None = None

@dataclass(frozen=True)
class ResourceSummary:
    dataset_id: str
    dataset_title: str
    resource_id: str
    resource_title: str
    format: str
    url: str
    filesize: int | None = None
    last_modified: str | None = None

def _summary(ds: DataGouvDataset, *, truncate: int | None = None) -> DatasetSummary:
    desc = ds.description
    if desc is not None and truncate is not None:
        desc = desc[:truncate]
    return DatasetSummary(
        id=ds.id,
        title=ds.title,
        url=ds.page,
        resources_count=len(ds.resources or []),
        description=desc,
        organization=ds.organization.name if ds.organization else None,
        last_update=ds.last_update,
    )

class DataGouvClient:
    """Catalogue data.gouv.fr (API v1): recherche de jeux de données et de ressources."""

    # réponses du catalogue mises en cache HTTP 1 h
    REVALIDATE_SECONDS = 3600

    def __init__(self, http: HttpClient | None = None, *, cfg: Settings = settings) -> None:
        self.http = http or HttpClient(cfg=cfg)
        self.base = cfg.datagouv_api.rstrip("/")

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return fetch_json(f"{self.base}{path}", http=self.http, params=params, revalidate=self.REVALIDATE_SECONDS)

    def search_datasets(self, query: str, page: int = 1, page_size: int = 20) -> list[DatasetSummary]:
        log.info(f"Searching datasets: {query}")
        try:
            payload = self._get("/datasets/", {"q": query, "page": page, "page_size": page_size})
            items = (payload or {}).get("data") or []
            return [_summary(DataGouvDataset.model_validate(it), truncate=200) for it in items]
        except Exception as e:
            log.error(f"Error searching datasets: {e}")
            raise ApiError(f"Failed to search datasets: {e}") from e

    def get_dataset(self, dataset_id: str) -> tuple[DatasetSummary, list[ResourceSummary]]:
        log.info(f"Fetching dataset: {dataset_id}")
        try:
            ds = DataGouvDataset.model_validate(self._get(f"/datasets/{dataset_id}/"))
            resources = []
            for raw in ds.resources or []:
                res = DataGouvResource.model_validate(raw)
                resources.append(ResourceSummary(
                    dataset_id=ds.id,
                    dataset_title=ds.title,
                    resource_id=res.id,
                    resource_title=res.title,
                    format=res.format.upper(),
                    url=res.url,
                    filesize=res.filesize,
                    last_modified=res.last_modified,
                ))
            return _summary(ds), resources
        except Exception as e:
            log.error(f"Error fetching dataset: {e}")
            raise ApiError(f"Failed to fetch dataset: {e}") from e

    def search_resources(self, query: str, format: str | None = None) -> list[ResourceSummary]:
        """Ressources des 10 premiers jeux trouvés; un jeu en échec est ignoré (log)."""
        out: list[ResourceSummary] = []
        for ds in self.search_datasets(query, 1, 10):
            try:
                _, resources = self.get_dataset(ds.id)
            except ApiError as e:
                log.warning(f"Failed to fetch resources for dataset {ds.id}: {e}")
                continue
            if format:
                resources = [r for r in resources if r.format == format.upper()]
            out.extend(resources)
        return out
