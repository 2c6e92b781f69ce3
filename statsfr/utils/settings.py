from __future__ import annotations
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv(override=False)

def _flag(key: str, default: str = "0") -> bool:
    return os.getenv(key, default).strip().lower() in ("1", "true", "yes")

@dataclass(frozen=True)
class Settings:
    app_name: str = "StatsFR Dashboard"
    offline: bool = _flag("STATSFR_OFFLINE")

    # HTTP
    http_timeout_ms: int = int(os.getenv("STATSFR_HTTP_TIMEOUT_MS", "10000"))
    http_cache_backend: str = os.getenv("STATSFR_HTTP_CACHE_BACKEND", "memory")
    http_cache_expire_seconds: int = int(os.getenv("STATSFR_HTTP_CACHE_EXPIRE_SECONDS", "3600"))

    # Cache mémoire (ms)
    inflation_ttl_ms: int = int(os.getenv("STATSFR_INFLATION_TTL_MS", str(15 * 60 * 1000)))
    demography_ttl_ms: int = int(os.getenv("STATSFR_DEMOGRAPHY_TTL_MS", str(24 * 60 * 60 * 1000)))

    # Codes INSEE
    nantes_code_insee: str = os.getenv("STATSFR_NANTES_CODE_INSEE", "44109")

    # Ressources data.gouv.fr
    population_resource_url: str | None = os.getenv(
        "NANTES_POPULATION_URL",
        "https://www.data.gouv.fr/fr/datasets/r/d2f400de-94d1-4db8-a2c1-9c88b34c878f",
    )
    age_groups_resource_url: str | None = os.getenv(
        "NANTES_AGE_GROUPS_URL",
        "https://www.data.gouv.fr/fr/datasets/r/f70a9162-2c3b-4d96-801e-d6c0d3e0b5dd",
    )
    inflation_resource_url: str | None = os.getenv(
        "FRANCE_INFLATION_URL",
        "https://www.data.gouv.fr/fr/datasets/r/eb387048-21d7-4e35-b79e-37f3a58cb93a",
    )
    datagouv_api: str = os.getenv("STATSFR_DATAGOUV_API", "https://www.data.gouv.fr/api/1")

    # Flags
    use_mock_fallback: bool = _flag("STATSFR_USE_MOCK_FALLBACK")
    debug_data_sources: bool = _flag("STATSFR_DEBUG_DATA_SOURCES")

    # Logs
    log_level: str = os.getenv("STATSFR_LOG_LEVEL", "INFO")
    log_file: str | None = os.getenv("STATSFR_LOG_FILE")

settings = Settings()
