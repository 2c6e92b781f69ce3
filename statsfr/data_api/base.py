# base.py

from __future__ import annotations
import concurrent.futures
import json as _json
from dataclasses import dataclass
from functools import lru_cache
from typing import Any
import requests
import requests_cache
from urllib3.exceptions import ReadTimeoutError

from statsfr.utils import Settings, settings, get_logger

log = get_logger("data_api.base")

DEFAULT_TIMEOUT_MS = 10_000

class ApiError(RuntimeError):
    pass

class HttpStatusError(ApiError):
    def __init__(self, message: str, *, status_code: int, url: str, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body

class FetchTimeoutError(ApiError):
    def __init__(self, url: str, timeout_ms: int) -> None:
        super().__init__(f"Request timeout after {timeout_ms}ms: {url}")
        self.url = url
        self.timeout_ms = timeout_ms

@dataclass(frozen=True)
class ApiResponse:
    url: str
    status_code: int
    from_cache: bool
    text: str

    def json(self) -> Any:
        return _json.loads(self.text)

def _is_read_timeout(exc: BaseException) -> bool:
    """requests enveloppe un ReadTimeoutError urllib3 survenu pendant le corps dans un ConnectionError."""
    seen: BaseException | None = exc
    while seen is not None:
        if isinstance(seen, ReadTimeoutError) or any(isinstance(a, ReadTimeoutError) for a in seen.args):
            return True
        seen = seen.__cause__ or seen.__context__
    return False

class HttpClient:
    """
    Session HTTP avec cache de réponses (requests-cache, backend mémoire par défaut):
    - échéance globale (10 s par défaut, en-têtes et corps), convertie en FetchTimeoutError
    - statut non-2xx -> HttpStatusError (code embarqué)
    - autre échec transport: l'exception requests remonte telle quelle
    - offline: lecture cache uniquement
    Aucun retry ici (voir data_api.retry).
    """
    def __init__(self, session: requests.Session | None = None, *, cfg: Settings = settings) -> None:
        self.cfg = cfg
        self.session = session or requests_cache.CachedSession(
            cache_name="statsfr_http_cache",
            backend=cfg.http_cache_backend,
            expire_after=cfg.http_cache_expire_seconds,
            allowable_methods=("GET",),
        )
        self._pool = concurrent.futures.ThreadPoolExecutor(max_workers=4, thread_name_prefix="statsfr-http")

    def request(self, method: str, url: str, *, headers: dict[str, str] | None = None,
                params: dict[str, Any] | None = None, timeout_ms: int | None = None,
                revalidate: int | None = None) -> ApiResponse:
        method = method.upper()
        headers = headers or {}
        params = params or {}
        timeout_ms = timeout_ms or self.cfg.http_timeout_ms

        kwargs: dict[str, Any] = {"headers": headers, "params": params, "timeout": timeout_ms / 1000}
        if isinstance(self.session, requests_cache.CachedSession):
            self.session.settings.only_if_cached = self.cfg.offline
            if revalidate is not None:
                kwargs["expire_after"] = revalidate

        # le timeout requests ne borne que chaque lecture socket; l'échéance globale
        # (en-têtes + corps) est tenue par le future
        future = self._pool.submit(self._send, method, url, kwargs)
        try:
            resp, text = future.result(timeout=timeout_ms / 1000)
        except concurrent.futures.TimeoutError as e:
            future.cancel()
            log.error(f"Timeout ({timeout_ms}ms) sur {url}")
            raise FetchTimeoutError(url, timeout_ms) from e
        except requests.exceptions.Timeout as e:
            log.error(f"Timeout ({timeout_ms}ms) sur {url}")
            raise FetchTimeoutError(url, timeout_ms) from e
        except requests.exceptions.ConnectionError as e:
            if not _is_read_timeout(e):
                raise
            log.error(f"Timeout ({timeout_ms}ms) pendant la lecture du corps: {url}")
            raise FetchTimeoutError(url, timeout_ms) from e

        from_cache = bool(getattr(resp, "from_cache", False))
        if not 200 <= resp.status_code < 300:
            body = (text or "").strip()
            log.error(f"Fetch error for {url}: HTTP {resp.status_code} | Body: {body[:500]}")
            raise HttpStatusError(
                f"HTTP {resp.status_code}: {resp.reason}",
                status_code=resp.status_code,
                url=url,
                body=body[:4000],
            )

        if from_cache:
            log.debug(f"Réponse servie depuis le cache HTTP: {url}")
        return ApiResponse(url=str(resp.url), status_code=resp.status_code, from_cache=from_cache, text=text)

    def _send(self, method: str, url: str, kwargs: dict[str, Any]) -> tuple[Any, str]:
        resp = self.session.request(method, url, **kwargs)
        # .text force la lecture complète du corps dans le worker
        return resp, resp.text

    def get_text(self, url: str, **kwargs: Any) -> str:
        return self.request("GET", url, **kwargs).text

@lru_cache(maxsize=1)
def default_client() -> HttpClient:
    return HttpClient()

def fetch_json(url: str, *, http: HttpClient | None = None, timeout_ms: int = DEFAULT_TIMEOUT_MS,
               headers: dict[str, str] | None = None, params: dict[str, Any] | None = None,
               revalidate: int | None = None) -> Any:
    """
    GET + décodage JSON. La validation de schéma est à la charge de l'appelant,
    avant toute mise en cache.
    """
    http = http or default_client()
    r = http.request("GET", url, headers={"Accept": "application/json", **(headers or {})},
                     params=params, timeout_ms=timeout_ms, revalidate=revalidate)
    return r.json()
