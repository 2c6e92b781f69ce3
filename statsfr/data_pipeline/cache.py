from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable

from statsfr.utils.logger import get_logger

log = get_logger("data_pipeline.cache")

DEFAULT_TTL_MS = 60_000


@dataclass
class CacheEntry:
    timestamp: float
    payload: Any


class TtlCache:
    """
    Cache mémoire clé -> valeur, expiration paresseuse:
    - set: horodate et écrase l'entrée existante
    - get: renvoie la valeur si âge <= ttl, sinon supprime l'entrée et renvoie None
    - pas d'éviction par capacité ni de thread de nettoyage
    Les pages Streamlit tournent dans plusieurs threads: chaque opération prend le verrou.
    """
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._disposed = False

    def _now_ms(self) -> float:
        return self._clock() * 1000.0

    def get(self, key: str, ttl_ms: int = DEFAULT_TTL_MS) -> Any | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None

            age = self._now_ms() - entry.timestamp
            if age > ttl_ms:
                del self._store[key]
                log.debug(f"Cache expiré: {key} (age={age:.0f}ms > ttl={ttl_ms}ms)")
                return None

            return entry.payload

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            if self._disposed:
                raise RuntimeError("TtlCache fermé: set() impossible après dispose().")
            self._store[key] = CacheEntry(timestamp=self._now_ms(), payload=value)

    def clear(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)

    def clear_all(self) -> None:
        with self._lock:
            self._store.clear()

    def dispose(self) -> None:
        with self._lock:
            self._store.clear()
            self._disposed = True

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store
