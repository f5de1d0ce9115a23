"""Cache de réponses en mémoire à durée de vie bornée.

Les entrées sont indexées par une clé normalisée (chemin + paramètres consommés par le handler).
Une entrée expirée est logiquement absente: l'éviction est paresseuse, aucune tâche de purge.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import structlog

log = structlog.get_logger(__name__)


@dataclass(slots=True)
class CacheEntry:
    payload: Any
    expires_at: float


class ResponseCache:
    """Mémoïsation thread-safe des réponses de lecture réussies."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, CacheEntry] = {}
        self._generation = 0

    @staticmethod
    def key(path: str, params: Mapping[str, Any] | None = None) -> str:
        """Normalise chemin + paramètres (triés) en une clé déterministe."""
        path = "/" + path.strip("/")
        if not params:
            return path
        return f"{path}?{urlencode(sorted((str(k), str(v)) for k, v in params.items()))}"

    def get(self, key: str) -> Any | None:
        """Retourne la charge utile, ou None (miss) si absente ou expirée."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._store[key]
                log.debug("cache_expired", key=key)
                return None
            return entry.payload

    def set(self, key: str, payload: Any, ttl_seconds: float) -> None:
        """Stocke (ou écrase) l'entrée avec expiration = maintenant + ttl."""
        with self._lock:
            self._store[key] = CacheEntry(payload=payload, expires_at=self._clock() + ttl_seconds)

    @property
    def generation(self) -> int:
        """Compteur incrémenté à chaque invalidation."""
        with self._lock:
            return self._generation

    def set_if_generation(
        self, key: str, payload: Any, ttl_seconds: float, generation: int
    ) -> bool:
        """Stocke l'entrée seulement si aucune invalidation n'a eu lieu depuis `generation`.

        Une lecture du dépôt commencée avant une écriture ne doit pas repeupler le cache avec
        un état antérieur à cette écriture.
        """
        with self._lock:
            if generation != self._generation:
                return False
            self._store[key] = CacheEntry(payload=payload, expires_at=self._clock() + ttl_seconds)
            return True

    def invalidate_prefix(self, prefix: str) -> int:
        """Supprime toutes les entrées dont la clé commence par `prefix`."""
        with self._lock:
            self._generation += 1
            doomed = [k for k in self._store if k.startswith(prefix)]
            for k in doomed:
                del self._store[k]
        if doomed:
            log.debug("cache_invalidated", prefix=prefix, count=len(doomed))
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._generation += 1
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
