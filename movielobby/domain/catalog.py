"""
Service du catalogue de films.

Ce module orchestre la validation des entrées, le calcul de pagination, la recherche et la
population/invalidation du cache de listing autour du dépôt de films.
"""

from __future__ import annotations

from typing import Any

import structlog

from movielobby.app.metrics import CACHE_HITS, CACHE_INVALIDATIONS, CACHE_MISSES
from movielobby.core.errors import bad_request, not_found
from movielobby.core.http_constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from movielobby.domain.entities import MOVIE_FIELDS, MovieUpdate
from movielobby.infra.cache import ResponseCache

LISTING_PATH = "/movies"

log = structlog.get_logger(__name__)


def _parse_positive(name: str, raw: Any, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError) as err:
        raise bad_request(f"Bad Request - Invalid pagination parameter: {name}") from err
    # Politique: page/limit < 1 sont ramenés à 1.
    return max(1, value)


def parse_pagination(page: Any = None, limit: Any = None) -> tuple[int, int]:
    """Convertit les paramètres bruts `page`/`limit` (défauts 1 et 10)."""
    return (
        _parse_positive("page", page, DEFAULT_PAGE),
        _parse_positive("limit", limit, DEFAULT_PAGE_SIZE),
    )


def listing_cache_key(page: int, limit: int) -> str:
    """Clé de cache d'une page de listing, partagée par le service et le middleware."""
    return ResponseCache.key(LISTING_PATH, {"page": page, "limit": limit})


class CatalogService:
    """Opérations du catalogue au-dessus d'un dépôt de films."""

    def __init__(
        self,
        repo,
        cache: ResponseCache,
        ttl_seconds: int = 60,
        invalidate_on_write: bool = True,
    ) -> None:
        self.repo = repo
        self.cache = cache
        self.ttl_seconds = ttl_seconds
        self.invalidate_on_write = invalidate_on_write

    def _after_write(self) -> None:
        if not self.invalidate_on_write:
            return
        purged = self.cache.invalidate_prefix(f"{LISTING_PATH}?")
        if purged:
            CACHE_INVALIDATIONS.inc(purged)

    def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Crée un film; les quatre champs doivent être présents et non vides."""
        missing = [f for f in MOVIE_FIELDS if not fields.get(f)]
        if missing:
            raise bad_request(
                "Bad Request - Missing required parameters", details={"missing": missing}
            )
        movie = self.repo.create({f: fields[f] for f in MOVIE_FIELDS})
        log.info("movie_created", movie_id=movie["id"])
        self._after_write()
        return movie

    def list(self, page: int, limit: int) -> list[dict[str, Any]]:
        """Retourne la page demandée, servie depuis le cache si possible."""
        key = listing_cache_key(page, limit)
        cached = self.cache.get(key)
        if cached is not None:
            CACHE_HITS.labels(layer="service").inc()
            return cached
        CACHE_MISSES.labels(layer="service").inc()
        generation = self.cache.generation
        movies = self.repo.list((page - 1) * limit, limit)
        # Une écriture survenue pendant la lecture rend la page obsolète: on ne la met pas en cache.
        if not self.cache.set_if_generation(key, movies, self.ttl_seconds, generation):
            log.debug("listing_not_cached", key=key)
        return movies

    def search(self, query: str | None) -> list[dict[str, Any]]:
        if not query:
            raise bad_request("Bad Request - Missing search query")
        return self.repo.search(query)

    def update(self, movie_id: str | None, patch: MovieUpdate) -> dict[str, Any]:
        """Applique une mise à jour partielle; seuls les champs fournis changent."""
        if not movie_id:
            raise bad_request("Bad Request - Missing movie ID")
        movie = self.repo.update(movie_id, patch)
        if movie is None:
            raise not_found("Not Found - Movie not found")
        log.info("movie_updated", movie_id=movie_id, fields=sorted(patch.changes()))
        self._after_write()
        return movie

    def delete(self, movie_id: str | None) -> None:
        if not movie_id:
            raise bad_request("Bad Request - Missing movie ID")
        if not self.repo.delete(movie_id):
            raise not_found("Not Found - Movie not found")
        log.info("movie_deleted", movie_id=movie_id)
        self._after_write()
