"""
Métriques Prometheus pour l'application.

Ce module définit les métriques Prometheus du service de catalogue (requêtes HTTP, cache de
réponses, rejets d'authentification) et expose la route `/metrics`.
"""

from fastapi import APIRouter
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.responses import Response

metrics_router = APIRouter(tags=["metrics"])

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

CACHE_HITS = Counter(
    "response_cache_hits_total", "Responses served from the cache", ["layer"]
)
CACHE_MISSES = Counter(
    "response_cache_misses_total", "Cache lookups that missed", ["layer"]
)
CACHE_INVALIDATIONS = Counter(
    "response_cache_invalidations_total", "Cache entries purged after a write"
)

AUTH_REJECTIONS = Counter(
    "auth_rejections_total", "Requests rejected by the auth guards", ["reason"]
)


def normalize_route(path: str) -> str:
    """Réduit les chemins `/movies/{id}` à un label de faible cardinalité."""
    parts = [p for p in path.split("/") if p]
    if len(parts) == 2 and parts[0] == "movies" and parts[1] != "search":
        return "/movies/{id}"
    return "/" + "/".join(parts)


@metrics_router.get("/metrics")
def metrics() -> Response:
    """Expose les métriques au format texte Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
