"""Middleware de cache de réponses en amont du routage.

Sert directement, pour les routes GET déclarées cachables, une réponse déjà présente dans le cache
partagé. Le cache n'est consulté qu'après vérification du bearer token: une requête sans token
valide poursuit vers la route, qui produit le 401/403 attendu.
"""

from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from movielobby.api.deps import extract_bearer
from movielobby.app.metrics import CACHE_HITS, CACHE_MISSES
from movielobby.core.errors import APIError
from movielobby.domain.catalog import LISTING_PATH, listing_cache_key, parse_pagination


def _listing_key(request) -> str:
    page, limit = parse_pagination(
        request.query_params.get("page"), request.query_params.get("limit")
    )
    return listing_cache_key(page, limit)


# chemin -> construction de la clé à partir des seuls paramètres consommés par la route
CACHEABLE_ROUTES: dict[str, Callable] = {LISTING_PATH: _listing_key}


class ResponseCacheMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next: Callable):
        key_builder = CACHEABLE_ROUTES.get(request.url.path.rstrip("/") or "/")
        if request.method != "GET" or key_builder is None:
            return await call_next(request)

        container = request.app.state.container
        token = extract_bearer(request.headers.get("Authorization"))
        identity = container.tokens.verify(token) if token else None
        if identity is None:
            return await call_next(request)

        try:
            key = key_builder(request)
        except APIError:
            return await call_next(request)

        payload = container.cache.get(key)
        if payload is None:
            CACHE_MISSES.labels(layer="middleware").inc()
            response = await call_next(request)
            response.headers["X-Cache"] = "MISS"
            return response

        CACHE_HITS.labels(layer="middleware").inc()
        request.state.identity = identity
        return JSONResponse(payload, headers={"X-Cache": "HIT"})
