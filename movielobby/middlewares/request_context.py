"""Middleware Starlette de contexte de requête.

Ce module implémente un middleware qui attribue (ou propage) un identifiant de requête, le lie aux
logs structlog, mesure la durée de traitement et alimente les métriques HTTP.
"""

import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from movielobby.app.metrics import REQUEST_COUNT, REQUEST_LATENCY, normalize_route

log = structlog.get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware pour l'identifiant de requête, le temps de traitement et le log d'accès.

    Ajoute les en-têtes `X-Request-ID` et `X-Process-Time-ms` sur chaque réponse.
    """

    def __init__(
        self,
        app: ASGIApp,
        header_name: str = "X-Request-ID",
        timing_header: str = "X-Process-Time-ms",
    ) -> None:
        """Initialise le middleware avec les noms d'en-têtes spécifiés.

        Args:
            app: Application ASGI à wrapper.
            header_name: Nom de l'en-tête HTTP pour l'ID de requête.
            timing_header: Nom de l'en-tête HTTP pour le temps de traitement.
        """
        super().__init__(app)
        self.header_name = header_name
        self.timing_header = timing_header

    async def dispatch(self, request, call_next: Callable):
        """Traite une requête en liant son identifiant au contexte de log.

        Args:
            request: Requête HTTP entrante.
            call_next: Fonction pour appeler le middleware suivant.

        Returns:
            Response: Réponse HTTP avec les en-têtes d'identifiant et de durée.
        """
        request_id = request.headers.get(self.header_name) or str(uuid4())
        request.state.request_id = request_id
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        route = normalize_route(request.url.path)
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        REQUEST_COUNT.labels(
            method=request.method, route=route, status=str(response.status_code)
        ).inc()
        REQUEST_LATENCY.labels(route=route).observe(elapsed)
        log.info(
            "request_completed",
            method=request.method,
            route=route,
            status=response.status_code,
            duration_ms=int(elapsed * 1000),
        )
        response.headers[self.header_name] = request_id
        response.headers[self.timing_header] = str(int(elapsed * 1000))
        return response
