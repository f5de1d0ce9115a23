"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : conteneur, middlewares, gestionnaires
d'erreurs, routes et métriques du service de catalogue de films.

Responsabilités du module:
- Initialiser le logging structuré
- Construire (ou recevoir) le conteneur de dépendances et le rattacher à `app.state`
- Ajouter les middlewares (contexte de requête, cache de réponses)
- Monter les routers (santé, utilisateurs, films, métriques)
"""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from movielobby.api.routes_health import router as health_router
from movielobby.api.routes_movies import router as movies_router
from movielobby.api.routes_users import router as users_router
from movielobby.app.metrics import metrics_router
from movielobby.core.container import Container
from movielobby.core.errors import register_error_handlers
from movielobby.core.logging import setup_logging
from movielobby.middlewares.request_context import RequestContextMiddleware
from movielobby.middlewares.response_cache import ResponseCacheMiddleware


def create_app(container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Construit le conteneur si aucun n'est fourni (tests: conteneur dédié)
    - Ajoute les middlewares; le contexte de requête enveloppe le cache de réponses
    - Publie les routes et les gestionnaires d'erreurs
    """
    container = container or Container()
    settings = container.settings
    setup_logging(debug=settings.APP_DEBUG)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.state.container = container
    register_error_handlers(app)
    app.add_middleware(ResponseCacheMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(movies_router)
    app.include_router(metrics_router)
    return app


def run() -> None:
    """Point d'entrée console: lance uvicorn sur APP_HOST:APP_PORT."""
    app = create_app()
    settings = app.state.container.settings
    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT, reload=False)


if __name__ == "__main__":
    run()
