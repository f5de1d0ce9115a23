"""
Endpoint de santé pour vérifier la disponibilité de l'API et du backend.

Expose `/health` pour signaler l'état général de l'application et du stockage.
"""

from fastapi import APIRouter, Depends

from movielobby.api.deps import get_container
from movielobby.core.container import Container
from movielobby.core.errors import StoreError

router = APIRouter(tags=["health"])


@router.get("/health")
def health(container: Container = Depends(get_container)):
    """Vérifie la disponibilité de l'API et le backend de stockage."""
    try:
        movies = container.movie_repo.count()
        store = "ok"
    except StoreError:
        movies = None
        store = "unavailable"
    return {
        "status": "ok" if store == "ok" else "degraded",
        "storage": container.storage_backend,
        "store": store,
        "movies": movies,
        "cached_responses": len(container.cache),
    }
