"""
Routes du catalogue `/movies`.

Lecture (listing paginé, recherche) pour tout appelant authentifié; création, mise à jour et
suppression réservées au rôle `admin`. Les échecs du dépôt sont convertis en 500 à cette frontière.
"""

import structlog
from fastapi import APIRouter, Depends, Query, Response

from movielobby.api.deps import get_admin_identity, get_container, get_current_identity
from movielobby.api.schemas import MovieCreate
from movielobby.core.container import Container
from movielobby.core.errors import StoreError, internal_error
from movielobby.core.http_constants import HTTP_CREATED, HTTP_NO_CONTENT
from movielobby.domain.catalog import parse_pagination
from movielobby.domain.entities import Movie, MovieUpdate

router = APIRouter(prefix="/movies", tags=["movies"])
container_dep = Depends(get_container)
authenticated = [Depends(get_current_identity)]
admin_only = [Depends(get_admin_identity)]

log = structlog.get_logger(__name__)


def _store_failure(err: StoreError, message: str):
    log.error("movie_store_error", error=str(err))
    return internal_error(message)


@router.post("", status_code=HTTP_CREATED, response_model=Movie, dependencies=admin_only)
def add_movie(payload: MovieCreate, container: Container = container_dep):
    """Ajoute un film au catalogue (admin)."""
    try:
        return container.catalog.create(payload.model_dump())
    except StoreError as err:
        raise _store_failure(err, "Error occurred while adding movie") from err


@router.get("", response_model=list[Movie], dependencies=authenticated)
def fetch_movies(
    page: str | None = Query(None),
    limit: str | None = Query(None),
    container: Container = container_dep,
):
    """Liste paginée (`page`=1, `limit`=10 par défaut), mise en cache par page."""
    page_no, page_size = parse_pagination(page, limit)
    try:
        return container.catalog.list(page_no, page_size)
    except StoreError as err:
        raise _store_failure(err, "Error occurred while fetching movies") from err


@router.get("/search", response_model=list[Movie], dependencies=authenticated)
def search_movies(q: str | None = Query(None), container: Container = container_dep):
    """Recherche insensible à la casse dans le titre ou le genre."""
    try:
        return container.catalog.search(q)
    except StoreError as err:
        raise _store_failure(err, "Error occurred while searching movies") from err


@router.put("/{movie_id}", response_model=Movie, dependencies=admin_only)
def update_movie(movie_id: str, patch: MovieUpdate, container: Container = container_dep):
    """Mise à jour partielle: seuls les champs fournis sont modifiés (admin)."""
    try:
        return container.catalog.update(movie_id, patch)
    except StoreError as err:
        raise _store_failure(err, "Error occurred while updating movie") from err


@router.delete("/{movie_id}", status_code=HTTP_NO_CONTENT, dependencies=admin_only)
def delete_movie(movie_id: str, container: Container = container_dep):
    """Supprime un film (admin); 204 sans corps."""
    try:
        container.catalog.delete(movie_id)
    except StoreError as err:
        raise _store_failure(err, "Error occurred while deleting the movie") from err
    return Response(status_code=HTTP_NO_CONTENT)
