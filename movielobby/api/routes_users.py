"""
Routes utilisateurs: inscription et connexion.

Les échecs du dépôt sont convertis en 500 avec un message générique, sans détail interne.
"""

import structlog
from fastapi import APIRouter, Depends

from movielobby.api.deps import get_container
from movielobby.api.schemas import LoginPayload, LoginResponse, UserCreate, UserResponse
from movielobby.core.container import Container
from movielobby.core.errors import StoreError, internal_error
from movielobby.core.http_constants import HTTP_CREATED

router = APIRouter(prefix="/users", tags=["users"])
container_dep = Depends(get_container)

log = structlog.get_logger(__name__)


@router.post("", status_code=HTTP_CREATED, response_model=UserResponse)
def create_user(p: UserCreate, container: Container = container_dep):
    """Inscrit un nouvel utilisateur; la réponse n'expose jamais le mot de passe."""
    try:
        return container.accounts.register(
            name=p.name, email=p.email, contact=p.contact, role=p.role, password=p.password
        )
    except StoreError as err:
        log.error("user_create_failed", error=str(err))
        raise internal_error("Error occurred while creating user") from err


@router.post("/login", response_model=LoginResponse)
def login_user(p: LoginPayload, container: Container = container_dep):
    """Authentifie un utilisateur et retourne un token d'accès."""
    try:
        token = container.accounts.login(p.email, p.password)
    except StoreError as err:
        log.error("login_failed_store", error=str(err))
        raise internal_error("Error occurred while logging in") from err
    return {"message": "Login successful", "token": token}
