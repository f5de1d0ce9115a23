"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Donner accès au conteneur rattaché à l'application (`app.state.container`).
- Porter la chaîne d'authentification: extraction du bearer, vérification du token, garde admin.

Les gardes `authenticate_header` et `require_admin` sont des fonctions pures de (en-tête, identité):
elles lèvent une `APIError` ou renvoient l'identité, sans autre effet.
"""

from fastapi import Depends, Header, Request

from movielobby.app.metrics import AUTH_REJECTIONS
from movielobby.core.container import Container
from movielobby.core.errors import forbidden, unauthorized
from movielobby.domain.auth import TokenService
from movielobby.domain.entities import Identity

MISSING_TOKEN = "Unauthorized - Missing token"
INVALID_TOKEN = "Forbidden - Invalid token"
ADMIN_REQUIRED = "Forbidden - Admin role required"


def get_container(request: Request) -> Container:
    return request.app.state.container


def extract_bearer(authorization: str | None) -> str | None:
    """Retourne le token d'un en-tête `Bearer <token>`, sinon None."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def authenticate_header(authorization: str | None, tokens: TokenService) -> Identity:
    """Authentifie un en-tête Authorization: 401 si absent/mal formé, 403 si token invalide."""
    token = extract_bearer(authorization)
    if token is None:
        AUTH_REJECTIONS.labels(reason="missing_token").inc()
        raise unauthorized(MISSING_TOKEN)
    identity = tokens.verify(token)
    if identity is None:
        AUTH_REJECTIONS.labels(reason="invalid_token").inc()
        raise forbidden(INVALID_TOKEN)
    return identity


def require_admin(identity: Identity | None) -> Identity:
    """Garde des opérations réservées: 403 si le rôle n'est pas `admin`."""
    if identity is None or not identity.is_admin:
        AUTH_REJECTIONS.labels(reason="admin_required").inc()
        raise forbidden(ADMIN_REQUIRED)
    return identity


def get_current_identity(
    request: Request,
    authorization: str | None = Header(None),
    container: Container = Depends(get_container),
) -> Identity:
    """Vérifie le bearer et attache l'identité au contexte de la requête."""
    identity = authenticate_header(authorization, container.tokens)
    request.state.identity = identity
    return identity


def get_admin_identity(identity: Identity = Depends(get_current_identity)) -> Identity:
    return require_admin(identity)
