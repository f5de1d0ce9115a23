"""
Module d'authentification et de gestion des tokens.

Ce module fournit les fonctions pour le hachage des mots de passe ainsi que le service d'émission et
de vérification des tokens JWT portant l'identité de l'utilisateur.
"""

from datetime import UTC, datetime, timedelta

import jwt
import structlog
from jwt import InvalidTokenError
from passlib.context import CryptContext
from pydantic import ValidationError

from movielobby.domain.entities import Identity, Role

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

log = structlog.get_logger(__name__)


def hash_password(p: str) -> str:
    """Hache un mot de passe en utilisant PBKDF2 (sel aléatoire)."""
    return pwd_context.hash(p)


def verify_password(p: str, h: str) -> bool:
    """Vérifie un mot de passe contre son hash; un hash illisible ne valide jamais."""
    try:
        return pwd_context.verify(p, h)
    except (ValueError, TypeError):
        return False


class TokenService:
    """Émet et vérifie des tokens signés à durée de vie limitée."""

    def __init__(self, secret: str, alg: str = "HS256", expires_min: int = 60) -> None:
        self._secret = secret
        self._alg = alg
        self.expires_min = expires_min

    def issue(self, user_id: str, email: str, role: Role, now: datetime | None = None) -> str:
        """Crée un token JWT d'accès expirant `expires_min` minutes après l'émission."""
        issued_at = now or datetime.now(UTC)
        payload = {
            "userId": user_id,
            "email": email,
            "role": Role(role).value,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expires_min),
        }
        return jwt.encode(payload, self._secret, algorithm=self._alg)

    def verify(self, token: str) -> Identity | None:
        """Décode et valide un token JWT.

        Retourne None si la signature, le format, l'expiration ou les claims sont invalides; un
        rôle inconnu est rejeté plutôt que traité comme non-admin.
        """
        try:
            data = jwt.decode(
                token,
                self._secret,
                algorithms=[self._alg],
                options={"require": ["exp", "userId", "email", "role"]},
            )
            return Identity.model_validate(data)
        except (InvalidTokenError, ValidationError) as err:
            log.debug("token_rejected", reason=type(err).__name__)
            return None
