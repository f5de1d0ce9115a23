"""Inscription et connexion des utilisateurs."""

from __future__ import annotations

from typing import Any

import structlog

from movielobby.core.errors import conflict, unauthorized
from movielobby.domain.auth import TokenService, hash_password, verify_password
from movielobby.domain.entities import Role, User

log = structlog.get_logger(__name__)

# Message unique pour "email inconnu" et "mauvais mot de passe".
INVALID_CREDENTIALS = "Invalid email or password"
# Vérifié quand l'email est inconnu, pour un coût identique à un mauvais mot de passe.
DUMMY_PASSWORD_HASH = hash_password("movielobby-dummy-password")


class AccountService:
    def __init__(self, repo, tokens: TokenService) -> None:
        self.repo = repo
        self.tokens = tokens

    def register(
        self, name: str, email: str, contact: str, role: Role, password: str
    ) -> dict[str, Any]:
        """Hache le mot de passe, persiste l'utilisateur et renvoie sa forme publique."""
        record = self.repo.create(
            {
                "name": name,
                "email": email,
                "contact": contact,
                "role": Role(role).value,
                "password_hash": hash_password(password),
            }
        )
        if record is None:
            raise conflict("Conflict - Email already registered")
        user = User.model_validate(record)
        log.info("user_registered", user_id=user.id, role=user.role.value)
        return user.public()

    def login(self, email: str, password: str) -> str:
        """Vérifie les identifiants et émet un token portant id/email/rôle."""
        record = self.repo.get_by_email(email)
        password_hash = record.get("password_hash", "") if record else DUMMY_PASSWORD_HASH
        if not verify_password(password, password_hash) or not record:
            log.info("login_failed")
            raise unauthorized(INVALID_CREDENTIALS)
        user = User.model_validate(record)
        return self.tokens.issue(user.id, user.email, user.role)
