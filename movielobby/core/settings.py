"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Secret de signature par défaut: NON SÛR en production, à surcharger via JWT_SECRET.
INSECURE_DEFAULT_SECRET = "dev-secret-change-me"


def _resolve_env_file() -> Path:
    env_file = os.getenv("ENV_FILE")
    if env_file:
        return Path(env_file)
    cwd = Path.cwd()
    specific = cwd / f".env.{os.getenv('APP_ENV', 'dev')}"
    if specific.exists():
        return specific
    return cwd / ".env"


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "movie-lobby"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 3000

    # Stockage
    REDIS_URL: str | None = None
    REQUIRE_REDIS: bool = False
    STORE_TIMEOUT_MS: int = 2000

    # JWT/Auth
    JWT_SECRET: str = INSECURE_DEFAULT_SECRET
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_MIN: int = 60

    # Cache des réponses de listing
    CACHE_TTL_SECONDS: int = 60
    CACHE_INVALIDATE_ON_WRITE: bool = True

    @property
    def uses_insecure_secret(self) -> bool:
        """Indique si le secret JWT par défaut est encore utilisé."""
        return self.JWT_SECRET == INSECURE_DEFAULT_SECRET


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
