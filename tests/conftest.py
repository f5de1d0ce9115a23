"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path et fournit un conteneur dédié (stockage mémoire,
secret de test) ainsi qu'un client HTTP et des tokens admin/utilisateur.
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so that
# imports like `from movielobby...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from movielobby.app.main import create_app  # noqa: E402
from movielobby.core.container import Container  # noqa: E402
from movielobby.core.settings import Settings  # noqa: E402
from movielobby.domain.entities import Role  # noqa: E402

TEST_SECRET = "test-secret"


def make_settings(**overrides) -> Settings:
    """Settings isolées de l'environnement local (.env ignoré, pas de Redis)."""
    values = {
        "APP_ENV": "test",
        "REDIS_URL": None,
        "REQUIRE_REDIS": False,
        "JWT_SECRET": TEST_SECRET,
        "CACHE_TTL_SECONDS": 60,
        "CACHE_INVALIDATE_ON_WRITE": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def container(settings) -> Container:
    return Container(settings)


@pytest.fixture
def app(container):
    return create_app(container)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_headers(container) -> dict[str, str]:
    token = container.tokens.issue("admin-id", "admin@lobby.io", Role.ADMIN)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(container) -> dict[str, str]:
    token = container.tokens.issue("user-id", "user@lobby.io", Role.USER)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def movie_payload() -> dict:
    return {
        "title": "Back to the Future",
        "genre": "Sci-fi",
        "rating": 7.0,
        "streamingLink": "https://example.com",
    }
