"""
Conteneur d'injection de dépendances.

Instancie les composants centraux (settings, dépôts, cache, service de tokens, services métier).
Le conteneur est construit explicitement par `create_app` et rattaché à `app.state`; aucune route ne
consulte d'état global.
"""

import redis
import structlog

from movielobby.core.settings import Settings, get_settings
from movielobby.domain.accounts import AccountService
from movielobby.domain.auth import TokenService
from movielobby.domain.catalog import CatalogService
from movielobby.infra.cache import ResponseCache
from movielobby.infra.repositories import (
    InMemoryMovieRepo,
    InMemoryUserRepo,
    RedisMovieRepo,
    RedisUserRepo,
)

log = structlog.get_logger(__name__)


def _redis_client(settings: Settings) -> redis.Redis:
    timeout = settings.STORE_TIMEOUT_MS / 1000
    client = redis.Redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=timeout,
        socket_timeout=timeout,
    )
    client.ping()
    return client


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._build_stores()
        self.cache = ResponseCache()
        self.tokens = TokenService(
            secret=self.settings.JWT_SECRET,
            alg=self.settings.JWT_ALG,
            expires_min=self.settings.JWT_EXPIRES_MIN,
        )
        self.catalog = CatalogService(
            self.movie_repo,
            self.cache,
            ttl_seconds=self.settings.CACHE_TTL_SECONDS,
            invalidate_on_write=self.settings.CACHE_INVALIDATE_ON_WRITE,
        )
        self.accounts = AccountService(self.user_repo, self.tokens)
        if self.settings.uses_insecure_secret and self.settings.APP_ENV not in ("dev", "test"):
            log.warning("insecure_jwt_secret", app_env=self.settings.APP_ENV)

    def _build_stores(self) -> None:
        if self.settings.REDIS_URL:
            try:
                client = _redis_client(self.settings)
                self.user_repo = RedisUserRepo(client)
                self.movie_repo = RedisMovieRepo(client)
                self.storage_backend = "redis"
                return
            except redis.RedisError as err:
                if self.settings.REQUIRE_REDIS:
                    raise RuntimeError("Redis required but unavailable") from err
                log.warning("redis_unavailable_memory_fallback", error=type(err).__name__)
                self.storage_backend = "memory-fallback"
        else:
            if self.settings.REQUIRE_REDIS:
                raise RuntimeError("Redis required but REDIS_URL not set")
            self.storage_backend = "memory"
        self.user_repo = InMemoryUserRepo()
        self.movie_repo = InMemoryMovieRepo()
