"""
Repositories pour la gestion des données.

Ce module fournit les dépôts d'utilisateurs et de films, avec des versions en mémoire (dev/tests) et
Redis. Chaque appel est atomique à l'échelle d'un document; les erreurs du backend sont converties
en `StoreError`.
"""

from __future__ import annotations

import contextlib
import json
import threading
import uuid
from collections.abc import Iterator
from typing import Any

import redis

from movielobby.core.errors import StoreError
from movielobby.domain.entities import MovieUpdate


def _new_id() -> str:
    return uuid.uuid4().hex


def _matches(record: dict[str, Any], needle: str) -> bool:
    """Correspondance sous-chaîne insensible à la casse sur le titre OU le genre."""
    folded = needle.casefold()
    return any(folded in str(record.get(f, "")).casefold() for f in ("title", "genre"))


@contextlib.contextmanager
def _store_errors() -> Iterator[None]:
    try:
        yield
    except (redis.RedisError, ValueError) as err:
        raise StoreError(f"{type(err).__name__}: {err}") from err


class InMemoryUserRepo:
    """Dépôt utilisateurs en mémoire (email indexée par scan simple)."""

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Recherche un utilisateur par email (comparaison exacte)."""
        with self._lock:
            return next((dict(u) for u in self._db.values() if u.get("email") == email), None)

    def create(self, user: dict[str, Any]) -> dict[str, Any] | None:
        """Insère un utilisateur avec un id neuf; None si l'email est déjà pris."""
        with self._lock:
            if any(u.get("email") == user["email"] for u in self._db.values()):
                return None
            record = {**user, "id": _new_id()}
            self._db[record["id"]] = record
            return dict(record)


class RedisUserRepo:
    """Dépôt utilisateurs via Redis avec index email->id (hash)."""

    idx_key = "user:idx:email"

    def __init__(self, client: redis.Redis):
        self.client = client

    def get_by_email(self, email: str) -> dict[str, Any] | None:
        """Recherche un utilisateur par email via l'index Redis."""
        with _store_errors():
            user_id = self.client.hget(self.idx_key, email)
            if not user_id:
                return None
            raw = self.client.get(f"user:{user_id}")
            return json.loads(raw) if raw else None

    def create(self, user: dict[str, Any]) -> dict[str, Any] | None:
        """Réserve l'email dans l'index (HSETNX) puis stocke l'utilisateur."""
        record = {**user, "id": _new_id()}
        with _store_errors():
            if not self.client.hsetnx(self.idx_key, record["email"], record["id"]):
                return None
            self.client.set(f"user:{record['id']}", json.dumps(record))
        return record


class InMemoryMovieRepo:
    """
    Dépôt de films en mémoire (utilisé pour dev/tests).

    L'ordre naturel est l'ordre d'insertion (dict Python).
    """

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        with self._lock:
            record = {"id": _new_id(), **fields}
            self._db[record["id"]] = record
            return dict(record)

    def list(self, skip: int, limit: int) -> list[dict[str, Any]]:
        """Retourne la tranche `[skip, skip+limit)` dans l'ordre de stockage."""
        with self._lock:
            return [dict(r) for r in list(self._db.values())[skip : skip + limit]]

    def search(self, needle: str) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(r) for r in self._db.values() if _matches(r, needle)]

    def get(self, movie_id: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._db.get(movie_id)
            return dict(record) if record else None

    def update(self, movie_id: str, patch: MovieUpdate) -> dict[str, Any] | None:
        """Applique le différentiel à l'enregistrement existant, None s'il est absent."""
        with self._lock:
            record = self._db.get(movie_id)
            if record is None:
                return None
            updated = patch.apply_to(record)
            self._db[movie_id] = updated
            return dict(updated)

    def delete(self, movie_id: str) -> bool:
        with self._lock:
            return self._db.pop(movie_id, None) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._db)


class RedisMovieRepo:
    """Dépôt de films adossé à Redis (clé: `movie:{id}`, ordre: liste `movie:idx`)."""

    idx_key = "movie:idx"

    def __init__(self, client: redis.Redis):
        self.client = client

    @staticmethod
    def _key(movie_id: str) -> str:
        return f"movie:{movie_id}"

    def _load_many(self, ids: list[str]) -> list[dict[str, Any]]:
        if not ids:
            return []
        raws = self.client.mget([self._key(i) for i in ids])
        return [json.loads(raw) for raw in raws if raw]

    def create(self, fields: dict[str, Any]) -> dict[str, Any]:
        """Sérialise en JSON, stocke sous `movie:{id}` et ajoute l'id en fin d'index."""
        record = {"id": _new_id(), **fields}
        with _store_errors():
            pipe = self.client.pipeline()
            pipe.set(self._key(record["id"]), json.dumps(record))
            pipe.rpush(self.idx_key, record["id"])
            pipe.execute()
        return record

    def list(self, skip: int, limit: int) -> list[dict[str, Any]]:
        with _store_errors():
            ids = self.client.lrange(self.idx_key, skip, skip + limit - 1)
            return self._load_many(ids)

    def search(self, needle: str) -> list[dict[str, Any]]:
        with _store_errors():
            ids = self.client.lrange(self.idx_key, 0, -1)
            return [r for r in self._load_many(ids) if _matches(r, needle)]

    def get(self, movie_id: str) -> dict[str, Any] | None:
        with _store_errors():
            raw = self.client.get(self._key(movie_id))
            return json.loads(raw) if raw else None

    def update(self, movie_id: str, patch: MovieUpdate) -> dict[str, Any] | None:
        """Lecture-modification-écriture optimiste (WATCH/MULTI) sur `movie:{id}`."""
        key = self._key(movie_id)
        with _store_errors(), self.client.pipeline() as pipe:
            while True:
                try:
                    pipe.watch(key)
                    raw = pipe.get(key)
                    if not raw:
                        pipe.unwatch()
                        return None
                    updated = patch.apply_to(json.loads(raw))
                    pipe.multi()
                    pipe.set(key, json.dumps(updated))
                    pipe.execute()
                    return updated
                except redis.WatchError:
                    continue

    def delete(self, movie_id: str) -> bool:
        with _store_errors():
            pipe = self.client.pipeline()
            pipe.delete(self._key(movie_id))
            pipe.lrem(self.idx_key, 0, movie_id)
            deleted, _ = pipe.execute()
            return bool(deleted)

    def count(self) -> int:
        with _store_errors():
            return int(self.client.llen(self.idx_key))
