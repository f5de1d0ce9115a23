"""
Entités du domaine métier.

Ce module définit les modèles de données principaux du catalogue: utilisateurs, films, identité
extraite d'un token et différentiel de mise à jour partielle.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MOVIE_FIELDS = ("title", "genre", "rating", "streamingLink")


def reject_bool(value: Any) -> Any:
    """Refuse un booléen JSON là où une note numérique est attendue (`true` n'est pas 1.0)."""
    if isinstance(value, bool):
        raise ValueError("rating must be a number")
    return value


class Role(str, Enum):
    """Rôles reconnus par l'API (énumération fermée)."""

    ADMIN = "admin"
    USER = "user"


class User(BaseModel):
    """Utilisateur tel que persisté (le hash ne sort jamais de l'API)."""

    id: str
    name: str
    email: str
    contact: str
    role: Role
    password_hash: str

    def public(self) -> dict[str, Any]:
        """Représentation exposée, sans mot de passe ni hash."""
        return self.model_dump(mode="json", exclude={"password_hash"})


class Identity(BaseModel):
    """Identité vérifiée attachée à la requête en cours."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(alias="userId")
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


class Movie(BaseModel):
    """Entrée du catalogue."""

    id: str
    title: str
    genre: str
    rating: float
    streamingLink: str


class MovieUpdate(BaseModel):
    """Différentiel de mise à jour partielle d'un film.

    Seuls les champs explicitement fournis (et non nuls) sont appliqués; les autres restent
    inchangés sur l'enregistrement stocké. Une chaîne vide est refusée: un champ requis ne peut
    pas être effacé.
    """

    title: str | None = Field(None, min_length=1)
    genre: str | None = Field(None, min_length=1)
    rating: float | None = None
    streamingLink: str | None = Field(None, min_length=1)

    @field_validator("rating", mode="before")
    @classmethod
    def rating_is_number(cls, value: Any) -> Any:
        return reject_bool(value)

    def changes(self) -> dict[str, Any]:
        """Retourne uniquement les champs présents dans la requête."""
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def apply_to(self, record: dict[str, Any]) -> dict[str, Any]:
        """Construit l'enregistrement mis à jour à partir de l'enregistrement stocké."""
        updated = dict(record)
        updated.update(self.changes())
        return updated
