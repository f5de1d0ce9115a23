# Schémas Pydantic exposés par l'API (requêtes et réponses).

from typing import Any

from pydantic import BaseModel, field_validator

from movielobby.domain.entities import Role, reject_bool


class UserCreate(BaseModel):
    """Payload d'inscription.

    Champs:
    - name, email, contact: str
    - role: `admin` | `user`
    - password: str (en clair, haché avant persistance)
    """

    name: str
    email: str
    contact: str
    role: Role
    password: str


class LoginPayload(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    message: str
    token: str


class MovieCreate(BaseModel):
    """Payload de création d'un film.

    Les champs sont optionnels au niveau du schéma: leur présence est contrôlée par le service afin
    de renvoyer un 400 explicite.
    """

    title: str | None = None
    genre: str | None = None
    rating: float | None = None
    streamingLink: str | None = None

    @field_validator("rating", mode="before")
    @classmethod
    def rating_is_number(cls, value: Any) -> Any:
        return reject_bool(value)


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    contact: str
    role: Role

