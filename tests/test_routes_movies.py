"""Tests HTTP des routes `/movies` (auth, rôles, cache, erreurs du dépôt)."""

from unittest.mock import patch

import pytest

from movielobby.core.errors import StoreError
from movielobby.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_CREATED,
    HTTP_FORBIDDEN,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NO_CONTENT,
    HTTP_NOT_FOUND,
    HTTP_OK,
    HTTP_UNAUTHORIZED,
)


def _create(client, headers, payload) -> dict:
    r = client.post("/movies", json=payload, headers=headers)
    assert r.status_code == HTTP_CREATED
    return r.json()


def test_missing_and_invalid_token(client):
    r = client.get("/movies")
    assert r.status_code == HTTP_UNAUTHORIZED
    assert r.json()["message"] == "Unauthorized - Missing token"

    r = client.get("/movies", headers={"Authorization": "Bearer not.a.valid.token"})
    assert r.status_code == HTTP_FORBIDDEN
    assert r.json()["message"] == "Forbidden - Invalid token"


def test_create_movie_as_admin(client, admin_headers, movie_payload):
    movie = _create(client, admin_headers, movie_payload)
    assert movie["id"]
    assert {k: movie[k] for k in movie_payload} == movie_payload


def test_create_missing_field_is_400_and_not_persisted(
    client, container, admin_headers, movie_payload
):
    del movie_payload["title"]
    r = client.post("/movies", json=movie_payload, headers=admin_headers)
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["message"] == "Bad Request - Missing required parameters"
    assert container.movie_repo.count() == 0


def test_create_with_non_numeric_rating_is_400(client, admin_headers, movie_payload):
    movie_payload["rating"] = "great"
    r = client.post("/movies", json=movie_payload, headers=admin_headers)
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["code"] == "BAD_REQUEST"


@pytest.mark.parametrize(
    "method, path, body",
    [
        ("POST", "/movies", {"title": "x", "genre": "y", "rating": 1, "streamingLink": "z"}),
        ("POST", "/movies", {"rating": "not-a-number"}),
        ("PUT", "/movies/some-id", {"genre": "Comedy"}),
        ("DELETE", "/movies/some-id", None),
    ],
)
def test_non_admin_mutations_are_forbidden(client, user_headers, method, path, body):
    r = client.request(method, path, json=body, headers=user_headers)
    assert r.status_code == HTTP_FORBIDDEN
    assert r.json()["message"] == "Forbidden - Admin role required"


def test_list_paginates_in_store_order(client, container, admin_headers, user_headers):
    for i in range(25):
        container.movie_repo.create(
            {"title": f"M{i}", "genre": "g", "rating": 1.0, "streamingLink": "l"}
        )
    r = client.get("/movies", headers=user_headers)
    assert r.status_code == HTTP_OK
    assert [m["title"] for m in r.json()] == [f"M{i}" for i in range(10)]

    r = client.get("/movies?page=3&limit=10", headers=user_headers)
    assert [m["title"] for m in r.json()] == [f"M{i}" for i in range(20, 25)]


def test_list_with_non_integer_page_is_400(client, user_headers):
    r = client.get("/movies?page=abc", headers=user_headers)
    assert r.status_code == HTTP_BAD_REQUEST


def test_second_listing_is_served_by_cache_middleware(client, user_headers, container):
    first = client.get("/movies?page=1&limit=10", headers=user_headers)
    assert first.headers["X-Cache"] == "MISS"

    container.movie_repo.create({"title": "T", "genre": "g", "rating": 1.0, "streamingLink": "l"})
    second = client.get("/movies?limit=10&page=1&unused=1", headers=user_headers)
    assert second.status_code == HTTP_OK
    assert second.headers["X-Cache"] == "HIT"
    assert second.json() == first.json() == []


def test_cached_listing_is_not_served_without_valid_token(client, user_headers):
    client.get("/movies", headers=user_headers)
    assert client.get("/movies").status_code == HTTP_UNAUTHORIZED
    r = client.get("/movies", headers={"Authorization": "Bearer forged"})
    assert r.status_code == HTTP_FORBIDDEN


def test_create_purges_cached_listings(client, admin_headers, user_headers, movie_payload):
    assert client.get("/movies", headers=user_headers).json() == []
    _create(client, admin_headers, movie_payload)
    r = client.get("/movies", headers=user_headers)
    assert r.headers["X-Cache"] == "MISS"
    assert len(r.json()) == 1


def test_search(client, admin_headers, user_headers, movie_payload):
    _create(client, admin_headers, movie_payload)
    _create(client, admin_headers, {**movie_payload, "title": "Heat", "genre": "Crime"})
    r = client.get("/movies/search", params={"q": "sci"}, headers=user_headers)
    assert r.status_code == HTTP_OK
    assert [m["title"] for m in r.json()] == ["Back to the Future"]

    r = client.get("/movies/search", headers=user_headers)
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["message"] == "Bad Request - Missing search query"


def test_partial_update(client, admin_headers, movie_payload):
    movie = _create(client, admin_headers, movie_payload)
    r = client.put(f"/movies/{movie['id']}", json={"genre": "Comedy"}, headers=admin_headers)
    assert r.status_code == HTTP_OK
    assert r.json() == {**movie, "genre": "Comedy"}


def test_update_cannot_blank_required_fields(client, container, admin_headers, movie_payload):
    movie = _create(client, admin_headers, movie_payload)
    r = client.put(
        f"/movies/{movie['id']}", json={"title": "", "streamingLink": ""}, headers=admin_headers
    )
    assert r.status_code == HTTP_BAD_REQUEST
    assert container.movie_repo.get(movie["id"]) == movie


@pytest.mark.parametrize("method", ["POST", "PUT"])
def test_boolean_rating_is_400(client, container, admin_headers, movie_payload, method):
    if method == "POST":
        r = client.post("/movies", json={**movie_payload, "rating": True}, headers=admin_headers)
        assert container.movie_repo.count() == 0
    else:
        movie = _create(client, admin_headers, movie_payload)
        r = client.put(f"/movies/{movie['id']}", json={"rating": True}, headers=admin_headers)
        assert container.movie_repo.get(movie["id"]) == movie
    assert r.status_code == HTTP_BAD_REQUEST
    assert "rating" in r.json()["message"]


def test_update_unknown_movie_is_404(client, container, admin_headers):
    r = client.put("/movies/unknown", json={"title": "X"}, headers=admin_headers)
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json()["message"] == "Not Found - Movie not found"
    assert container.movie_repo.count() == 0


def test_delete_twice(client, admin_headers, movie_payload):
    movie = _create(client, admin_headers, movie_payload)
    r = client.delete(f"/movies/{movie['id']}", headers=admin_headers)
    assert r.status_code == HTTP_NO_CONTENT
    assert r.content == b""
    r = client.delete(f"/movies/{movie['id']}", headers=admin_headers)
    assert r.status_code == HTTP_NOT_FOUND


@pytest.mark.parametrize(
    "repo_method, method, path, body, message",
    [
        ("create", "POST", "/movies", "payload", "Error occurred while adding movie"),
        ("list", "GET", "/movies?page=9", None, "Error occurred while fetching movies"),
        ("search", "GET", "/movies/search?q=x", None, "Error occurred while searching movies"),
        ("update", "PUT", "/movies/abc", {"title": "t"}, "Error occurred while updating movie"),
        ("delete", "DELETE", "/movies/abc", None, "Error occurred while deleting the movie"),
    ],
)
def test_store_failures_become_generic_500(
    client, container, admin_headers, movie_payload, repo_method, method, path, body, message
):
    body = movie_payload if body == "payload" else body
    with patch.object(
        container.movie_repo, repo_method, side_effect=StoreError("ConnectionError: refused")
    ):
        r = client.request(method, path, json=body, headers=admin_headers)
    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert r.json()["message"] == message
    assert "refused" not in r.text
