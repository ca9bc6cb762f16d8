"""Tests for the HTTP endpoints.

- GET /api/image (get_unrated_image)
- POST /api/rate (rate_image)
- GET /health
"""

import json

from fastapi.testclient import TestClient
import pytest

from imagerate.api import app
from imagerate.dependencies import get_object_store
from imagerate.ratings import RatingRecord, RatingsRepository

from conftest import put_images


class TestGetImage:
    """Tests for GET /api/image endpoint."""

    def test_returns_unrated_image(self, client, store):
        put_images(store, ["a.jpg", "b.jpg"])
        RatingsRepository(store).record_rating("a.jpg", 5)

        response = client.get("/api/image")

        assert response.status_code == 200
        assert response.json() == {
            "id": "b.jpg",
            "url": "memory://test-bucket/b.jpg",
            "remaining": 1,
        }

    def test_not_found_when_all_rated(self, client, store):
        put_images(store, ["a.jpg"])
        RatingsRepository(store).save({"a.jpg": RatingRecord(ratings=[1])})

        response = client.get("/api/image")

        assert response.status_code == 404
        assert response.json() == {"error": "No unrated images available"}

    def test_not_found_for_empty_bucket(self, client):
        response = client.get("/api/image")

        assert response.status_code == 404
        assert "error" in response.json()

    def test_listing_failure_is_500(self, client, store):
        put_images(store, ["a.jpg"])
        store.fail_list = True

        response = client.get("/api/image")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to retrieve images"}

    def test_unreadable_ratings_is_500(self, client, store):
        put_images(store, ["a.jpg"])
        store.put_object("ratings.json", b"not json")

        response = client.get("/api/image")

        assert response.status_code == 500


class TestRateImage:
    """Tests for POST /api/rate endpoint."""

    def test_ratings_append_in_order(self, client):
        first = client.post("/api/rate", json={"imageId": "a.jpg", "rating": 4})
        second = client.post("/api/rate", json={"imageId": "a.jpg", "rating": 2})

        assert first.status_code == 200
        assert second.status_code == 200
        assert second.json() == {"message": "Rating saved", "ratings": {"ratings": [4, 2]}}

    def test_rating_is_persisted_as_pretty_json(self, client, store):
        client.post("/api/rate", json={"imageId": "a.jpg", "rating": 3.5})

        stored = store.get_object("ratings.json").data.decode("utf-8")
        assert json.loads(stored) == {"a.jpg": {"ratings": [3.5]}}
        assert stored.startswith("{\n  ")

    def test_zero_rating_is_accepted(self, client):
        response = client.post("/api/rate", json={"imageId": "a.jpg", "rating": 0})

        assert response.status_code == 200
        assert response.json()["ratings"] == {"ratings": [0]}

    def test_missing_rating_is_rejected(self, client, store):
        response = client.post("/api/rate", json={"imageId": "a.jpg"})

        assert response.status_code == 400
        assert "rating" in response.json()["error"]
        assert store.list_page(page_size=10).keys == []

    def test_missing_image_id_is_rejected(self, client):
        response = client.post("/api/rate", json={"rating": 3})

        assert response.status_code == 400
        assert "imageId" in response.json()["error"]

    def test_null_rating_is_rejected(self, client):
        response = client.post("/api/rate", json={"imageId": "a.jpg", "rating": None})

        assert response.status_code == 400

    def test_blank_image_id_is_rejected(self, client):
        response = client.post("/api/rate", json={"imageId": "  ", "rating": 3})

        assert response.status_code == 400

    def test_non_numeric_rating_is_rejected(self, client):
        response = client.post("/api/rate", json={"imageId": "a.jpg", "rating": "4"})

        assert response.status_code == 400

    def test_empty_body_is_rejected(self, client):
        response = client.post("/api/rate", content=b"", headers={"Content-Type": "application/json"})

        assert response.status_code == 400

    def test_write_failure_is_500(self, client, store):
        store.fail_put = True

        response = client.post("/api/rate", json={"imageId": "a.jpg", "rating": 4})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to save rating"}

    def test_read_failure_is_500(self, client, store):
        store.fail_get = True

        response = client.post("/api/rate", json={"imageId": "a.jpg", "rating": 4})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to load ratings"}

    def test_rated_image_is_no_longer_offered(self, client, store):
        put_images(store, ["a.jpg", "b.jpg"])
        client.post("/api/rate", json={"imageId": "a.jpg", "rating": 1})

        response = client.get("/api/image")

        assert response.json()["id"] == "b.jpg"
        assert response.json()["remaining"] == 1


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert "error" in response.json()


def test_cors_headers(client):
    response = client.get("/health", headers={"Origin": "http://example.com"})

    assert response.headers["access-control-allow-origin"] == "*"


class TestNonFiniteRatings:
    """NaN and Infinity are not numbers in JSON and must never reach ratings.json."""

    @pytest.mark.parametrize("token", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_rating_is_rejected(self, client, store, token):
        client.post("/api/rate", json={"imageId": "a.jpg", "rating": 3})
        before = store.get_object("ratings.json").data

        response = client.post(
            "/api/rate",
            content=f'{{"imageId": "a.jpg", "rating": {token}}}'.encode(),
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert "rating" in response.json()["error"]
        stored = store.get_object("ratings.json").data
        assert stored == before
        json.loads(stored, parse_constant=_reject_constant)


def _reject_constant(token):
    raise ValueError(f"non-standard JSON constant {token}")


def test_unexpected_error_uses_error_body(store):
    def broken_store():
        raise RuntimeError("no credentials")

    app.dependency_overrides[get_object_store] = broken_store
    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get("/api/image")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}
