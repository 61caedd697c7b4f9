"""Tests for game details, related games, OG images and the index routes."""

from types import SimpleNamespace

import pytest

from app.main import _walk_routes
from app.modules.catalog.services.fallback import FALLBACK_MESSAGE
from conftest import make_raw_game


class TestGameDetails:
    """/games/{id}."""

    def test_details_with_breakdown(self, client, fake_client) -> None:
        """Details carry the review breakdown and the review-based rating."""
        fake_client.summary = {"total_reviews": 3, "total_positive": 2, "total_negative": 1,
                               "review_score": 9, "review_score_desc": "Overwhelmingly Positive"}
        response = client.get("/games/103")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        game = body["data"]
        assert game["id"] == 103
        assert game["rating"] == 4.5
        assert game["reviewBreakdown"] == {
            "totalReviews": 3,
            "positiveReviews": 2,
            "negativeReviews": 1,
            "positivePercentage": 67,
            "negativePercentage": 33,
            "reviewScore": 9,
            "reviewScoreDesc": "Overwhelmingly Positive",
        }
        assert fake_client.called("get_game_details") == [(103,)]

    def test_summary_failure_drops_breakdown(self, client, fake_client) -> None:
        """A failed review lookup only removes the breakdown."""
        fake_client.failures.add("get_game_reviews")
        response = client.get("/games/103")
        assert response.status_code == 200
        game = response.json()["data"]
        assert "reviewBreakdown" not in game
        assert game["rating"] == 4.0

    @pytest.mark.parametrize("game_id", ["abc", "0", "-5", "12a", "1.5"])
    def test_invalid_id(self, client, fake_client, game_id: str) -> None:
        """Non-numeric or non-positive ids are rejected before any upstream call."""
        response = client.get(f"/games/{game_id}")
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid game ID", "data": None}
        assert fake_client.calls == []

    def test_not_found(self, client) -> None:
        """Unknown games give 404."""
        response = client.get("/games/999")
        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Game not found", "data": None}

    def test_upstream_failure(self, client, fake_client) -> None:
        """Detail lookups do not fall back; upstream errors give 503."""
        fake_client.failures.add("get_game_details")
        response = client.get("/games/103")
        assert response.status_code == 503
        assert response.json() == {"success": False, "error": "Failed to fetch game details", "data": None}


class TestRelatedGames:
    """/games/{id}/related."""

    def test_default_limit(self, client, fake_client) -> None:
        """Four related games by default, never the game itself."""
        body = client.get("/games/101/related").json()
        assert body["count"] == 4
        assert 101 not in [game["id"] for game in body["data"]]
        assert fake_client.called("get_related_games") == [(101, 8)]

    def test_limit_clamped(self, client, fake_client) -> None:
        """Related lists are capped at 20."""
        client.get("/games/101/related", params={"limit": 100})
        assert fake_client.called("get_related_games") == [(101, 40)]

    def test_failure_falls_back(self, client, fake_client) -> None:
        """Related games degrade and cap at 8."""
        fake_client.failures.add("get_related_games")
        body = client.get("/games/101/related", params={"limit": 20}).json()
        assert body["success"] is True
        assert body["fallback"] is True
        assert body["message"] == FALLBACK_MESSAGE
        assert body["count"] == 8
        assert body["data"][0]["name"] == "Related Game 1"

    def test_empty_related_is_not_fallback(self, client, fake_client) -> None:
        """No similar games is a valid, empty answer."""
        fake_client.games = [make_raw_game(101)]
        body = client.get("/games/101/related").json()
        assert body == {"success": True, "data": [], "count": 0}

    def test_invalid_id(self, client) -> None:
        """Related lookups still validate the id."""
        response = client.get("/games/abc/related")
        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid game ID", "data": []}


class TestOpenGraphImage:
    """/og/game/{id}."""

    def test_redirects_to_header_image(self, client) -> None:
        """Games with artwork redirect to it."""
        response = client.get("/og/game/104", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"].endswith("/104/header.jpg")

    def test_placeholder_text(self, client, fake_client) -> None:
        """Games without artwork get a plain-text placeholder."""
        fake_client.games = [make_raw_game(5, "No Art", header_image="")]
        response = client.get("/og/game/5", follow_redirects=False)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Open Graph image for No Art"

    @pytest.mark.parametrize("path,status,text", [
        ("/og/game/abc", 400, "Invalid game ID"),
        ("/og/game/999", 404, "Game not found"),
    ])
    def test_errors_plain_text(self, client, path: str, status: int, text: str) -> None:
        """Errors are plain text."""
        response = client.get(path)
        assert response.status_code == status
        assert response.text == text

    def test_upstream_failure(self, client, fake_client) -> None:
        """Upstream errors give 503."""
        fake_client.failures.add("get_game_details")
        assert client.get("/og/game/104").status_code == 503


class TestIndexRoutes:
    """/ and /_routes."""

    def test_root(self, client) -> None:
        """The index lists the main endpoints."""
        body = client.get("/").json()
        assert body["endpoints"]["popular"] == "/games/popular"

    def test_routes_listing(self, client) -> None:
        """Every catalog route is registered."""
        paths = {route["path"] for route in client.get("/_routes").json()["routes"]}
        assert {"/games/popular", "/games/{game_id}", "/games/{game_id}/reviews",
                "/reviews/{review_id}", "/og/game/{game_id}"} <= paths

    def test_routes_listing_methods(self, client) -> None:
        """Routes report their name and sorted methods."""
        routes = {route["path"]: route for route in client.get("/_routes").json()["routes"]}
        assert routes["/games/popular"]["name"] == "popular_games"
        assert routes["/games/popular"]["methods"] == ["GET"]

    def test_walk_routes_descends_into_nested_routers(self) -> None:
        """Included routers wrapped in a container without a path are flattened."""
        leaf = SimpleNamespace(path="/games/popular", endpoint=None, methods={"GET"})
        wrapped = SimpleNamespace(router=SimpleNamespace(routes=[leaf]))
        grouped = SimpleNamespace(routes=[SimpleNamespace(path="/reviews/{review_id}")])
        assert [r.path for r in _walk_routes([wrapped, grouped])] == ["/games/popular", "/reviews/{review_id}"]
