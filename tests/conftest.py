# tests/conftest.py
from typing import Any, Dict, Iterable, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.core.errors import UpstreamTransientError
from app.main import app
from app.modules.catalog.services.steam_client import get_catalog_client, matches_genre


def make_raw_game(app_id: int, name: Optional[str] = None, **overrides: Any) -> Dict[str, Any]:
    """Steam appdetails-shaped payload."""
    game = {
        "appid": app_id,
        "steam_appid": app_id,
        "type": "game",
        "name": name or f"Game {app_id}",
        "header_image": f"https://cdn.akamai.steamstatic.com/steam/apps/{app_id}/header.jpg",
        "short_description": f"Description of game {app_id}.",
        "genres": [{"id": "1", "description": "Action"}],
        "release_date": {"coming_soon": False, "date": "21 Aug, 2012"},
        "price_overview": {"currency": "USD", "final": 1999, "final_formatted": "$19.99"},
        "recommendations": {"total": 5000},
        "metacritic": {"score": 80},
        "developers": ["Test Developer"],
        "publishers": ["Test Publisher"],
    }
    game.update(overrides)
    return game


def make_review(recommendation_id: str, **overrides: Any) -> Dict[str, Any]:
    review = {
        "recommendationid": recommendation_id,
        "author": {
            "steamid": f"7656119{recommendation_id}",
            "num_reviews": 5,
            "playtime_at_review": 600,
            "playtime_last_two_weeks": 0,
        },
        "review": f"Review text {recommendation_id}",
        "timestamp_created": 1700000000,
        "voted_up": True,
        "votes_up": 0,
        "votes_funny": 0,
        "steam_purchase": True,
    }
    review.update(overrides)
    return review


DEFAULT_SUMMARY = {
    "num_reviews": 100,
    "review_score": 8,
    "review_score_desc": "Very Positive",
    "total_positive": 80,
    "total_negative": 20,
    "total_reviews": 100,
}


class FakeCatalogClient:
    """In-memory stand-in for SteamStoreClient.

    Method names listed in ``failures`` raise UpstreamTransientError; every
    call is recorded in ``calls`` as ``(method, args)``.
    """

    def __init__(self, games: Iterable[Dict[str, Any]] = (), reviews: Optional[Dict[int, List[Dict[str, Any]]]] = None,
                 summary: Optional[Dict[str, Any]] = None) -> None:
        self.games = list(games)
        self.reviews = reviews or {}
        self.summary = DEFAULT_SUMMARY if summary is None else summary
        self.failures: set = set()
        self.calls: List[tuple] = []

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.failures:
            raise UpstreamTransientError(f"{method} failed")

    def called(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    def get_popular_games(self, limit: int) -> List[Dict[str, Any]]:
        self._record("get_popular_games", limit)
        return self.games[:limit]

    def get_trending_games(self, limit: int) -> List[Dict[str, Any]]:
        self._record("get_trending_games", limit)
        return self.games[:limit]

    def get_top_rated_games(self, limit: int) -> List[Dict[str, Any]]:
        self._record("get_top_rated_games", limit)
        return self.games[:limit]

    def get_new_releases(self, limit: int) -> List[Dict[str, Any]]:
        self._record("get_new_releases", limit)
        return self.games[:limit]

    def get_games_by_genre(self, genre_id: str, limit: int) -> List[Dict[str, Any]]:
        self._record("get_games_by_genre", genre_id, limit)
        matches = [g for g in self.games if matches_genre(g, genre_id)]
        return matches[:limit]

    def search_games(self, query: str, limit: int) -> List[Dict[str, Any]]:
        self._record("search_games", query, limit)
        return [g for g in self.games if query.lower() in str(g.get("name", "")).lower()][:limit]

    def get_game_details(self, app_id: int) -> Optional[Dict[str, Any]]:
        self._record("get_game_details", app_id)
        for game in self.games:
            if game.get("appid") == app_id:
                return dict(game)
        return None

    def get_game_reviews(self, app_id: int, cursor: str = "*", review_type: str = "all",
                         purchase_type: str = "all") -> Dict[str, Any]:
        self._record("get_game_reviews", app_id, cursor, review_type, purchase_type)
        return {"reviews": list(self.reviews.get(app_id, [])), "cursor": "next-cursor", "query_summary": dict(self.summary)}

    def get_related_games(self, app_id: int, limit: int) -> List[Dict[str, Any]]:
        self._record("get_related_games", app_id, limit)
        return self.games[:limit]


@pytest.fixture
def fake_client() -> FakeCatalogClient:
    """Catalog with ten ordinary games (ids 101..110)."""
    return FakeCatalogClient(games=[make_raw_game(app_id) for app_id in range(101, 111)])


@pytest.fixture
def client(fake_client: FakeCatalogClient):
    """TestClient wired to ``fake_client`` instead of the Steam store."""
    app.dependency_overrides[get_catalog_client] = lambda: fake_client
    yield TestClient(app)
    app.dependency_overrides.clear()


class FakeTransport:
    """Async transport answering from a path -> response table.

    A response may be an exception instance (raised), a callable taking the
    path, or a list consumed one item per call.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None, default: Any = None) -> None:
        self.responses = responses or {}
        self.default = default
        self.calls: List[str] = []

    async def get_json(self, path: str) -> Any:
        self.calls.append(path)
        response = self.responses.get(path, self.default)
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if callable(response):
            response = response(path)
        if isinstance(response, BaseException):
            raise response
        return response


def envelope(*game_ids: int, **extra: Any) -> Dict[str, Any]:
    body = {"success": True, "data": [{"id": game_id, "name": f"Game {game_id}"} for game_id in game_ids],
            "count": len(game_ids)}
    body.update(extra)
    return body
