"""Ready-made resources for each catalog endpoint.

Every factory takes a transport (anything with ``async get_json(path)``;
``None`` means the process-wide aiohttp transport) and the shared
``FetchCache``. Resources built for the same path share one cache entry and
therefore one in-flight request.
"""
from typing import Any, Dict, List, Optional, Union
from urllib.parse import quote, urlencode

from app.core.config import (
    CLIENT_REQUEST_TIMEOUT,
    DEFAULT_BEST_REVIEWS_LIMIT,
    DEFAULT_LIST_LIMIT,
    DEFAULT_RELATED_LIMIT,
    DEFAULT_REVIEW_IDS_LIMIT,
    SEARCH_DEDUPING_INTERVAL,
)
from app.modules.fetch_controller.services.cache import FetchCache
from app.modules.fetch_controller.services.errors import with_timeout
from app.modules.fetch_controller.services.resource import Fetcher, Resource
from app.modules.fetch_controller.services.retry import RetryPolicy
from app.modules.fetch_controller.services.transport import get_default_transport

DEFAULT_RETRIES = 2


class GamesResource(Resource):
    """Resource whose envelope carries a list of games."""

    @property
    def games(self) -> List[Dict[str, Any]]:
        games = self._field("data")
        return games if isinstance(games, list) else []

    @property
    def count(self) -> int:
        return self._field("count") or 0

    @property
    def is_using_fallback(self) -> bool:
        return bool(self._field("fallback"))

    @property
    def source(self) -> str:
        return self._field("source") or "unknown"

    @property
    def message(self) -> Optional[str]:
        return self._field("message")

    def _field(self, name: str) -> Any:
        return self.data.get(name) if isinstance(self.data, dict) else None


class ReviewsResource(Resource):
    """Resource over ``{"reviews": [...], "total": n}`` responses."""

    @property
    def reviews(self) -> List[Dict[str, Any]]:
        reviews = self.data.get("reviews") if isinstance(self.data, dict) else None
        return reviews if isinstance(reviews, list) else []

    @property
    def total(self) -> int:
        total = self.data.get("total") if isinstance(self.data, dict) else None
        return total or len(self.reviews)


class ReviewIdsResource(Resource):
    @property
    def review_ids(self) -> List[Any]:
        ids = self.data.get("review_ids") if isinstance(self.data, dict) else None
        return ids if isinstance(ids, list) else []


def _get_json(transport) -> Fetcher:
    return (transport if transport is not None else get_default_transport()).get_json


def popular_games(transport, cache: FetchCache, limit: int = DEFAULT_LIST_LIMIT) -> GamesResource:
    return GamesResource(f"/games/popular?limit={limit}", _get_json(transport), cache=cache,
                         retry_policy=RetryPolicy(max_retries=2))


def trending_games(transport, cache: FetchCache, limit: int = DEFAULT_LIST_LIMIT) -> GamesResource:
    return GamesResource(f"/games/trending?limit={limit}", _get_json(transport), cache=cache,
                         retry_policy=RetryPolicy(max_retries=3))


def top_rated_games(transport, cache: FetchCache, limit: int = DEFAULT_LIST_LIMIT,
                    timeout: float = CLIENT_REQUEST_TIMEOUT) -> GamesResource:
    get_json = _get_json(transport)

    async def fetch(path: str) -> Any:
        return await with_timeout(lambda: get_json(path), timeout)

    return GamesResource(f"/games/top-rated?limit={limit}", fetch, cache=cache,
                         retry_policy=RetryPolicy(max_retries=3), revalidate_on_reconnect=True)


def new_release_games(transport, cache: FetchCache, limit: int = DEFAULT_LIST_LIMIT) -> GamesResource:
    return GamesResource(f"/games/new-releases?limit={limit}", _get_json(transport), cache=cache,
                         retry_policy=RetryPolicy(max_retries=2))


def search_games(transport, cache: FetchCache, query: str, limit: int = DEFAULT_LIST_LIMIT) -> GamesResource:
    key = f"/games/search?q={quote(query.strip())}&limit={limit}" if query.strip() else None
    return GamesResource(key, _get_json(transport), cache=cache, deduping_interval=SEARCH_DEDUPING_INTERVAL,
                         retry_policy=RetryPolicy(max_retries=DEFAULT_RETRIES))


def games_by_category(transport, cache: FetchCache, category: str, limit: int = DEFAULT_LIST_LIMIT,
                      search: str = "") -> GamesResource:
    return GamesResource(category_path(category, limit, search), _get_json(transport), cache=cache,
                         retry_policy=RetryPolicy(max_retries=DEFAULT_RETRIES))


def related_games(transport, cache: FetchCache, game_id: Union[int, str, None],
                  limit: int = DEFAULT_RELATED_LIMIT) -> GamesResource:
    key = f"/games/{game_id}/related?limit={limit}" if game_id else None
    return GamesResource(key, _get_json(transport), cache=cache,
                         retry_policy=RetryPolicy(max_retries=DEFAULT_RETRIES))


def game_details(transport, cache: FetchCache, game_id: Union[int, str, None]) -> Resource:
    key = f"/games/{game_id}" if game_id else None
    return Resource(key, _get_json(transport), cache=cache, retry_policy=RetryPolicy(max_retries=DEFAULT_RETRIES))


def game_reviews(transport, cache: FetchCache, game_id: Union[int, str, None], cursor: str = "*") -> Resource:
    key = f"/games/{game_id}/reviews?cursor={quote(cursor)}" if game_id else None
    return Resource(key, _get_json(transport), cache=cache, retry_policy=RetryPolicy(max_retries=DEFAULT_RETRIES))


def best_reviews(transport, cache: FetchCache, limit: int = DEFAULT_BEST_REVIEWS_LIMIT) -> ReviewsResource:
    return ReviewsResource(f"/reviews/best?limit={limit}", _get_json(transport), cache=cache,
                           retry_policy=RetryPolicy(max_retries=DEFAULT_RETRIES))


def review_ids(transport, cache: FetchCache, limit: int = DEFAULT_REVIEW_IDS_LIMIT,
               game_id: Union[int, str, None] = None, metadata: bool = False) -> ReviewIdsResource:
    params: Dict[str, Any] = {"limit": limit}
    if game_id:
        params["game_id"] = game_id
    if metadata:
        params["metadata"] = "true"
    return ReviewIdsResource(f"/reviews/ids?{urlencode(params)}", _get_json(transport), cache=cache,
                             retry_policy=RetryPolicy(max_retries=DEFAULT_RETRIES))


def category_path(category: str, limit: int, search: str = "") -> str:
    path = f"/games/category/{quote(category)}?limit={limit}"
    if search.strip():
        path += f"&search={quote(search.strip())}"
    return path
