import http.client
import json
import logging
import math
import re
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol
from urllib.parse import urlencode

from app.core.config import STEAM_HEADERS, STEAM_STORE_HOST, UPSTREAM_TIMEOUT
from app.core.errors import UpstreamTransientError

logger = logging.getLogger(__name__)

_YEAR_PATTERN = re.compile(r"\b((?:19|20)\d{2})\b")


class CatalogClient(Protocol):
    """Operations the aggregation layer needs from the upstream catalog.

    Every call may be slow and may raise; callers treat each one as fallible.
    """

    def get_popular_games(self, limit: int) -> List[Dict[str, Any]]: ...

    def get_trending_games(self, limit: int) -> List[Dict[str, Any]]: ...

    def get_top_rated_games(self, limit: int) -> List[Dict[str, Any]]: ...

    def get_new_releases(self, limit: int) -> List[Dict[str, Any]]: ...

    def get_games_by_genre(self, genre_id: str, limit: int) -> List[Dict[str, Any]]: ...

    def search_games(self, query: str, limit: int) -> List[Dict[str, Any]]: ...

    def get_game_details(self, app_id: int) -> Optional[Dict[str, Any]]: ...

    def get_game_reviews(self, app_id: int, cursor: str = "*", review_type: str = "all",
                         purchase_type: str = "all") -> Dict[str, Any]: ...

    def get_related_games(self, app_id: int, limit: int) -> List[Dict[str, Any]]: ...


class SteamStoreClient:
    """Steam storefront client (featured categories, appdetails, appreviews, storesearch)."""

    MAX_CANDIDATES = 30
    # Genre listings filter client-side, so they look at every featured section.
    GENRE_CANDIDATES = 100
    GENRE_SECTIONS = ("top_sellers", "specials", "new_releases", "coming_soon")

    def __init__(self, host: str = STEAM_STORE_HOST, timeout: int = UPSTREAM_TIMEOUT) -> None:
        self.host = host
        self.timeout = timeout

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        query = urlencode(params or {}, doseq=True)
        full_path = f"{path}?{query}" if query else path
        conn = http.client.HTTPSConnection(self.host, timeout=self.timeout)
        try:
            conn.request("GET", full_path, headers=STEAM_HEADERS)
            resp = conn.getresponse()
            raw = resp.read()
            if resp.status != 200:
                raise UpstreamTransientError(f"Steam error {resp.status}: {raw[:200].decode(errors='ignore')}")
            return json.loads(raw.decode("utf-8"))
        except (OSError, http.client.HTTPException, ValueError) as exc:
            raise UpstreamTransientError(f"Steam request {path} failed: {exc}") from exc
        finally:
            conn.close()

    def _featured_ids(self, section: str) -> List[int]:
        data = self._get("/api/featuredcategories/")
        items = (data.get(section) or {}).get("items") or []
        if not items:
            raise UpstreamTransientError(f"No {section} found in Steam response")
        return _unique([item.get("id") for item in items])

    def _details_for(self, app_ids: Iterable[int], limit: int,
                     keep: Optional[Callable[[Dict[str, Any]], bool]] = None) -> List[Dict[str, Any]]:
        games: List[Dict[str, Any]] = []
        for app_id in app_ids:
            if len(games) >= limit:
                break
            try:
                game = self.get_game_details(app_id)
            except UpstreamTransientError as exc:
                logger.debug("Skipping app %s: %s", app_id, exc)
                continue
            if game and (keep is None or keep(game)):
                games.append(game)
        return games

    def _candidates(self, limit: int) -> int:
        return min(math.ceil(limit * 1.5), self.MAX_CANDIDATES)

    def get_game_details(self, app_id: int) -> Optional[Dict[str, Any]]:
        data = self._get("/api/appdetails", {"appids": app_id, "cc": "us", "l": "english"})
        info = (data or {}).get(str(app_id)) or {}
        if not info.get("success") or not info.get("data"):
            return None
        game = dict(info["data"])
        game["appid"] = app_id
        game.setdefault("steam_appid", app_id)
        return game

    def get_game_reviews(self, app_id: int, cursor: str = "*", review_type: str = "all",
                         purchase_type: str = "all") -> Dict[str, Any]:
        params = {
            "json": 1,
            "cursor": cursor,
            "language": "english",
            "day_range": "9223372036854775807",
            "review_type": review_type,
            "purchase_type": purchase_type,
            "num_per_page": 100,
        }
        data = self._get(f"/appreviews/{app_id}", params)
        if not data or data.get("success") in (0, False):
            raise UpstreamTransientError(f"Steam returned no reviews payload for {app_id}")
        return {
            "reviews": data.get("reviews") or [],
            "cursor": data.get("cursor") or "",
            "query_summary": data.get("query_summary") or {},
        }

    def get_popular_games(self, limit: int) -> List[Dict[str, Any]]:
        ids = self._featured_ids("top_sellers")
        return self._details_for(ids[:self._candidates(limit)], limit)

    def get_trending_games(self, limit: int) -> List[Dict[str, Any]]:
        data = self._get("/api/featuredcategories/")
        specials = (data.get("specials") or {}).get("items") or []
        top_sellers = (data.get("top_sellers") or {}).get("items") or []
        # Discounted specials weighted 70/30 against top sellers.
        items = specials[:math.ceil(limit * 0.7)] + top_sellers[:math.ceil(limit * 0.3)]
        if not items:
            raise UpstreamTransientError("No trending games found in Steam response")
        ids = _unique([item.get("id") for item in items])
        return self._details_for(ids[:self._candidates(limit)], limit)

    def get_top_rated_games(self, limit: int) -> List[Dict[str, Any]]:
        pool = _unique_games(self.get_popular_games(self.MAX_CANDIDATES) + self.get_trending_games(self.MAX_CANDIDATES))
        scored = [(rating_score(game), game) for game in pool]
        ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: item[0], reverse=True)
        return [game for _, game in ranked[:limit]]

    def get_new_releases(self, limit: int) -> List[Dict[str, Any]]:
        ids = self._featured_ids("new_releases")
        games = self._details_for(ids[:self._candidates(limit)], limit)
        # Higher app ids are generally newer.
        games.sort(key=lambda game: game.get("appid") or 0, reverse=True)
        return games[:limit]

    def get_games_by_genre(self, genre_id: str, limit: int) -> List[Dict[str, Any]]:
        data = self._get("/api/featuredcategories/")
        ids = _unique([item.get("id") for section in self.GENRE_SECTIONS
                       for item in (data.get(section) or {}).get("items") or []])
        if not ids:
            raise UpstreamTransientError("No games found in Steam response")
        return self._details_for(ids[:self.GENRE_CANDIDATES], limit, keep=lambda game: matches_genre(game, genre_id))

    def search_games(self, query: str, limit: int) -> List[Dict[str, Any]]:
        if not query.strip():
            return []
        data = self._get("/api/storesearch/", {"term": query.strip(), "l": "english", "cc": "US"})
        ids = _unique([item.get("id") for item in (data.get("items") or [])])
        return self._details_for(ids[:self._candidates(limit)], limit)

    def get_related_games(self, app_id: int, limit: int) -> List[Dict[str, Any]]:
        current = self.get_game_details(app_id)
        pool = self.get_popular_games(self.MAX_CANDIDATES)
        if not current:
            logger.warning("Could not find details for game %s, falling back to popular games", app_id)
            return pool[:limit]
        scored = [(similarity_score(current, game), game) for game in pool if game.get("appid") != app_id]
        ranked = sorted((item for item in scored if item[0] > 0), key=lambda item: item[0], reverse=True)
        return [game for _, game in ranked[:limit]]


def rating_score(game: Dict[str, Any]) -> float:
    metacritic = (game.get("metacritic") or {}).get("score") or 0
    recommendations = (game.get("recommendations") or {}).get("total") or 0
    score = metacritic * 10.0
    if recommendations:
        score += math.log10(recommendations + 1) * 20
    if metacritic >= 90:
        score *= 1.3
    elif metacritic >= 80:
        score *= 1.1
    if recommendations >= 100000:
        score *= 1.15
    if not metacritic:
        score *= 0.8
    return score


def matches_genre(game: Dict[str, Any], genre: str) -> bool:
    """Exact genre id, or the name appearing in a genre description (case-insensitive)."""
    needle = genre.lower()
    for item in game.get("genres") or []:
        if not isinstance(item, dict):
            continue
        if str(item.get("id")) == genre or needle in str(item.get("description") or "").lower():
            return True
    return False


def similarity_score(first: Dict[str, Any], second: Dict[str, Any]) -> float:
    def common(key: str, attr: Optional[str] = None) -> int:
        def values(game: Dict[str, Any]) -> set:
            items = game.get(key) or []
            if attr:
                return {str(item.get(attr)) for item in items if isinstance(item, dict)}
            return {str(item).lower() for item in items}
        return len(values(first) & values(second))

    score = common("genres", "id") * 50.0
    score += common("developers") * 40
    score += common("publishers") * 30
    score += common("categories", "id") * 20

    first_year = _release_year(first)
    second_year = _release_year(second)
    if first_year and second_year:
        diff = abs(first_year - second_year)
        if diff == 0:
            score += 25
        elif diff == 1:
            score += 15
        elif diff <= 3:
            score += 10

    first_mc = (first.get("metacritic") or {}).get("score")
    second_mc = (second.get("metacritic") or {}).get("score")
    if first_mc and second_mc:
        diff = abs(first_mc - second_mc)
        if diff <= 5:
            score += 15
        elif diff <= 10:
            score += 10
        elif diff <= 20:
            score += 5

    first_recs = (first.get("recommendations") or {}).get("total") or 0
    second_recs = (second.get("recommendations") or {}).get("total") or 0
    if first_recs > 0 and second_recs > 0:
        score += min(first_recs, second_recs) / max(first_recs, second_recs) * 10
    return score


def _release_year(game: Dict[str, Any]) -> Optional[int]:
    text = str((game.get("release_date") or {}).get("date") or "")
    years = _YEAR_PATTERN.findall(text)
    return int(years[-1]) if years else None


def _unique(ids: Iterable[Any]) -> List[int]:
    seen: List[int] = []
    for value in ids:
        if isinstance(value, int) and value > 0 and value not in seen:
            seen.append(value)
    return seen


def _unique_games(games: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    seen = set()
    unique = []
    for game in games:
        if game.get("appid") in seen:
            continue
        seen.add(game.get("appid"))
        unique.append(game)
    return unique


@lru_cache(maxsize=1)
def get_catalog_client() -> CatalogClient:
    """Process-wide upstream client (overridable through ``app.dependency_overrides``)."""
    return SteamStoreClient()
