import logging
import math
import time
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from fastapi.concurrency import run_in_threadpool

from app.core.config import (
    BEST_REVIEWS_GAMES_SCANNED,
    BEST_REVIEWS_SOURCE_GAMES,
    MAX_BEST_REVIEWS_PER_GAME,
    REVIEW_IDS_SOURCE_GAMES,
)
from app.core.errors import NotFoundError, UpstreamTransientError, ValidationError
from app.modules.catalog.schemas.review_dto import ReviewGameInfo, ReviewListResponse
from app.modules.catalog.services.review_ids import (
    REVIEW_ID_PREFIX,
    attach_review_ids,
    is_valid_review_id,
    parse_review_id,
)
from app.modules.catalog.services.steam_client import CatalogClient

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

SORT_KEYS = {
    "helpful": lambda review: _number(review.get("votes_up")),
    "recent": lambda review: _number(review.get("timestamp_created")),
    "funny": lambda review: _number(review.get("votes_funny")),
    "quality": lambda review: review.get("quality_score", 0),
}
REVIEW_TYPES = ("all", "positive", "negative")
PURCHASE_TYPES = ("all", "steam", "non_steam_purchase")


def helpfulness_ratio(review: Mapping[str, Any]) -> float:
    votes_up = _number(review.get("votes_up"))
    total = votes_up + _number(review.get("votes_funny"))
    return votes_up / total if votes_up > 0 and total > 0 else 0.0


def quality_score(review: Mapping[str, Any]) -> float:
    """Heuristic usefulness score: text length, votes, author credibility, awards."""
    return max(0.0, _base_score(review))


def best_quality_score(review: Mapping[str, Any], now: Optional[float] = None) -> float:
    """``quality_score`` plus recency and content heuristics, used to rank reviews across games."""
    text = str(review.get("review") or "")
    score = _base_score(review) + _recency_bonus(review, time.time() if now is None else now)
    score += _content_bonus(text.lower(), len(text))
    return max(0.0, score)


def basic_quality_score(review: Mapping[str, Any]) -> float:
    """Coarse score listed next to review ids."""
    author = review.get("author") or {}
    score = 10.0
    length = len(str(review.get("review") or ""))
    if length > 500:
        score += 30
    elif length > 200:
        score += 20
    elif length > 100:
        score += 10

    votes_up = _number(review.get("votes_up"))
    if votes_up > 50:
        score += 20
    elif votes_up > 20:
        score += 15
    elif votes_up > 10:
        score += 10
    elif votes_up > 5:
        score += 5

    if _number(author.get("num_reviews")) > 10:
        score += 10
    if _number(author.get("playtime_at_review")) > 3600:
        score += 10
    if review.get("steam_purchase"):
        score += 10
    return score


def _base_score(review: Mapping[str, Any]) -> float:
    author = review.get("author") or {}
    score = 10.0

    length = len(str(review.get("review") or ""))
    if length > 500:
        score += 30
    elif length > 200:
        score += 20
    elif length > 100:
        score += 10
    elif length < 50:
        score -= 5

    score += helpfulness_ratio(review) * 25

    votes_up = _number(review.get("votes_up"))
    if votes_up > 100:
        score += 20
    elif votes_up > 50:
        score += 15
    elif votes_up > 20:
        score += 10
    elif votes_up > 10:
        score += 5

    num_reviews = _number(author.get("num_reviews"))
    if num_reviews > 20:
        score += 10
    elif num_reviews > 10:
        score += 5

    hours = _number(author.get("playtime_at_review")) / 60
    if hours > 100:
        score += 15
    elif hours > 50:
        score += 10
    elif hours > 20:
        score += 5
    elif hours < 2:
        score -= 10

    if _number(author.get("playtime_last_two_weeks")) > 0:
        score += 5
    if review.get("steam_purchase"):
        score += 10

    awards = review.get("review_awards") or []
    if awards:
        award_votes = sum(_number(award.get("votes")) for award in awards if isinstance(award, Mapping))
        score += min(award_votes * 2, 20)

    return score


def _recency_bonus(review: Mapping[str, Any], now: float) -> float:
    days_old = (now - _number(review.get("timestamp_created"))) / SECONDS_PER_DAY
    if days_old < 30:
        return 5
    if days_old < 90:
        return 3
    if days_old > 365:
        return -2
    return 0


def _content_bonus(text: str, length: int) -> float:
    score = 0.0
    if any(word in text for word in ("graphics", "gameplay", "story")):
        score += 5
    if "pros" in text and "cons" in text:
        score += 10
    if "recommend" in text or "worth" in text:
        score += 3

    # Low effort: hype scores, shouting, one-liners.
    if "10/10" in text or "100%" in text or text == text.upper():
        score -= 5
    if length < 100 and ("good game" in text or "bad game" in text):
        score -= 10

    positive = any(word in text for word in ("good", "great", "amazing", "love"))
    negative = any(word in text for word in ("bad", "terrible", "awful", "hate", "but", "however"))
    if positive and negative:
        score += 8
    return score


def score_reviews(reviews: List[Mapping[str, Any]], game_id: int) -> List[Dict[str, Any]]:
    """Drop placeholder reviews and attach unique_id, quality_score and helpfulness_ratio."""
    real = [r for r in reviews if isinstance(r, Mapping) and "fallback" not in str(r.get("recommendationid", ""))]
    scored = attach_review_ids(real, game_id)
    for review in scored:
        review["quality_score"] = quality_score(review)
        review["helpfulness_ratio"] = helpfulness_ratio(review)
    return scored


def sort_reviews(reviews: List[Dict[str, Any]], sort: str) -> List[Dict[str, Any]]:
    key = SORT_KEYS.get(sort, SORT_KEYS["helpful"])
    return sorted(reviews, key=key, reverse=True)


async def list_game_reviews(
    client: CatalogClient,
    game_id: int,
    *,
    cursor: str = "*",
    limit: int = 20,
    review_type: str = "all",
    purchase_type: str = "all",
    sort: str = "helpful",
) -> ReviewListResponse:
    game = await _require_game(client, game_id)
    if review_type not in REVIEW_TYPES:
        review_type = "all"
    if purchase_type not in PURCHASE_TYPES:
        purchase_type = "all"
    if sort not in SORT_KEYS:
        sort = "helpful"

    try:
        data = await run_in_threadpool(client.get_game_reviews, game_id, cursor or "*", review_type, purchase_type)
    except Exception as exc:
        logger.error("Error fetching reviews for game %s: %s", game_id, exc)
        raise UpstreamTransientError("Failed to fetch game reviews", data=[]) from exc

    reviews = sort_reviews(score_reviews(data.get("reviews") or [], game_id), sort)[:limit]
    return ReviewListResponse(
        data=reviews,
        cursor=(data.get("cursor") or "") if reviews else "",
        summary=data.get("query_summary") or {},
        game=_game_info(game, game_id),
        sort=sort,
        total=len(reviews),
    )


async def find_review(client: CatalogClient, review_id: str) -> Dict[str, Any]:
    """Resolve a review id by regenerating identifiers for its game's reviews."""
    parsed = parse_review_id(review_id)
    if parsed is None:
        raise ValidationError("Invalid review ID format")

    game = await _require_game(client, parsed.game_id, message="Review not found")
    try:
        data = await run_in_threadpool(client.get_game_reviews, parsed.game_id, "*", "all", "all")
    except Exception as exc:
        logger.error("Error finding review %s: %s", review_id, exc)
        raise UpstreamTransientError("Failed to fetch review") from exc

    for review in score_reviews(data.get("reviews") or [], parsed.game_id):
        if review["unique_id"] == review_id:
            review["game"] = _game_info(game, parsed.game_id).model_dump()
            return review
    raise NotFoundError("Review not found")


def collect_best_reviews(client: CatalogClient, limit: int, now: Optional[float] = None) -> List[Dict[str, Any]]:
    """Highest-scoring reviews across popular games, at most two per game.

    Games whose reviews cannot be fetched are skipped; an unavailable
    catalog yields an empty list.
    """
    try:
        games = client.get_popular_games(BEST_REVIEWS_SOURCE_GAMES)
    except Exception as exc:
        logger.error("Error fetching games for best reviews: %s", exc)
        return []
    if not games:
        logger.warning("No games available for best reviews")
        return []

    now = time.time() if now is None else now
    per_game = max(2, limit * 2 // len(games))
    candidates: List[Dict[str, Any]] = []
    for game in games[:BEST_REVIEWS_GAMES_SCANNED]:
        app_id = game.get("appid")
        try:
            data = client.get_game_reviews(app_id, "*", "all", "all")
            if not data.get("reviews"):
                data = client.get_game_reviews(app_id, "*", "positive", "all")
        except Exception as exc:
            logger.warning("Failed to fetch reviews for game %s: %s", app_id, exc)
            continue

        info = _game_info(game, app_id).model_dump()
        showcase = []
        for review in score_reviews(data.get("reviews") or [], app_id):
            review["quality_score"] = best_quality_score(review, now)
            if _is_showcase(review):
                review["game"] = info
                showcase.append(review)
        candidates.extend(sort_reviews(showcase, "quality")[:per_game])

    best: List[Dict[str, Any]] = []
    taken: Counter = Counter()
    for review in sort_reviews(candidates, "quality"):
        if len(best) >= limit:
            break
        app_id = review["game"]["appid"]
        if taken[app_id] >= MAX_BEST_REVIEWS_PER_GAME:
            continue
        taken[app_id] += 1
        best.append(review)
    logger.info("Selected %d best reviews from %d games", len(best), len(taken))
    return best


def _is_showcase(review: Mapping[str, Any]) -> bool:
    author = review.get("author") or {}
    return (
        review["quality_score"] > 25
        and len(str(review.get("review") or "")) > 50
        and _number(review.get("votes_up")) > 2
        and _number(author.get("playtime_at_review")) > 60
    )


async def best_reviews(client: CatalogClient, limit: int) -> List[Dict[str, Any]]:
    return await run_in_threadpool(collect_best_reviews, client, limit)


def collect_review_ids(client: CatalogClient, limit: int, game_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """Review ids with their metadata, best first.

    With ``game_id`` the ids come from that game alone; otherwise the quota
    is spread over popular games.
    """
    mappings: List[Dict[str, Any]] = []
    if game_id is not None:
        data = client.get_game_reviews(game_id, "*", "all", "all")
        for review in score_reviews(data.get("reviews") or [], game_id)[:limit]:
            mappings.append(_id_mapping(review, game_id, f"Game {game_id}"))
    else:
        games = client.get_popular_games(REVIEW_IDS_SOURCE_GAMES)
        for index, game in enumerate(games):
            if len(mappings) >= limit:
                break
            app_id = game.get("appid")
            try:
                data = client.get_game_reviews(app_id, "*", "all", "all")
            except Exception as exc:
                logger.warning("Error fetching reviews for game %s: %s", app_id, exc)
                continue
            reviews = score_reviews(data.get("reviews") or [], app_id)
            quota = min(len(reviews), math.ceil((limit - len(mappings)) / max(1, len(games) - index)))
            name = game.get("name") or "Unknown Game"
            mappings.extend(_id_mapping(review, app_id, name) for review in reviews[:quota])
    mappings.sort(key=lambda mapping: mapping["quality_score"], reverse=True)
    return mappings


def _id_mapping(review: Mapping[str, Any], game_id: int, game_name: str) -> Dict[str, Any]:
    author = review.get("author") or {}
    return {
        "unique_id": review["unique_id"],
        "game_id": game_id,
        "game_name": game_name,
        "steam_recommendation_id": str(review.get("recommendationid", "")),
        "author_steam_id": str(author.get("steamid", "")),
        "timestamp_created": int(_number(review.get("timestamp_created"))),
        "quality_score": basic_quality_score(review),
        "voted_up": bool(review.get("voted_up")),
        "votes_up": int(_number(review.get("votes_up"))),
    }


async def list_review_ids(client: CatalogClient, limit: int, game_id: Optional[int] = None) -> List[Dict[str, Any]]:
    try:
        return await run_in_threadpool(collect_review_ids, client, limit, game_id)
    except Exception as exc:
        logger.error("Error listing review ids: %s", exc)
        raise UpstreamTransientError("Failed to fetch review IDs") from exc


def validate_review_ids(review_ids: List[Any]) -> List[Dict[str, Any]]:
    return [
        {
            "review_id": review_id,
            "is_valid": parse_review_id(review_id) is not None,
            "format_valid": isinstance(review_id, str) and review_id.startswith(REVIEW_ID_PREFIX)
            and is_valid_review_id(review_id),
        }
        for review_id in review_ids
    ]


async def _require_game(client: CatalogClient, game_id: int, message: str = "Game not found") -> Dict[str, Any]:
    try:
        game = await run_in_threadpool(client.get_game_details, game_id)
    except Exception as exc:
        logger.error("Error fetching game %s: %s", game_id, exc)
        raise UpstreamTransientError("Failed to fetch game details", data=[]) from exc
    if not game:
        raise NotFoundError(message, data=[])
    return game


def _game_info(game: Mapping[str, Any], game_id: int) -> ReviewGameInfo:
    return ReviewGameInfo(
        appid=game.get("appid") or game_id,
        name=game.get("name") or "Unknown Game",
        header_image=game.get("header_image") or "",
        genres=[g for g in game.get("genres") or [] if isinstance(g, dict)],
    )


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0
