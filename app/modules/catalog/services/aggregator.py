import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool

from app.core.errors import UpstreamTransientError, ValidationError
from app.modules.catalog.schemas.envelope_dto import ResponseEnvelope
from app.modules.catalog.schemas.game_dto import GameRecord
from app.modules.catalog.services.fallback import AggregationResult, Authoritative, degrade
from app.modules.catalog.services.formatter import apply_review_score, format_game
from app.modules.catalog.services.steam_client import CatalogClient

logger = logging.getLogger(__name__)


def parse_game_id(raw: Any, *, data: Any = None) -> int:
    """Accept only positive decimal ids; anything else is a client error."""
    text = str(raw).strip() if raw is not None else ""
    if not text.isdigit() or not text.isascii() or int(text) <= 0:
        raise ValidationError("Invalid game ID", data=data)
    return int(text)


def coerce_limit(raw: Optional[str], default: int, maximum: int) -> int:
    try:
        limit = int(str(raw).strip()) if raw is not None else default
    except ValueError:
        limit = default
    return max(1, min(limit, maximum))


def format_games(raw_games: Any, limit: int, keep: Optional[Callable[[GameRecord], bool]] = None) -> List[GameRecord]:
    """Format, drop invalid (id 0) records, filter, then truncate to ``limit``."""
    if not isinstance(raw_games, list):
        raise UpstreamTransientError(f"Expected a list of games, got {type(raw_games).__name__}")
    games = [game for game in (format_game(raw) for raw in raw_games) if game.id != 0]
    if keep is not None:
        games = [game for game in games if keep(game)]
    return games[:limit]


async def fetch_review_summary(client: CatalogClient, app_id: int) -> Optional[Dict[str, Any]]:
    """Review summary for ``app_id``, or None if it cannot be fetched."""
    try:
        data = await run_in_threadpool(client.get_game_reviews, app_id, "*", "all", "all")
    except Exception as exc:
        logger.warning("Failed to fetch reviews for game %s: %s", app_id, exc)
        return None
    summary = data.get("query_summary") if isinstance(data, dict) else None
    return summary if isinstance(summary, dict) else None


async def enrich_with_review_scores(client: CatalogClient, games: List[GameRecord]) -> List[GameRecord]:
    summaries = await asyncio.gather(*(fetch_review_summary(client, game.id) for game in games))
    return [apply_review_score(game, summary) for game, summary in zip(games, summaries)]


async def aggregate(
    kind: str,
    fetch: Callable[[], Any],
    limit: int,
    *,
    enrich_client: Optional[CatalogClient] = None,
    require_results: bool = False,
    keep: Optional[Callable[[GameRecord], bool]] = None,
) -> AggregationResult:
    """Fetch and format one catalog view, degrading to fallback data on any failure."""
    try:
        raw_games = await run_in_threadpool(fetch)
        games = format_games(raw_games, limit, keep)
        if require_results and not games:
            raise UpstreamTransientError(f"Steam returned no {kind} games")
        if enrich_client is not None:
            games = await enrich_with_review_scores(enrich_client, games)
        return Authoritative(games=games)
    except Exception as exc:
        logger.warning("Error in %s games aggregation, serving fallback data: %s", kind, exc, exc_info=True)
        return degrade(kind, limit)


def to_envelope(result: AggregationResult, **extra: Any) -> ResponseEnvelope:
    return ResponseEnvelope(
        success=True,
        data=result.games,
        count=len(result.games),
        fallback=True if result.is_fallback else None,
        message=result.message,
        **extra,
    )
