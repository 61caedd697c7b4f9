import asyncio
import logging
from functools import partial
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.concurrency import run_in_threadpool

from app.core.config import (
    DEFAULT_LIST_LIMIT,
    DEFAULT_RELATED_LIMIT,
    MAX_LIST_LIMIT,
    MAX_RELATED_LIMIT,
    OVERFETCH_FACTOR,
)
from app.core.errors import NotFoundError, UpstreamTransientError, ValidationError
from app.modules.catalog.schemas.envelope_dto import ResponseEnvelope
from app.modules.catalog.schemas.game_dto import GameDetail
from app.modules.catalog.services.aggregator import (
    aggregate,
    coerce_limit,
    fetch_review_summary,
    parse_game_id,
    to_envelope,
)
from app.modules.catalog.services.category_map import lookup_category
from app.modules.catalog.services.formatter import apply_review_score, build_review_breakdown, format_game
from app.modules.catalog.services.steam_client import CatalogClient, get_catalog_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/games", tags=["games"])

TRENDING_SOURCE = "steam-trending-algorithm"
TRENDING_ALGORITHM = "popularity + recency + metacritic + discounts"


@router.get("/popular")
async def popular_games(limit: Optional[str] = None, client: CatalogClient = Depends(get_catalog_client)) -> Dict[str, Any]:
    size = coerce_limit(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT)
    result = await aggregate(
        "popular",
        partial(client.get_popular_games, size * OVERFETCH_FACTOR),
        size,
        enrich_client=client,
        require_results=True,
    )
    return to_envelope(result).to_payload()


@router.get("/featured")
async def featured_games(category: str = "popular", limit: Optional[str] = None,
                         client: CatalogClient = Depends(get_catalog_client)) -> Dict[str, Any]:
    """Featured shelf. Every shelf is currently served from the popular listing."""
    size = coerce_limit(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT)
    result = await aggregate("popular", partial(client.get_popular_games, size * OVERFETCH_FACTOR), size,
                             require_results=True)
    return to_envelope(result, category=category or "popular").to_payload()


@router.get("/trending")
async def trending_games(limit: Optional[str] = None, client: CatalogClient = Depends(get_catalog_client)) -> Dict[str, Any]:
    size = coerce_limit(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT)
    result = await aggregate(
        "trending",
        partial(client.get_trending_games, size * OVERFETCH_FACTOR),
        size,
        enrich_client=client,
        require_results=True,
    )
    return to_envelope(result, source=TRENDING_SOURCE, algorithm=TRENDING_ALGORITHM).to_payload()


@router.get("/top-rated")
async def top_rated_games(limit: Optional[str] = None, client: CatalogClient = Depends(get_catalog_client)) -> Dict[str, Any]:
    # Already ranked by rating score upstream; no per-game review lookups.
    size = coerce_limit(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT)
    result = await aggregate(
        "top-rated",
        partial(client.get_top_rated_games, size * OVERFETCH_FACTOR),
        size,
        require_results=True,
    )
    return to_envelope(result).to_payload()


@router.get("/new-releases")
async def new_release_games(limit: Optional[str] = None, client: CatalogClient = Depends(get_catalog_client)) -> Dict[str, Any]:
    size = coerce_limit(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT)
    result = await aggregate(
        "new-releases",
        partial(client.get_new_releases, size * OVERFETCH_FACTOR),
        size,
        enrich_client=client,
        require_results=True,
    )
    return to_envelope(result).to_payload()


@router.get("/search")
async def search_games(
    q: Optional[str] = Query(default=None),
    limit: Optional[str] = None,
    client: CatalogClient = Depends(get_catalog_client),
) -> Dict[str, Any]:
    query = (q or "").strip()
    if not query:
        raise ValidationError("Search query is required", data=[])
    size = coerce_limit(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT)
    result = await aggregate(
        "search",
        partial(client.search_games, query, size * OVERFETCH_FACTOR),
        size,
        enrich_client=client,
    )
    return to_envelope(result, query=query).to_payload()


@router.get("/category/{category}")
async def games_by_category(
    category: str,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    client: CatalogClient = Depends(get_catalog_client),
) -> Dict[str, Any]:
    info = lookup_category(category)
    if info is None:
        raise ValidationError(f"Invalid category: {category}", data=[], extra={"count": 0})
    size = coerce_limit(limit, DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT)
    needle = (search or "").strip().lower()
    result = await aggregate(
        "category",
        partial(client.get_games_by_genre, info.genre_id, size * OVERFETCH_FACTOR),
        size,
        keep=(lambda game: needle in game.name.lower()) if needle else None,
    )
    return to_envelope(
        result,
        category=category,
        description=info.description,
        representative_image=info.representative_image,
        header_image=info.header_image,
    ).to_payload()


@router.get("/{game_id}")
async def game_details(game_id: str, client: CatalogClient = Depends(get_catalog_client)) -> Dict[str, Any]:
    app_id = parse_game_id(game_id)
    raw, summary = await asyncio.gather(_fetch_details(client, app_id), fetch_review_summary(client, app_id))
    if not raw:
        raise NotFoundError("Game not found")
    record = format_game(raw)
    if record.id == 0:
        raise NotFoundError("Game not found")
    record = apply_review_score(record, summary)
    detail = GameDetail(**record.model_dump(), review_breakdown=build_review_breakdown(summary))
    return ResponseEnvelope(success=True, data=detail).to_payload()


@router.get("/{game_id}/related")
async def related_games(
    game_id: str,
    limit: Optional[str] = None,
    client: CatalogClient = Depends(get_catalog_client),
) -> Dict[str, Any]:
    app_id = parse_game_id(game_id, data=[])
    size = coerce_limit(limit, DEFAULT_RELATED_LIMIT, MAX_RELATED_LIMIT)
    result = await aggregate(
        "related",
        partial(client.get_related_games, app_id, size * OVERFETCH_FACTOR),
        size,
        enrich_client=client,
        keep=lambda game: game.id != app_id,
    )
    return to_envelope(result).to_payload()


async def _fetch_details(client: CatalogClient, app_id: int) -> Optional[Dict[str, Any]]:
    try:
        return await run_in_threadpool(client.get_game_details, app_id)
    except Exception as exc:
        logger.error("Error fetching details for game %s: %s", app_id, exc)
        raise UpstreamTransientError("Failed to fetch game details") from exc
