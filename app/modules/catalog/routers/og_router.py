import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, RedirectResponse

from app.core.errors import ValidationError
from app.modules.catalog.services.aggregator import parse_game_id
from app.modules.catalog.services.formatter import format_game
from app.modules.catalog.services.steam_client import CatalogClient, get_catalog_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/og", tags=["og"])

PLACEHOLDER_IMAGE = "/placeholder.svg"


@router.get("/game/{game_id}")
async def game_og_image(game_id: str, client: CatalogClient = Depends(get_catalog_client)):
    """Social preview image: redirect to the game's header image when it has one."""
    try:
        app_id = parse_game_id(game_id)
    except ValidationError as exc:
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    try:
        raw = await run_in_threadpool(client.get_game_details, app_id)
    except Exception as exc:
        logger.error("Error generating OG image for game %s: %s", app_id, exc)
        return PlainTextResponse("Failed to generate Open Graph image", status_code=503)
    if not raw:
        return PlainTextResponse("Game not found", status_code=404)

    game = format_game(raw)
    if game.image and game.image != PLACEHOLDER_IMAGE:
        return RedirectResponse(game.image, status_code=302)
    return PlainTextResponse(f"Open Graph image for {game.name}")
