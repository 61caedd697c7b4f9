import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Cargar variables de entorno desde .env
load_dotenv()

from app.core.config import LOG_LEVEL
from app.core.errors import CatalogError
from app.modules.catalog.routers.games_router import router as games_router
from app.modules.catalog.routers.og_router import router as og_router
from app.modules.catalog.routers.reviews_router import router as reviews_router
from app.modules.catalog.schemas.envelope_dto import ResponseEnvelope

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Game Catalog Aggregation - Backend", version="0.3.0")


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    envelope = ResponseEnvelope(success=False, error=exc.message, data=exc.data, **exc.extra)
    return JSONResponse(status_code=exc.status_code, content=envelope.to_payload())


@app.on_event("startup")
async def startup_event():
    logger.info("Routers registrados: games, reviews, og")


# Static /games/* paths are declared before /games/{game_id} inside games_router.
app.include_router(games_router)
app.include_router(reviews_router)
app.include_router(og_router)


@app.get("/")
@app.head("/")
def read_root():
    return {
        "message": "Game catalog backend running",
        "endpoints": {
            "popular": "/games/popular",
            "trending": "/games/trending",
            "top-rated": "/games/top-rated",
            "new-releases": "/games/new-releases",
            "search": "/games/search?q=",
            "category": "/games/category/{category}",
            "details": "/games/{id}",
            "related": "/games/{id}/related",
            "reviews": "/games/{id}/reviews",
            "review": "/reviews/{review_id}",
            "best-reviews": "/reviews/best",
            "review-ids": "/reviews/ids",
            "featured": "/games/featured",
            "og": "/og/game/{id}",
            "docs": "/docs",
            "redoc": "/redoc"
        }
    }


@app.get("/_routes")
def list_routes():
    return {
        "routes": [
            {
                "path": r.path,
                "name": getattr(getattr(r, "endpoint", None), "__name__", None),
                "methods": sorted(getattr(r, "methods", None) or []),
            }
            for r in _walk_routes(app.router.routes)
        ]
    }


def _walk_routes(routes):
    # Newer Starlette/FastAPI releases nest included routers instead of copying their routes.
    for r in routes:
        if getattr(r, "path", None) is not None:
            yield r
            continue
        nested = getattr(r, "routes", None) or getattr(getattr(r, "router", None), "routes", None) or []
        yield from _walk_routes(nested)
