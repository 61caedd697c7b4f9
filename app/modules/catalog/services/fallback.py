"""Synthetic catalog data served when the Steam store cannot be reached.

Degradation has three tiers, each represented by its own result type:

* ``Authoritative`` - real, formatted upstream data.
* ``Synthetic`` - procedurally generated records, bounded by a per-kind cap
  and deterministic in ``(kind, index)``.
* ``Minimal`` - a single hard-coded record, used only if synthesis fails.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, List, Optional, Union

from app.core.config import LIST_FALLBACK_CAP, RELATED_FALLBACK_CAP, STEAM_CDN_URL
from app.core.errors import SynthesisFailure
from app.modules.catalog.schemas.game_dto import GameRecord

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Using fallback data due to Steam API issues"
MINIMAL_MESSAGE = "Using minimal fallback data"
NEW_RELEASE_ANCHOR = date(2024, 1, 1)


@dataclass(frozen=True)
class FallbackProfile:
    base_id: int
    name_prefix: str
    rating: Callable[[int], float]
    review_count: Callable[[int], int]
    price: Callable[[int], str]
    tags: List[str]
    description: str
    release_date: Callable[[int], str] = lambda i: "2023-01-01"
    developer: str = "Game Developer"
    publisher: str = "Game Publisher"
    cap: int = LIST_FALLBACK_CAP


def _alternating_free(period: int, start: float, step: float) -> Callable[[int], str]:
    def price(i: int) -> str:
        if i % period == 0:
            return "Free to Play"
        return f"${max(9.99, start - i * step):.2f}"
    return price


PROFILES = {
    "popular": FallbackProfile(
        base_id=730,
        name_prefix="Popular Game",
        rating=lambda i: round(4.0 + (i % 5) * 0.1, 2),
        review_count=lambda i: 1000 + i * 100,
        price=_alternating_free(3, 39.99, 2),
        tags=["Action", "Multiplayer"],
        description="A popular Steam game with engaging gameplay.",
    ),
    "trending": FallbackProfile(
        base_id=1000000,
        name_prefix="Trending Game",
        rating=lambda i: round(4.1 + (i % 4) * 0.1, 2),
        review_count=lambda i: 5000 + i * 250,
        price=_alternating_free(4, 29.99, 1.5),
        tags=["Action", "Adventure"],
        description="A game that is trending on Steam right now.",
    ),
    "top-rated": FallbackProfile(
        base_id=292030,
        name_prefix="Top Rated Game",
        rating=lambda i: round(4.8 - (i % 8) * 0.1, 2),
        review_count=lambda i: 10000 + i * 500,
        price=lambda i: f"${max(9.99, 59.99 - i * 3):.2f}",
        tags=["RPG", "Story Rich", "Open World"],
        description="A critically acclaimed game with exceptional ratings.",
        release_date=lambda i: "2022-01-01",
        developer="Top Developer",
        publisher="Top Publisher",
    ),
    "new-releases": FallbackProfile(
        base_id=3000000,
        name_prefix="New Release Game",
        rating=lambda i: round(4.0 + (i % 3) * 0.2, 2),
        review_count=lambda i: 100 + i * 50,
        price=lambda i: "Free to Play" if i % 2 == 0 else f"${19.99 + i * 5:.2f}",
        tags=["Action", "Adventure", "Indie"],
        description="A recently released game with fresh gameplay and modern features.",
        release_date=lambda i: (NEW_RELEASE_ANCHOR - timedelta(weeks=i)).isoformat(),
        developer="New Developer",
        publisher="New Publisher",
    ),
    "category": FallbackProfile(
        base_id=2000000,
        name_prefix="Category Game",
        rating=lambda i: round(3.8 + (i % 6) * 0.1, 2),
        review_count=lambda i: 2000 + i * 150,
        price=_alternating_free(4, 49.99, 2.5),
        tags=["Indie"],
        description="A popular game in this category on Steam.",
    ),
    "search": FallbackProfile(
        base_id=4000000,
        name_prefix="Search Result",
        rating=lambda i: round(3.5 + (i % 5) * 0.1, 2),
        review_count=lambda i: 500 + i * 50,
        price=_alternating_free(3, 24.99, 1),
        tags=["Action"],
        description="A Steam game matching your search.",
    ),
    "related": FallbackProfile(
        base_id=570,
        name_prefix="Related Game",
        rating=lambda i: round(4.0 + (i % 5) * 0.1, 2),
        review_count=lambda i: 1000 + i * 100,
        price=_alternating_free(3, 39.99, 2),
        tags=["Action", "Adventure"],
        description="A game similar to what you're viewing.",
        cap=RELATED_FALLBACK_CAP,
    ),
}


def _image(app_id: int) -> str:
    return f"{STEAM_CDN_URL}/{app_id}/header.jpg"


MINIMAL_RECORDS = {
    "popular": GameRecord(
        id=730, name="Counter-Strike 2", image=_image(730), rating=4.5, review_count=2000000,
        price="Free to Play", tags=["Action", "FPS", "Multiplayer"], release_date="2023-09-27",
        description="The world's most popular FPS game.", developers=["Valve"], publishers=["Valve"],
    ),
    "top-rated": GameRecord(
        id=292030, name="The Witcher 3: Wild Hunt", image=_image(292030), rating=4.9, review_count=500000,
        price="$39.99", tags=["RPG", "Open World", "Story Rich"], release_date="2015-05-18",
        description="Award-winning open world RPG with incredible story and gameplay.",
        developers=["CD PROJEKT RED"], publishers=["CD PROJEKT RED"],
    ),
    "new-releases": GameRecord(
        id=3000000, name="Recent Game", image=_image(730), rating=4.0, review_count=1000,
        price="$19.99", tags=["Action"], release_date=NEW_RELEASE_ANCHOR.isoformat(),
        description="A recently released game.", developers=["Developer"], publishers=["Publisher"],
    ),
    "related": GameRecord(
        id=570, name="Dota 2", image=_image(570), rating=4.2, review_count=2000000,
        price="Free to Play", tags=["Action", "Strategy", "Multiplayer"], release_date="2013-07-09",
        description="A popular MOBA game.", developers=["Valve"], publishers=["Valve"],
    ),
}


@dataclass
class Authoritative:
    games: List[GameRecord] = field(default_factory=list)
    is_fallback = False
    message: Optional[str] = None


@dataclass
class Synthetic:
    games: List[GameRecord] = field(default_factory=list)
    is_fallback = True
    message: Optional[str] = FALLBACK_MESSAGE


@dataclass
class Minimal:
    games: List[GameRecord] = field(default_factory=list)
    is_fallback = True
    message: Optional[str] = MINIMAL_MESSAGE


AggregationResult = Union[Authoritative, Synthetic, Minimal]


def fallback_cap(kind: str) -> int:
    return _profile(kind).cap


def synthesize(kind: str, requested_limit: int) -> List[GameRecord]:
    """Generate ``min(requested_limit, cap)`` synthetic records for ``kind``."""
    profile = _profile(kind)
    size = min(max(1, requested_limit), profile.cap)
    try:
        return [_synthetic_record(profile, i) for i in range(size)]
    except Exception as exc:
        raise SynthesisFailure(f"Could not synthesize {kind} fallback data: {exc}") from exc


def minimal_record(kind: str) -> GameRecord:
    return MINIMAL_RECORDS.get(kind, MINIMAL_RECORDS["popular"]).model_copy(deep=True)


def degrade(kind: str, requested_limit: int) -> Union[Synthetic, Minimal]:
    """Run the synthetic and minimal tiers. Never raises."""
    try:
        return Synthetic(games=synthesize(kind, requested_limit))
    except Exception:
        logger.error("Fallback synthesis failed for %s, serving minimal record", kind, exc_info=True)
        return Minimal(games=[minimal_record(kind)])


def _profile(kind: str) -> FallbackProfile:
    try:
        return PROFILES[kind]
    except KeyError:
        raise SynthesisFailure(f"Unknown fallback kind: {kind}") from None


def _synthetic_record(profile: FallbackProfile, i: int) -> GameRecord:
    app_id = profile.base_id + i
    return GameRecord(
        id=app_id,
        name=f"{profile.name_prefix} {i + 1}",
        image=_image(app_id),
        rating=profile.rating(i),
        review_count=profile.review_count(i),
        price=profile.price(i),
        tags=list(profile.tags),
        release_date=profile.release_date(i),
        description=profile.description,
        developers=[profile.developer],
        publishers=[profile.publisher],
    )
