import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from app.modules.catalog.schemas.game_dto import GameRecord, ReviewBreakdown

logger = logging.getLogger(__name__)

NON_GAME_TYPES = {"hardware", "tool", "application"}
# Steam store dates come in several locales; anything else is dropped.
RELEASE_DATE_FORMATS = ("%Y-%m-%d", "%d %b, %Y", "%b %d, %Y", "%d %B, %Y", "%B %d, %Y", "%d %b %Y", "%b %Y", "%B %Y")
KNOWN_BRANDS = (("steam", "Valve"), ("valve", "Valve"), ("razer", "Razer"), ("logitech", "Logitech"), ("corsair", "Corsair"), ("steelseries", "SteelSeries"))


def format_game(raw: Any) -> GameRecord:
    """Map one upstream game payload to a GameRecord.

    Never raises: every missing or malformed field falls back to the
    GameRecord default, and a payload that cannot be read at all yields a
    record with the invalid id 0.
    """
    if not isinstance(raw, Mapping):
        return GameRecord()
    try:
        game_type = _text(raw.get("type")) or "game"
        name = _text(raw.get("name")).strip() or "Unknown Game"
        is_non_game = game_type in NON_GAME_TYPES
        return GameRecord(
            id=_game_id(raw),
            name=name,
            type=game_type,
            image=_text(raw.get("header_image")) or "/placeholder.svg",
            rating=None if is_non_game else _rating(raw),
            review_count=max(0, _int(_mapping(raw.get("recommendations")).get("total"))),
            price=_price(raw),
            tags=[tag for tag in (_text(g.get("description")) for g in _mappings(raw.get("genres"))) if tag],
            release_date=_release_date(_mapping(raw.get("release_date")).get("date")),
            description=_description(raw, name, game_type, is_non_game),
            screenshots=_mappings(raw.get("screenshots")),
            movies=_mappings(raw.get("movies")),
            developers=_names(raw, "developers", name, is_non_game),
            publishers=_names(raw, "publishers", name, is_non_game),
        )
    except Exception:
        logger.warning("Could not format upstream game payload (appid=%r)", raw.get("appid"), exc_info=True)
        return GameRecord()


def apply_review_score(record: GameRecord, summary: Optional[Mapping[str, Any]]) -> GameRecord:
    """Prefer the Steam review score (10-point scale) over the estimated rating."""
    score = _int(_mapping(summary).get("review_score"))
    if score <= 0:
        return record
    return record.model_copy(update={"rating": min(5.0, score / 2)})


def build_review_breakdown(summary: Optional[Mapping[str, Any]]) -> Optional[ReviewBreakdown]:
    if not isinstance(summary, Mapping):
        return None
    total = _int(summary.get("total_reviews"))
    positive = _int(summary.get("total_positive"))
    negative = _int(summary.get("total_negative"))
    return ReviewBreakdown(
        total_reviews=total,
        positive_reviews=positive,
        negative_reviews=negative,
        positive_percentage=_percentage(positive, total),
        negative_percentage=_percentage(negative, total),
        review_score=_int(summary.get("review_score")),
        review_score_desc=_text(summary.get("review_score_desc")) or "No reviews",
    )


def _game_id(raw: Mapping[str, Any]) -> int:
    game_id = _int(raw.get("appid")) or _int(raw.get("steam_appid"))
    if game_id <= 0:
        logger.debug("Game %r is missing both appid and steam_appid", raw.get("name"))
        return 0
    return game_id


def _rating(raw: Mapping[str, Any]) -> Optional[float]:
    metacritic = _int(_mapping(raw.get("metacritic")).get("score"))
    if metacritic > 0:
        return min(5.0, metacritic / 20)
    total = _int(_mapping(raw.get("recommendations")).get("total"))
    if total > 0:
        if total > 100000:
            return 4.2
        if total > 50000:
            return 3.8
        if total > 10000:
            return 3.5
        if total > 1000:
            return 3.2
        return 3.0
    coming_soon = bool(_mapping(raw.get("release_date")).get("coming_soon"))
    if _mappings(raw.get("genres")) and not coming_soon:
        return 3.0
    return None


def _price(raw: Mapping[str, Any]) -> str:
    overview = _mapping(raw.get("price_overview"))
    if overview.get("final_formatted"):
        return _text(overview["final_formatted"])
    if (overview and overview.get("final") == 0) or raw.get("is_free"):
        return "Free to Play"
    final = _int(overview.get("final"))
    currency = _text(overview.get("currency"))
    if final and currency:
        amount = final / 100
        if currency == "USD":
            return f"${amount:.2f}"
        return f"{amount:.2f} {currency}"
    return "Price not available"


def _release_date(value: Any) -> str:
    text = _text(value).strip()
    for fmt in RELEASE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return ""


def _description(raw: Mapping[str, Any], name: str, game_type: str, is_non_game: bool) -> str:
    description = _text(raw.get("short_description")).strip()
    if description or not is_non_game:
        return description
    lowered = name.lower()
    if "steam deck" in lowered:
        return ("The Steam Deck is a portable gaming PC developed by Valve. It features a custom AMD APU, "
                "7-inch touchscreen, and full access to your Steam library.")
    if "controller" in lowered or "gamepad" in lowered:
        return "A gaming controller designed for enhanced gameplay experience on Steam."
    if "keyboard" in lowered or "mouse" in lowered:
        return "Gaming peripheral designed for precision and comfort during long gaming sessions."
    if "headset" in lowered or "headphones" in lowered:
        return "Gaming audio device providing immersive sound and clear communication."
    if game_type == "hardware":
        return f"{name} is gaming hardware available on Steam, designed to enhance your gaming experience."
    if game_type == "tool":
        return f"{name} is a development tool or utility available on Steam."
    return f"{name} is an application available on Steam."


def _names(raw: Mapping[str, Any], key: str, name: str, is_non_game: bool) -> List[str]:
    items = raw.get(key)
    values = [v for v in items if isinstance(v, str) and v.strip()] if isinstance(items, list) else []
    if values or not is_non_game:
        return values
    lowered = name.lower()
    for keyword, brand in KNOWN_BRANDS:
        if keyword in lowered:
            return [brand]
    return ["Hardware Manufacturer"]


def _percentage(part: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(math.floor(part * 100 / total + 0.5))


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _mappings(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [dict(item) for item in value if isinstance(item, Mapping)]


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
