import hashlib
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional

REVIEW_ID_PREFIX = "rv_"
DIGEST_LENGTH = 12
REVIEW_TEXT_PREFIX_LENGTH = 100
_REVIEW_ID_PATTERN = re.compile(r"rv_([0-9]+)_([a-f0-9]{12})")


class ReviewIdComponents(NamedTuple):
    prefix: str
    game_id: int
    digest: str


@dataclass(frozen=True)
class ReviewMetadata:
    id: str
    digest: str
    game_id: int
    is_valid: bool


def generate_review_id(review: Mapping[str, Any], game_id: int) -> str:
    """Derive the shareable identifier of a Steam review.

    The identifier is content-addressed: the same recommendation id, author,
    game, creation timestamp and first 100 UTF-16 code units of text always give the
    same value, and changing any of them gives a different one.
    """
    author = review.get("author") or {}
    hash_input = "|".join([
        str(review.get("recommendationid", "")),
        str(author.get("steamid", "")),
        str(game_id),
        str(review.get("timestamp_created", "")),
        _text_prefix(str(review.get("review") or "")),
    ])
    digest = hashlib.sha256(hash_input.encode("utf-8")).hexdigest()
    return f"{REVIEW_ID_PREFIX}{game_id}_{digest[:DIGEST_LENGTH]}"


def _text_prefix(text: str) -> str:
    # Counted in UTF-16 code units like browser-minted ids; a split surrogate pair hashes as U+FFFD.
    units = text.encode("utf-16-le", errors="surrogatepass")[:REVIEW_TEXT_PREFIX_LENGTH * 2]
    return units.decode("utf-16-le", errors="replace")


def parse_review_id(review_id: Any) -> Optional[ReviewIdComponents]:
    if not isinstance(review_id, str) or not review_id:
        return None
    match = _REVIEW_ID_PATTERN.fullmatch(review_id)
    if not match:
        return None
    return ReviewIdComponents(prefix=REVIEW_ID_PREFIX, game_id=int(match.group(1)), digest=match.group(2))


def is_valid_review_id(review_id: Any) -> bool:
    return parse_review_id(review_id) is not None


def extract_review_metadata(review_id: Any) -> ReviewMetadata:
    parsed = parse_review_id(review_id)
    if parsed is None:
        return ReviewMetadata(id=str(review_id), digest="", game_id=0, is_valid=False)
    return ReviewMetadata(id=review_id, digest=parsed.digest, game_id=parsed.game_id, is_valid=True)


def shorten_review_id(review_id: str, length: int = 10) -> str:
    """Display form, e.g. ``rv_3fa85f6...``. Invalid ids are returned untouched."""
    parsed = parse_review_id(review_id)
    if parsed is None:
        return review_id
    return f"{parsed.prefix}{parsed.digest[:max(1, length - 3)]}..."


def create_review_url(review_id: str, base_url: str = "") -> str:
    return f"{base_url.rstrip('/')}/reviews/{review_id}"


def attach_review_ids(reviews: Iterable[Mapping[str, Any]], game_id: int) -> List[Dict[str, Any]]:
    return [{**review, "unique_id": generate_review_id(review, game_id)} for review in reviews]
