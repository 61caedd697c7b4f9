from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.config import (
    DEFAULT_BEST_REVIEWS_LIMIT,
    DEFAULT_LIST_LIMIT,
    DEFAULT_REVIEW_IDS_LIMIT,
    MAX_BEST_REVIEWS_LIMIT,
    MAX_REVIEW_IDS_LIMIT,
    MAX_REVIEWS_LIMIT,
)
from app.core.errors import UpstreamTransientError, ValidationError
from app.modules.catalog.schemas.review_dto import (
    BestReviewsResponse,
    ReviewIdsRequest,
    ReviewIdsResponse,
    ReviewIdValidationResponse,
    ReviewListResponse,
    ReviewLookupResponse,
)
from app.modules.catalog.services.aggregator import coerce_limit, parse_game_id
from app.modules.catalog.services.review_service import (
    best_reviews,
    find_review,
    list_game_reviews,
    list_review_ids,
    validate_review_ids,
)
from app.modules.catalog.services.steam_client import CatalogClient, get_catalog_client

router = APIRouter(tags=["reviews"])


@router.get("/games/{game_id}/reviews", response_model=ReviewListResponse)
async def game_reviews(
    game_id: str,
    cursor: str = "*",
    limit: Optional[str] = None,
    review_type: str = Query(default="all", alias="type"),
    purchase: str = "all",
    sort: str = "helpful",
    client: CatalogClient = Depends(get_catalog_client),
) -> ReviewListResponse:
    app_id = parse_game_id(game_id, data=[])
    return await list_game_reviews(
        client,
        app_id,
        cursor=cursor,
        limit=coerce_limit(limit, DEFAULT_LIST_LIMIT, MAX_REVIEWS_LIMIT),
        review_type=review_type,
        purchase_type=purchase,
        sort=sort,
    )


# Fixed /reviews/* paths are declared before /reviews/{review_id}.
@router.get("/reviews/best", response_model=BestReviewsResponse)
async def best_reviews_route(limit: Optional[str] = None,
                             client: CatalogClient = Depends(get_catalog_client)) -> BestReviewsResponse:
    reviews = await best_reviews(client, coerce_limit(limit, DEFAULT_BEST_REVIEWS_LIMIT, MAX_BEST_REVIEWS_LIMIT))
    if not reviews:
        raise UpstreamTransientError(
            "No reviews available",
            data=[],
            extra={"message": "Unable to fetch reviews at this time. Please try again later."},
        )
    return BestReviewsResponse(reviews=reviews, total=len(reviews),
                               message=f"Found {len(reviews)} high-quality reviews")


@router.get("/reviews/ids", response_model=ReviewIdsResponse)
async def review_ids(
    limit: Optional[str] = None,
    game_id: Optional[str] = None,
    metadata: str = "false",
    client: CatalogClient = Depends(get_catalog_client),
) -> ReviewIdsResponse:
    app_id = parse_game_id(game_id) if game_id is not None else None
    mappings = await list_review_ids(client, coerce_limit(limit, DEFAULT_REVIEW_IDS_LIMIT, MAX_REVIEW_IDS_LIMIT), app_id)
    ids = mappings if metadata == "true" else [mapping["unique_id"] for mapping in mappings]
    return ReviewIdsResponse(review_ids=ids, total=len(mappings), message=f"Found {len(mappings)} review IDs")


@router.post("/reviews/ids", response_model=ReviewIdValidationResponse)
async def check_review_ids(body: ReviewIdsRequest) -> ReviewIdValidationResponse:
    if not isinstance(body.review_ids, list):
        raise ValidationError("review_ids must be an array")
    if body.action != "validate":
        raise ValidationError("Invalid action. Supported actions: validate")
    validations = validate_review_ids(body.review_ids)
    return ReviewIdValidationResponse(
        validations=validations,
        valid_count=sum(1 for item in validations if item["is_valid"]),
        total=len(validations),
    )


@router.get("/reviews/{review_id}", response_model=ReviewLookupResponse)
async def review_by_id(review_id: str, client: CatalogClient = Depends(get_catalog_client)) -> ReviewLookupResponse:
    review = await find_review(client, review_id)
    return ReviewLookupResponse(review=review)
