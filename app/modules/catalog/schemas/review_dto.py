from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union


class ReviewGameInfo(BaseModel):
    appid: int
    name: str
    header_image: str = ""
    genres: List[Dict[str, Any]] = Field(default_factory=list)


class ReviewListResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]] = Field(default_factory=list, description="Steam reviews with unique_id, quality_score and helpfulness_ratio")
    cursor: str = ""
    summary: Dict[str, Any] = Field(default_factory=dict)
    game: Optional[ReviewGameInfo] = None
    sort: str = "helpful"
    total: int = 0


class ReviewLookupResponse(BaseModel):
    review: Dict[str, Any]
    message: str = "Review found successfully"


class BestReviewsResponse(BaseModel):
    reviews: List[Dict[str, Any]] = Field(default_factory=list, description="Reviews with game, quality_score and unique_id")
    total: int = 0
    message: str = ""


class ReviewIdMapping(BaseModel):
    unique_id: str
    game_id: int
    game_name: str
    steam_recommendation_id: str
    author_steam_id: str
    timestamp_created: int
    quality_score: float
    voted_up: bool
    votes_up: int


class ReviewIdsResponse(BaseModel):
    review_ids: Union[List[ReviewIdMapping], List[str]] = Field(default_factory=list)
    total: int = 0
    message: str = ""


class ReviewIdsRequest(BaseModel):
    review_ids: Any = None
    action: str = "validate"


class ReviewIdValidation(BaseModel):
    review_id: Any
    is_valid: bool
    format_valid: bool


class ReviewIdValidationResponse(BaseModel):
    validations: List[ReviewIdValidation]
    valid_count: int
    total: int
