from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional


class GameRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: int = Field(default=0, ge=0, description="Steam app id; 0 marks an unusable record")
    name: str = Field(default="Unknown Game", min_length=1)
    type: str = Field(default="game", description="game, hardware, tool, application...")
    image: str = Field(default="/placeholder.svg")
    rating: Optional[float] = Field(default=None, ge=0, le=5, description="5-star scale, null when unknown")
    review_count: int = Field(default=0, ge=0)
    price: str = Field(default="Price not available", description="'Free to Play' or a formatted amount")
    tags: List[str] = Field(default_factory=list)
    release_date: str = Field(default="", description="ISO date (YYYY-MM-DD) or empty")
    description: str = Field(default="")
    screenshots: List[Dict[str, Any]] = Field(default_factory=list)
    movies: List[Dict[str, Any]] = Field(default_factory=list)
    developers: List[str] = Field(default_factory=list)
    publishers: List[str] = Field(default_factory=list)


class ReviewBreakdown(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_reviews: int = 0
    positive_reviews: int = 0
    negative_reviews: int = 0
    positive_percentage: int = 0
    negative_percentage: int = 0
    review_score: int = 0
    review_score_desc: str = "No reviews"


class GameDetail(GameRecord):
    review_breakdown: Optional[ReviewBreakdown] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(by_alias=True)
        if self.review_breakdown is None:
            payload.pop("reviewBreakdown", None)
        return payload
