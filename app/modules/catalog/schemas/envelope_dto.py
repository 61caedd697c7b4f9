from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Union

from app.modules.catalog.schemas.game_dto import GameDetail, GameRecord


class ResponseEnvelope(BaseModel):
    """Shape shared by every JSON endpoint. Unset optional keys are omitted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    data: Union[List[GameRecord], GameDetail, GameRecord, None] = None
    count: Optional[int] = None
    error: Optional[str] = None
    fallback: Optional[bool] = None
    message: Optional[str] = None
    category: Optional[str] = None
    query: Optional[str] = None
    source: Optional[str] = None
    algorithm: Optional[str] = None
    description: Optional[str] = None
    representative_image: Optional[str] = None
    header_image: Optional[str] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "ResponseEnvelope":
        if not self.success and self.data not in ([], None):
            raise ValueError("failed envelopes carry no data")
        if self.fallback and not self.success:
            raise ValueError("fallback responses are always successful")
        return self

    def to_payload(self) -> Dict[str, Any]:
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"data"})
        payload["data"] = _dump_data(self.data)
        return payload


def _dump_data(data: Any) -> Any:
    if data is None:
        return None
    if isinstance(data, list):
        return [_dump_data(item) for item in data]
    if isinstance(data, GameDetail):
        return data.to_payload()
    return data.model_dump(by_alias=True)
