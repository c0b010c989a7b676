import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

TAG_FIELDS = ("focuses", "intents", "vibe", "equipment", "contraindications")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, sending exact halves upward (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


class StreamInfo(BaseModel):
    uid: Optional[str] = None
    embed: Optional[str] = None


class CatalogItem(BaseModel):
    """One session from catalog.json. Immutable once loaded."""

    id: str
    title: str = ""
    length_min: int = Field(default=0, ge=0, alias="lengthMin")
    level: str = ""
    focuses: Tuple[str, ...] = ()
    intents: Tuple[str, ...] = ()
    vibe: Tuple[str, ...] = ()
    equipment: Tuple[str, ...] = ()
    contraindications: Tuple[str, ...] = ()
    # Presentation pass-through, never scored
    url: Optional[str] = None
    poster: Optional[str] = None
    stream: Optional[StreamInfo] = None
    notes: Optional[str] = None
    transcript_txt: Optional[str] = Field(default=None, alias="transcriptTxt")
    transcript_vtt: Optional[str] = Field(default=None, alias="transcriptVtt")

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _derive_length(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        length = data.pop("length_min", None)
        if data.get("lengthMin") is None:
            data["lengthMin"] = length
        try:
            if data.get("lengthMin") is None:
                seconds = data.get("durationSec") or data.get("duration_sec") or 0
                data["lengthMin"] = round_half_up(float(seconds) / 60)
            elif isinstance(data["lengthMin"], float):
                data["lengthMin"] = round_half_up(data["lengthMin"])
        except (TypeError, OverflowError) as e:
            # pydantic only reports ValueError as a validation error
            raise ValueError(f"unusable session length: {e}") from e
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("title", "level", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator(*TAG_FIELDS, mode="before")
    @classmethod
    def _as_tag_list(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return (value,)
        if isinstance(value, (list, tuple)):
            return tuple(str(tag) for tag in value if tag is not None)
        return value


class ScoredItem(BaseModel):
    item: CatalogItem
    score: int = 0
    # rule name -> non-zero contribution, only filled when explaining
    breakdown: Optional[Dict[str, int]] = None
    # index in the catalog, breaks score ties; not serialized
    position: int = Field(default=0, exclude=True)


# Request models
class RecommendationRequest(BaseModel):
    query: str
    filter: str = ""
    limit: Optional[int] = Field(default=None, ge=1, le=10)


class ImportRequest(BaseModel):
    source: Optional[str] = None


# Response models
class RankResponse(BaseModel):
    query: str
    filter: str = ""
    sort: str = "score"
    count: int = 0
    items: List[ScoredItem] = []
    recommendations: List[ScoredItem] = []


class RecommendationResponse(BaseModel):
    status: str = "success"
    query: str
    primary: Optional[ScoredItem] = None
    secondary: Optional[ScoredItem] = None
    recommendations: List[ScoredItem] = []


class CheckIn(BaseModel):
    id: int
    query: str
    recommended_id: Optional[str] = None
    score: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ImportResponse(BaseModel):
    status: str
    source: str
    videos: int
    transcripts: int
    skipped: int


# Error responses
class ErrorResponse(BaseModel):
    detail: str


# API status
class HealthCheck(BaseModel):
    status: str
    version: str
    database_status: str
    catalog_size: int
