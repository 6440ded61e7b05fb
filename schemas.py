"""Request, result and error payloads exchanged with API callers."""
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def utc_timestamp() -> str:
    """ISO-8601 UTC with milliseconds, e.g. ``2024-05-01T12:00:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class StoredImage(BaseModel):
    name: str
    path: str
    size: int


class ExtractedText(CamelModel):
    """OCR output. Counts are always derived from ``raw``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    raw: str
    word_count: int = 0
    character_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def _derive_counts(cls, data: Any) -> Any:
        if isinstance(data, dict):
            raw = data.get("raw", "")
            if isinstance(raw, str):
                data = {
                    "raw": raw,
                    "word_count": len(raw.split()),
                    "character_count": len(raw),
                }
        return data

    @classmethod
    def from_raw(cls, raw: str) -> "ExtractedText":
        return cls(raw=raw)


class AnalysisResult(CamelModel):
    """Model-declared analysis. Values are free text; the model is not trusted to type them."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    summary: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)
    sentiment: Optional[str] = None
    topics: List[str] = Field(default_factory=list)
    language: Optional[str] = None
    confidence: Optional[str] = None
    timestamp: Optional[str] = None

    @field_validator("summary", "sentiment", "language", "confidence", mode="before")
    @classmethod
    def _scalar_as_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float, bool)):
            return str(value)
        return json.dumps(value, ensure_ascii=False)

    @field_validator("key_points", "topics", mode="before")
    @classmethod
    def _items_as_text(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in value if item is not None]


class AnswerResult(CamelModel):
    answer: str
    evidence: List[str] = Field(default_factory=list)
    confidence: str = "Low"
    related_topics: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)


class QuestionRequest(CamelModel):
    """Body of /chat and /ask. Fields are optional so absence maps to a 400."""

    question: Optional[str] = None
    analysis_context: Optional[Any] = None


class ErrorDetail(BaseModel):
    type: str
    details: Optional[str] = None
    timestamp: str = Field(default_factory=utc_timestamp)


class ErrorResponse(BaseModel):
    status: str = "error"
    message: str
    error: ErrorDetail
