from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from sentiment_engine.sentiment_types import AnalysisMethod, LanguageCode


class AnalysisOptions(BaseModel):
    """Per-call options; None means "use the engine default"."""

    language: Optional[LanguageCode] = Field(None, description="Language hint, skips detection")
    enable_emotions: Optional[bool] = None
    confidence_threshold: Optional[float] = Field(None, ge=0.0, le=1.0)
    brand_keywords: Optional[list[str]] = None

    @field_validator("brand_keywords")
    @classmethod
    def _clean_brands(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        out: list[str] = []
        for brand in value:
            brand = brand.strip()
            if brand and brand.lower() not in (b.lower() for b in out):
                out.append(brand)
        return out


class AnalysisRequest(BaseModel):
    kind: Literal["analyze"] = "analyze"
    text: str
    mode: Optional[AnalysisMethod] = None
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class BatchAnalysisRequest(BaseModel):
    kind: Literal["batch"] = "batch"
    # None items are accepted; they come back as neutral fallbacks.
    texts: list[Optional[str]] = Field(..., min_length=1)
    mode: Optional[AnalysisMethod] = None
    options: AnalysisOptions = Field(default_factory=AnalysisOptions)


class TrainingItem(BaseModel):
    # Unusable rows are skipped by the trainer, not rejected here.
    text: Optional[str] = None
    label: Optional[str] = None


class TrainingRequest(BaseModel):
    kind: Literal["train"] = "train"
    examples: list[TrainingItem] = Field(..., min_length=1)


EngineRequest = Annotated[
    Union[AnalysisRequest, BatchAnalysisRequest, TrainingRequest],
    Field(discriminator="kind"),
]

_REQUEST_ADAPTER: TypeAdapter[EngineRequest] = TypeAdapter(EngineRequest)


def parse_request(payload: Any) -> EngineRequest:
    """
    Validate a raw (JSON-decoded) payload into one of the request variants.

    Raises:
        pydantic.ValidationError: if the payload matches no variant.
    """
    return _REQUEST_ADAPTER.validate_python(payload)
