from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GenerateFormRequest(BaseModel):
    """Body of `POST /forms/generate`."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., description="Natural-language description of the form to build")
    use_memory: bool = Field(
        default=True,
        alias="useMemory",
        description="Use the owner's previous forms as reference context for generation",
    )


class ReferenceMediaRequest(BaseModel):
    """Body of `POST /forms/{id}/reference-media`. Accepts `url` or `urls`."""

    url: Optional[str] = None
    urls: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _merge_single_url(self) -> "ReferenceMediaRequest":
        if self.url and not self.urls:
            self.urls = [self.url]
        return self

    def target_urls(self) -> List[str]:
        return [u.strip() for u in self.urls if isinstance(u, str) and u.strip()]


class SubmitRequest(BaseModel):
    """Body of `POST /forms/{id}/submit`."""

    responses: Dict[str, Any] = Field(default_factory=dict, description="Answers keyed by field name")


class RankCandidate(BaseModel):
    id: str
    vector: List[float] = Field(default_factory=list)


class RankRequest(BaseModel):
    """Body of `POST /similarity/rank`."""

    query: List[float] = Field(default_factory=list)
    candidates: List[RankCandidate] = Field(default_factory=list)
    k: int = Field(default=5, ge=0, le=100)


__all__ = [
    "GenerateFormRequest",
    "RankCandidate",
    "RankRequest",
    "ReferenceMediaRequest",
    "SubmitRequest",
]
