from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ai_form_builder.schemas.form_schema import FormSchema


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Form(BaseModel):
    """Persisted form. Mutated only to append reference media or backfill the embedding."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    owner_id: str = Field(alias="ownerId")
    title: str
    purpose: str
    form_schema: FormSchema = Field(alias="formSchema")
    summary: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    reference_media: List[str] = Field(default_factory=list, alias="referenceMedia")
    embedding: List[float] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")
    updated_at: datetime = Field(default_factory=utcnow, alias="updatedAt")

    def to_public(self, *, include_embedding: bool = False) -> Dict[str, Any]:
        out = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not include_embedding:
            out.pop("embedding", None)
        return out


class Submission(BaseModel):
    """Immutable respondent submission, attributed to the form's owner."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str
    form_id: str = Field(alias="formId")
    owner_id: str = Field(alias="ownerId")
    responses: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow, alias="createdAt")

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["Form", "Submission", "utcnow"]
