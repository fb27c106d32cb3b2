"""
Declarative form schema models.

Wire format is camelCase (matches the frontend renderer); Python attributes
are snake_case. Always dump with `by_alias=True, exclude_none=True`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

FieldType = Literal["text", "email", "number", "textarea", "select", "checkbox", "radio", "file"]
SemanticType = Literal["email", "number", "url"]
GenerationSource = Literal["llm", "fallback"]

FIELD_TYPES: tuple[str, ...] = ("text", "email", "number", "textarea", "select", "checkbox", "radio", "file")
SEMANTIC_TYPES: tuple[str, ...] = ("email", "number", "url")

Number = Union[int, float]


class ValidationRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    required: Optional[bool] = None
    min_length: Optional[int] = Field(default=None, alias="minLength")
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    min: Optional[Number] = None
    max: Optional[Number] = None
    pattern: Optional[str] = None
    type: Optional[SemanticType] = None


class FileConstraints(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    max_size_mb: Optional[Number] = Field(default=None, alias="maxSizeMB")
    allowed_mime_types: Optional[List[str]] = Field(default=None, alias="allowedMimeTypes")


class FormField(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    label: str
    type: FieldType = "text"
    placeholder: Optional[str] = None
    options: Optional[List[str]] = None
    validation: Optional[ValidationRule] = None
    file_constraints: Optional[FileConstraints] = Field(default=None, alias="fileConstraints")


class FormSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    description: Optional[str] = None
    fields: List[FormField] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GeneratedMeta(BaseModel):
    """Transient result of one generation call; `source` records provenance."""

    model_config = ConfigDict(populate_by_name=True)

    form_schema: FormSchema = Field(alias="schema")
    summary: str
    tags: List[str] = Field(default_factory=list)
    source: GenerationSource


__all__ = [
    "FIELD_TYPES",
    "SEMANTIC_TYPES",
    "FieldType",
    "FileConstraints",
    "FormField",
    "FormSchema",
    "GeneratedMeta",
    "GenerationSource",
    "SemanticType",
    "ValidationRule",
]
