"""
Compact views of stored forms used as generation context and embedding text.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from ai_form_builder.schemas.form_schema import FormSchema
from ai_form_builder.schemas.records import Form

PURPOSE_MAX_CHARS = 120


def derive_purpose(prompt: str, schema: FormSchema) -> str:
    if schema.description:
        return schema.description[:PURPOSE_MAX_CHARS]
    return (prompt or "")[:PURPOSE_MAX_CHARS] or "Generated form"


def build_history_snippet(forms: Sequence[Form], max_fields: int) -> List[Dict[str, Any]]:
    """
    Per form: id, purpose, title, tags and a field outline.

    Validation rules themselves are left out to bound prompt size; only
    their presence is recorded.
    """
    out: List[Dict[str, Any]] = []
    for f in forms:
        fields = list(f.form_schema.fields or [])[: max(0, int(max_fields))]
        out.append(
            {
                "id": f.id,
                "purpose": f.purpose or f.summary or "",
                "title": f.title,
                "tags": list(f.tags or []),
                "fields": [
                    {
                        "name": field.name,
                        "label": field.label,
                        "type": field.type,
                        "hasValidation": field.validation is not None,
                        "hasFileConstraints": field.file_constraints is not None,
                    }
                    for field in fields
                ],
            }
        )
    return out


def build_combined_text(
    prompt: str,
    schema: FormSchema,
    summary: Optional[str] = None,
    tags: Optional[Sequence[str]] = None,
) -> str:
    """Text embedded for a form: prompt, title, description, summary, tags, field outline."""
    field_text = ", ".join(f"{f.label} ({f.type}) {'v' if f.validation is not None else ''}" for f in schema.fields)
    parts = [
        prompt,
        schema.title,
        schema.description,
        summary,
        " ".join(tags) if tags else None,
        field_text,
    ]
    return "\n".join(p for p in parts if p)


__all__ = ["build_combined_text", "build_history_snippet", "derive_purpose"]
