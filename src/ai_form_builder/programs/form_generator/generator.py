"""
Schema generation: LLM call -> best-effort parse -> normalize.

Generation never fails on the provider side: any upstream error, empty
reply, or unparseable output resolves to the deterministic schema below.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Dict, Iterable, List, Optional

from ai_form_builder.errors import InvalidInput, UpstreamUnavailable
from ai_form_builder.programs.form_generator.normalizer import normalize_schema
from ai_form_builder.programs.form_generator.parsing import parse_schema_text
from ai_form_builder.programs.form_generator.prompts import build_generation_message
from ai_form_builder.providers.text_generation import TextGenerator
from ai_form_builder.schemas.form_schema import FormField, FormSchema, GeneratedMeta

logger = logging.getLogger(__name__)

SUMMARY_MAX_CHARS = 180
MAX_TAGS = 10
MIN_TAG_LENGTH = 4


def fallback_schema(prompt: str) -> Dict[str, Any]:
    return {
        "title": "Custom Form",
        "description": f"Auto-generated form for: {prompt[:80]}",
        "fields": [
            {"name": "full-name", "label": "Full Name", "type": "text", "validation": {"required": True, "minLength": 2}},
            {"name": "email", "label": "Email", "type": "email", "validation": {"required": True, "type": "email"}},
            {
                "name": "details",
                "label": "Details",
                "type": "textarea",
                "placeholder": "Add any notes",
                "validation": {"minLength": 10, "maxLength": 500},
            },
            {
                "name": "attachment",
                "label": "Attachment",
                "type": "file",
                "fileConstraints": {"maxSizeMB": 5, "allowedMimeTypes": ["image/jpeg", "image/png", "application/pdf"]},
            },
        ],
    }


def derive_summary(prompt: str, schema: FormSchema) -> str:
    if schema.description:
        return schema.description[:SUMMARY_MAX_CHARS]
    if prompt:
        return prompt[:SUMMARY_MAX_CHARS]
    return f"Form about {schema.title}"


def _words(text: str) -> Iterable[str]:
    for w in re.split(r"[^a-z0-9_]+", str(text or "").lower()):
        if len(w) >= MIN_TAG_LENGTH:
            yield w


def derive_tags(prompt: str, fields: List[FormField]) -> List[str]:
    """Up to 10 unique words (>3 chars), first-seen order: prompt first, then field labels."""
    seen: Dict[str, None] = {}
    for w in _words(prompt):
        seen.setdefault(w, None)
    for f in fields:
        for w in _words(f.label):
            seen.setdefault(w, None)
    return list(seen)[:MAX_TAGS]


class SchemaGenerator:
    def __init__(self, text_generator: TextGenerator) -> None:
        self.text_generator = text_generator

    def _call_llm(self, prompt: str) -> Optional[Dict[str, Any]]:
        try:
            text = self.text_generator.complete(build_generation_message(prompt))
        except UpstreamUnavailable as e:
            logger.warning("[ai] LLM unavailable: %s", e.message)
            return None
        except Exception as e:
            logger.warning("[ai] LLM call error: %r", e)
            return None

        parsed = parse_schema_text(text)
        if not parsed.ok:
            logger.warning("[ai] could not parse LLM response: %s", parsed.error)
            return None
        return parsed.value

    def generate(self, prompt: str, *, llm_prompt: Optional[str] = None) -> GeneratedMeta:
        """
        `llm_prompt` (e.g. the history-augmented prompt) replaces `prompt` in the
        model call only; summary, tags and the fallback schema use `prompt`.
        """
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidInput("Prompt is required")

        logger.info("[ai] generating form for prompt: %s", prompt[:120])
        t0 = time.perf_counter()
        raw = self._call_llm(llm_prompt or prompt)
        schema: Optional[FormSchema] = None
        if raw is not None:
            try:
                schema = normalize_schema(raw, prompt)
            except (ValueError, TypeError, OverflowError) as e:
                logger.warning("[ai] could not normalize LLM schema: %r", e)
        source = "llm" if schema is not None else "fallback"
        if schema is None:
            logger.warning("[ai] falling back to deterministic schema")
            schema = normalize_schema(fallback_schema(prompt), prompt)

        meta = GeneratedMeta(
            form_schema=schema,
            summary=derive_summary(prompt, schema),
            tags=derive_tags(prompt, schema.fields),
            source=source,
        )
        logger.info(
            "[ai] generated source=%s fields=%s dur_ms=%s",
            source,
            len(schema.fields),
            int((time.perf_counter() - t0) * 1000),
        )
        return meta


__all__ = ["SchemaGenerator", "derive_summary", "derive_tags", "fallback_schema"]
