from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ParseResult:
    """Either a raw schema object (`value`) or a parse `error`; never both."""

    value: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.value is not None


def _safe_json_loads(text: str) -> Any:
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


def strip_code_fences(s: str) -> str:
    if not s:
        return s
    t = str(s).strip()
    t = re.sub(r"^```(?:json)?\s*", "", t, flags=re.IGNORECASE)
    t = re.sub(r"\s*```$", "", t, flags=re.IGNORECASE)
    return t.strip()


def parse_schema_text(text: Any) -> ParseResult:
    """
    Best-effort decode of model output into a raw schema dict.

    Strips Markdown fences, then tries the whole text, then the outermost
    `{...}` span. Never raises.
    """
    if not isinstance(text, str) or not text.strip():
        return ParseResult(error="empty response")

    t = strip_code_fences(text)
    parsed = _safe_json_loads(t)
    if parsed is None:
        m = re.search(r"\{[\s\S]*\}", t)
        if m:
            parsed = _safe_json_loads(m.group(0))
    if parsed is None:
        return ParseResult(error="response is not valid JSON")
    if not isinstance(parsed, dict):
        return ParseResult(error=f"expected a JSON object, got {type(parsed).__name__}")
    if not isinstance(parsed.get("fields"), list):
        return ParseResult(error="schema is missing a `fields` list")
    return ParseResult(value=parsed)


__all__ = ["ParseResult", "parse_schema_text", "strip_code_fences"]
