"""
Server-side validation of respondent submissions against a `FormSchema`.

Returns `{field_name: message}`; an empty dict means the submission is valid.
Checks for one field run in a fixed order and a later failing check replaces
an earlier message for that field.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, Mapping, Optional

from ai_form_builder.schemas.form_schema import FormField, FormSchema, ValidationRule

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_TEXT_LIKE_TYPES = {"text", "textarea"}


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _fmt_number(n: float | int) -> str:
    if isinstance(n, float) and n.is_integer():
        return str(int(n))
    return str(n)


def _to_number(value: Any) -> Optional[float]:
    """Numeric coercion for submitted values; `None` means not a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            n = float(value)
        except OverflowError:
            # Integers beyond float range still compare against min/max.
            n = math.inf if value > 0 else -math.inf
        return None if math.isnan(n) else n
    if isinstance(value, str):
        t = value.strip()
        if not t:
            return None
        try:
            n = float(t)
        except ValueError:
            return None
        return None if math.isnan(n) else n
    return None


def _file_type_allowed(url: str, allowed_mime_types: list[str]) -> bool:
    """
    Approximate check: only the URL is known at this point, so match the MIME
    subtype token (e.g. `jpeg`, `png`) as a substring of the URL path.
    """
    path = url.split("?", 1)[0].lower()
    for mime in allowed_mime_types:
        m = str(mime or "").lower()
        token = m.split("/", 1)[1] if "/" in m and m.split("/", 1)[1] else m
        if token and token in path:
            return True
    return False


def validate_field(field: FormField, value: Any) -> Optional[str]:
    rule = field.validation or ValidationRule()
    error: Optional[str] = None

    if rule.required and _is_empty(value):
        return "This field is required"
    if _is_empty(value):
        return None

    if field.type == "email" or rule.type == "email":
        if not isinstance(value, str) or not _EMAIL_RE.fullmatch(value):
            return "Invalid email format"

    if field.type == "number" or rule.type == "number":
        num = _to_number(value)
        if num is None:
            return "Must be a number"
        if rule.min is not None and num < rule.min:
            error = f"Must be at least {_fmt_number(rule.min)}"
        if rule.max is not None and num > rule.max:
            error = f"Must be at most {_fmt_number(rule.max)}"

    if (field.type in _TEXT_LIKE_TYPES or isinstance(value, str)) and (
        rule.min_length is not None or rule.max_length is not None
    ):
        text = value if isinstance(value, str) else str(value)
        if rule.min_length is not None and len(text) < rule.min_length:
            error = f"Minimum length is {rule.min_length}"
        if rule.max_length is not None and len(text) > rule.max_length:
            error = f"Maximum length is {rule.max_length}"

    if rule.pattern:
        try:
            compiled = re.compile(rule.pattern)
        except re.error:
            compiled = None
        if compiled is not None and not compiled.search(value if isinstance(value, str) else str(value)):
            error = "Invalid format"

    if field.type == "file":
        if not isinstance(value, str) or not value.strip():
            return "File URL is required"
        allowed = (field.file_constraints.allowed_mime_types if field.file_constraints else None) or []
        if allowed and not _file_type_allowed(value, allowed):
            error = "File type not allowed"

    return error


def validate_responses(schema: FormSchema, responses: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    data = responses if isinstance(responses, Mapping) else {}
    errors: Dict[str, str] = {}
    for field in schema.fields or []:
        message = validate_field(field, data.get(field.name))
        if message:
            errors[field.name] = message
    return errors


__all__ = ["validate_field", "validate_responses"]
