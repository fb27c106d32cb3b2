"""
Turn raw (possibly malformed) model output into a persistable `FormSchema`.

Defaults are non-destructive: an explicit value in the input always wins.
"""

from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional

from ai_form_builder.schemas.form_schema import FIELD_TYPES, SEMANTIC_TYPES, FormField, FormSchema

MAX_NAME_LENGTH = 50
DEFAULT_TITLE = "Untitled Form"
DEFAULT_FILE_CONSTRAINTS: Dict[str, Any] = {
    "maxSizeMB": 5,
    "allowedMimeTypes": ["image/jpeg", "image/png", "image/webp"],
}
_NUMERIC_LABEL_HINTS = ("age", "years")

_SNAKE_TO_CAMEL = {
    "min_length": "minLength",
    "max_length": "maxLength",
    "max_size_mb": "maxSizeMB",
    "allowed_mime_types": "allowedMimeTypes",
    "file_constraints": "fileConstraints",
}


def slugify(text: Any) -> str:
    s = re.sub(r"[^a-z0-9]+", "-", str(text or "").lower()).strip("-")
    s = s[:MAX_NAME_LENGTH].strip("-")
    return s or "field"


def _camel_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {_SNAKE_TO_CAMEL.get(k, k): v for k, v in raw.items()}


def _coerce_number(value: Any) -> Optional[float | int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            as_float = float(value)
        except OverflowError:
            return None
        return value if math.isfinite(as_float) else None
    if isinstance(value, str) and value.strip():
        try:
            n = float(value.strip())
        except ValueError:
            return None
        if not math.isfinite(n):
            return None
        return int(n) if n.is_integer() else n
    return None


def _coerce_int(value: Any) -> Optional[int]:
    n = _coerce_number(value)
    if n is None:
        return None
    return max(0, int(n))


def _coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        t = value.strip().lower()
        if t in {"true", "yes", "1"}:
            return True
        if t in {"false", "no", "0"}:
            return False
    return None


def _clean_validation(raw: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    v = _camel_keys(raw)
    out: Dict[str, Any] = {}
    required = _coerce_bool(v.get("required"))
    if required is not None:
        out["required"] = required
    for key in ("minLength", "maxLength"):
        n = _coerce_int(v.get(key))
        if n is not None:
            out[key] = n
    for key in ("min", "max"):
        n = _coerce_number(v.get(key))
        if n is not None:
            out[key] = n
    pattern = v.get("pattern")
    if isinstance(pattern, str) and pattern:
        out["pattern"] = pattern
    sem = str(v.get("type") or "").strip().lower()
    if sem in SEMANTIC_TYPES:
        out["type"] = sem
    return out


def _clean_file_constraints(raw: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(raw, dict):
        return None
    v = _camel_keys(raw)
    out: Dict[str, Any] = {}
    size = _coerce_number(v.get("maxSizeMB"))
    if size is not None:
        out["maxSizeMB"] = size
    mimes = v.get("allowedMimeTypes")
    if isinstance(mimes, list):
        out["allowedMimeTypes"] = [str(m).strip() for m in mimes if str(m or "").strip()]
    return out


def _clean_options(raw: Any) -> Optional[List[str]]:
    if not isinstance(raw, list):
        return None
    out: List[str] = []
    for opt in raw:
        if isinstance(opt, dict):
            opt = opt.get("label") if opt.get("label") is not None else opt.get("value")
        text = str(opt).strip() if opt is not None else ""
        if text:
            out.append(text)
    return out


def _apply_defaults(field: Dict[str, Any]) -> Dict[str, Any]:
    ftype = field["type"]

    if ftype == "email":
        validation = dict(field.get("validation") or {})
        if validation.get("type") is None:
            validation["type"] = "email"
        if validation.get("required") is None:
            validation["required"] = True
        field["validation"] = validation

    label_lower = str(field.get("label") or "").lower()
    if ftype == "number" or any(h in label_lower for h in _NUMERIC_LABEL_HINTS):
        field["type"] = "number"
        validation = dict(field.get("validation") or {})
        if validation.get("min") is None:
            validation["min"] = 0
        field["validation"] = validation

    if field["type"] == "file" and field.get("fileConstraints") is None:
        field["fileConstraints"] = {
            "maxSizeMB": DEFAULT_FILE_CONSTRAINTS["maxSizeMB"],
            "allowedMimeTypes": list(DEFAULT_FILE_CONSTRAINTS["allowedMimeTypes"]),
        }
    return field


def normalize_fields(raw_fields: Any, prompt: str = "") -> List[FormField]:
    """
    Slug + dedupe field names (in input order) and apply type defaults.

    `prompt` is accepted for parity with the generator call site; naming never
    depends on it.
    """
    if not isinstance(raw_fields, list):
        return []

    seen: set[str] = set()
    out: List[FormField] = []
    for idx, raw in enumerate(raw_fields):
        if not isinstance(raw, dict):
            continue
        item = _camel_keys(raw)

        name_source = str(item.get("name") or "").strip() or str(item.get("label") or "").strip() or f"field-{idx}"
        base = slugify(name_source)
        unique = base
        counter = 1
        while unique in seen:
            suffix = f"-{counter}"
            unique = base[: MAX_NAME_LENGTH - len(suffix)].rstrip("-") + suffix
            counter += 1
        seen.add(unique)

        ftype = str(item.get("type") or "").strip().lower()
        if ftype not in FIELD_TYPES:
            ftype = "text"

        label = str(item.get("label") or "").strip() or str(item.get("name") or "").strip() or unique
        field: Dict[str, Any] = {"name": unique, "label": label, "type": ftype}

        placeholder = item.get("placeholder")
        if isinstance(placeholder, str) and placeholder.strip():
            field["placeholder"] = placeholder
        options = _clean_options(item.get("options"))
        if options is not None:
            field["options"] = options
        validation = _clean_validation(item.get("validation"))
        if validation is not None:
            field["validation"] = validation
        file_constraints = _clean_file_constraints(item.get("fileConstraints"))
        if file_constraints is not None:
            field["fileConstraints"] = file_constraints

        out.append(FormField.model_validate(_apply_defaults(field)))
    return out


def normalize_schema(raw: Any, prompt: str = "") -> FormSchema:
    data = raw if isinstance(raw, dict) else {}
    title = str(data.get("title") or "").strip() or DEFAULT_TITLE
    description = data.get("description")
    description = str(description).strip() if description is not None else ""
    return FormSchema(
        title=title,
        description=description or None,
        fields=normalize_fields(data.get("fields"), prompt),
    )


__all__ = ["DEFAULT_FILE_CONSTRAINTS", "MAX_NAME_LENGTH", "normalize_fields", "normalize_schema", "slugify"]
