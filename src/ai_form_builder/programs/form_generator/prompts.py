"""
Prompt text for schema generation and memory-augmented prompts.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

SCHEMA_INSTRUCTION = """You are an intelligent form schema generator. Output ONLY JSON matching this TypeScript type:
{
  "title": string;
  "description"?: string;
  "fields": Array<{
    "name": string;
    "label": string;
    "type": "text" | "email" | "number" | "textarea" | "select" | "checkbox" | "radio" | "file";
    "placeholder"?: string;
    "options"?: string[];
    "validation"?: {
      "required"?: boolean;
      "minLength"?: number;
      "maxLength"?: number;
      "min"?: number;
      "max"?: number;
      "pattern"?: string;
      "type"?: "email" | "number" | "url";
    };
    "fileConstraints"?: {
      "maxSizeMB"?: number;
      "allowedMimeTypes"?: string[];
    };
  }>;
}
Supported field types: text, email, number, textarea, select, checkbox, radio, file.
If the user mentions images/photos/documents, use type: "file" and set fileConstraints.
Mark obvious email fields with validation.type="email" and required=true when appropriate."""

HISTORY_PREAMBLE = "You are an intelligent form schema generator.\nHere is relevant user form history for reference:\n"
HISTORY_REQUEST = "\n\nNow generate a new form schema for this request:\n"


def build_generation_message(user_prompt: str) -> str:
    """
    Single user-role message: instruction + request.

    Some providers reject a separate system role, so the instruction is always
    merged into the user turn.
    """
    return f"{SCHEMA_INSTRUCTION}\n\nUser prompt:\n{user_prompt}"


def build_prompt_with_history(prompt: str, history_snippet: List[Dict[str, Any]]) -> str:
    if not history_snippet:
        return prompt
    history_json = json.dumps(history_snippet, separators=(",", ":"), ensure_ascii=False)
    return f"{HISTORY_PREAMBLE}{history_json}{HISTORY_REQUEST}{prompt}"


__all__ = ["SCHEMA_INSTRUCTION", "build_generation_message", "build_prompt_with_history"]
