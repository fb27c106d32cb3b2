"""
Text-generation provider (DSPy / LiteLLM).

`TextGenerator.complete(prompt)` returns raw model text or raises
`UpstreamUnavailable`. Callers decide what a failure means.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from ai_form_builder.errors import UpstreamUnavailable
from ai_form_builder.settings import Settings

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    def complete(self, prompt: str) -> str: ...


def _first_output_text(outputs: Any) -> str:
    """`dspy.LM.__call__` returns a list of strings (or dicts with `text` in newer versions)."""
    if isinstance(outputs, str):
        return outputs
    if not isinstance(outputs, list) or not outputs:
        return ""
    first = outputs[0]
    if isinstance(first, dict):
        return str(first.get("text") or "")
    return str(first or "")


class DspyTextGenerator:
    """Sends the prompt as a single user-role message through `dspy.LM`."""

    def __init__(self, settings: Settings, *, lm: Optional[Any] = None) -> None:
        self.settings = settings
        self._lm = lm

    def _get_lm(self) -> Any:
        if self._lm is not None:
            return self._lm
        try:
            import dspy  # type: ignore
        except Exception as e:
            raise UpstreamUnavailable(f"DSPy import failed: {e}") from e

        self._lm = dspy.LM(
            model=self.settings.llm_model_string,
            api_key=self.settings.llm_api_key,
            temperature=self.settings.llm_temperature,
            max_tokens=self.settings.llm_max_tokens,
            timeout=self.settings.llm_timeout_sec,
            num_retries=0,
            cache=False,
        )
        return self._lm

    def complete(self, prompt: str) -> str:
        lm = self._get_lm()
        try:
            outputs = lm(messages=[{"role": "user", "content": prompt}])
        except Exception as e:
            raise UpstreamUnavailable(f"LLM request failed: {e}") from e
        text = _first_output_text(outputs).strip()
        if not text:
            raise UpstreamUnavailable("LLM returned empty content")
        return text


class DisabledTextGenerator:
    """Used when no LLM key is configured. Every call resolves to the deterministic schema."""

    def complete(self, prompt: str) -> str:
        raise UpstreamUnavailable("LLM not configured")


def build_text_generator(settings: Settings) -> TextGenerator:
    if not settings.llm_enabled:
        logger.info("[ai] LLM_API_KEY not set; schema generation will use the deterministic form")
        return DisabledTextGenerator()
    return DspyTextGenerator(settings)


__all__ = ["DisabledTextGenerator", "DspyTextGenerator", "TextGenerator", "build_text_generator"]
