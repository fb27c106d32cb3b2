"""
Service configuration.

All tunables are resolved once from the environment into an immutable
`Settings` value which is then handed to each component's factory. Nothing
below `ai_form_builder.api` reads `os.environ` directly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv


def _repo_root() -> Path:
    # `src/ai_form_builder/settings.py` lives at `<repo>/src/ai_form_builder/settings.py`
    return Path(__file__).resolve().parents[2]


def _env_str(env: Mapping[str, str], name: str, default: str = "") -> str:
    raw = env.get(name)
    if raw is None:
        return default
    return str(raw).strip() or default


def _env_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None or str(raw).strip() == "":
        return bool(default)
    return str(raw).strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or str(raw).strip() == "":
        return int(default)
    try:
        return int(str(raw).strip())
    except ValueError:
        return int(default)


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or str(raw).strip() == "":
        return float(default)
    try:
        return float(str(raw).strip())
    except ValueError:
        return float(default)


def _prefixed_model(provider: str, model_name: str) -> str:
    p = str(provider or "").strip().lower()
    m = str(model_name or "").strip()
    if not p:
        return m
    if m.startswith(f"{p}/"):
        return m
    return f"{p}/{m}"


@dataclass(frozen=True)
class Settings:
    # Text generation (DSPy / LiteLLM)
    llm_provider: str = "openrouter"
    llm_model: str = "google/gemma-3n-e4b-it:free"
    llm_api_key: str = ""
    llm_temperature: float = 0.2
    llm_max_tokens: int = 2000
    llm_timeout_sec: float = 20.0

    # Embeddings
    embedding_api_key: str = ""
    embedding_model: str = "openai/text-embedding-3-small"

    # Form memory
    use_vector_index: bool = False
    memory_top_k: int = 5
    memory_max_fields_per_form: int = 20

    # Per-owner rate limit on form generation (0 disables)
    generate_rate_limit_max: int = 30
    generate_rate_limit_window_sec: int = 600

    # Supabase (document store + pgvector index)
    supabase_url: str = ""
    supabase_key: str = ""
    vector_table: str = "form_embeddings"
    vector_match_fn: str = "match_form_embeddings"

    # HTTP logging
    http_log: bool = False
    http_log_headers: bool = False
    http_log_body_max_bytes: int = 4096

    @property
    def llm_enabled(self) -> bool:
        return bool(self.llm_api_key)

    @property
    def embedding_enabled(self) -> bool:
        return bool(self.embedding_api_key)

    @property
    def supabase_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def llm_model_string(self) -> str:
        """LiteLLM model string (provider-prefixed) for `dspy.LM`."""
        return _prefixed_model(self.llm_provider, self.llm_model)

    def with_overrides(self, **changes: Any) -> "Settings":
        return replace(self, **changes)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, *, load_dotenv_files: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        When `env` is omitted, `.env` and `.env.local` at the repo root are
        loaded first (existing variables win) and `os.environ` is used.
        """
        if env is None:
            if load_dotenv_files:
                load_dotenv(_repo_root() / ".env", override=False)
                load_dotenv(_repo_root() / ".env.local", override=False)
            env = os.environ

        return cls(
            llm_provider=_env_str(env, "DSPY_PROVIDER", cls.llm_provider).lower(),
            llm_model=_env_str(env, "DSPY_MODEL", cls.llm_model),
            llm_api_key=_env_str(env, "LLM_API_KEY"),
            llm_temperature=_env_float(env, "DSPY_TEMPERATURE", cls.llm_temperature),
            llm_max_tokens=_env_int(env, "DSPY_MAX_TOKENS", cls.llm_max_tokens),
            llm_timeout_sec=_env_float(env, "DSPY_LLM_TIMEOUT_SEC", cls.llm_timeout_sec),
            embedding_api_key=_env_str(env, "EMBEDDING_API_KEY"),
            embedding_model=_env_str(env, "EMBEDDING_MODEL", cls.embedding_model),
            use_vector_index=_env_bool(env, "AI_FORM_USE_VECTOR_INDEX", False),
            memory_top_k=max(1, _env_int(env, "AI_FORM_MEMORY_TOP_K", cls.memory_top_k)),
            memory_max_fields_per_form=max(
                1, _env_int(env, "AI_FORM_MEMORY_MAX_FIELDS_PER_FORM", cls.memory_max_fields_per_form)
            ),
            generate_rate_limit_max=_env_int(env, "AI_FORM_GENERATE_RATE_LIMIT_MAX", cls.generate_rate_limit_max),
            generate_rate_limit_window_sec=_env_int(
                env, "AI_FORM_GENERATE_RATE_LIMIT_WINDOW_SEC", cls.generate_rate_limit_window_sec
            ),
            # Try NEXT_PUBLIC_SUPABASE_URL too (for consistency with the Next.js frontend).
            supabase_url=_env_str(env, "SUPABASE_URL") or _env_str(env, "NEXT_PUBLIC_SUPABASE_URL"),
            supabase_key=_env_str(env, "SUPABASE_SERVICE_ROLE_KEY"),
            vector_table=_env_str(env, "AI_FORM_VECTOR_TABLE", cls.vector_table),
            vector_match_fn=_env_str(env, "AI_FORM_VECTOR_MATCH_FN", cls.vector_match_fn),
            http_log=_env_bool(env, "AI_FORM_HTTP_LOG", False),
            http_log_headers=_env_bool(env, "AI_FORM_HTTP_LOG_HEADERS", False),
            http_log_body_max_bytes=_env_int(env, "AI_FORM_HTTP_LOG_BODY_MAX_BYTES", cls.http_log_body_max_bytes),
        )


__all__ = ["Settings"]
