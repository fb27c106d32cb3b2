from __future__ import annotations

from ai_form_builder.settings import Settings


def test_defaults_from_empty_env():
    s = Settings.from_env({})
    assert s.llm_enabled is False
    assert s.embedding_enabled is False
    assert s.supabase_enabled is False
    assert s.use_vector_index is False
    assert s.memory_top_k == 5
    assert s.memory_max_fields_per_form == 20
    assert (s.generate_rate_limit_max, s.generate_rate_limit_window_sec) == (30, 600)
    assert s.llm_model_string == "openrouter/google/gemma-3n-e4b-it:free"


def test_env_overrides():
    s = Settings.from_env(
        {
            "DSPY_PROVIDER": "Groq",
            "DSPY_MODEL": "llama-3.1-8b-instant",
            "LLM_API_KEY": "sk-test",
            "DSPY_TEMPERATURE": "0.5",
            "AI_FORM_USE_VECTOR_INDEX": "yes",
            "AI_FORM_MEMORY_TOP_K": "3",
            "AI_FORM_GENERATE_RATE_LIMIT_MAX": "5",
            "AI_FORM_GENERATE_RATE_LIMIT_WINDOW_SEC": "60",
            "SUPABASE_URL": "https://abc.supabase.co",
            "SUPABASE_SERVICE_ROLE_KEY": "service-key",
        }
    )
    assert s.llm_enabled is True
    assert s.llm_model_string == "groq/llama-3.1-8b-instant"
    assert s.llm_temperature == 0.5
    assert s.use_vector_index is True
    assert s.memory_top_k == 3
    assert (s.generate_rate_limit_max, s.generate_rate_limit_window_sec) == (5, 60)
    assert s.supabase_enabled is True


def test_provider_prefix_not_doubled():
    s = Settings.from_env({"DSPY_PROVIDER": "openai", "DSPY_MODEL": "openai/gpt-4o-mini"})
    assert s.llm_model_string == "openai/gpt-4o-mini"


def test_malformed_values_use_defaults():
    s = Settings.from_env(
        {
            "DSPY_MAX_TOKENS": "lots",
            "DSPY_TEMPERATURE": "warm",
            "AI_FORM_MEMORY_TOP_K": "0",
            "AI_FORM_HTTP_LOG_BODY_MAX_BYTES": "",
        }
    )
    assert s.llm_max_tokens == 2000
    assert s.llm_temperature == 0.2
    assert s.memory_top_k == 1
    assert s.http_log_body_max_bytes == 4096


def test_next_public_supabase_url_is_accepted():
    s = Settings.from_env({"NEXT_PUBLIC_SUPABASE_URL": "https://abc.supabase.co", "SUPABASE_SERVICE_ROLE_KEY": "k"})
    assert s.supabase_url == "https://abc.supabase.co"


def test_with_overrides_returns_new_value():
    base = Settings()
    changed = base.with_overrides(memory_top_k=9)
    assert changed.memory_top_k == 9
    assert base.memory_top_k == 5


def test_from_process_env(monkeypatch):
    monkeypatch.setenv("LLM_API_KEY", "sk-env")
    monkeypatch.setenv("AI_FORM_MEMORY_MAX_FIELDS_PER_FORM", "7")
    monkeypatch.delenv("EMBEDDING_API_KEY", raising=False)

    s = Settings.from_env(load_dotenv_files=False)
    assert s.llm_api_key == "sk-env"
    assert s.memory_max_fields_per_form == 7
    assert s.embedding_enabled is False
