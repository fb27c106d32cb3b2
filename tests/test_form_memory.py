from __future__ import annotations

import json

import pytest

from conftest import FailingEmbedder, RecordingVectorIndex, StubTextGenerator, run_inline
from ai_form_builder.errors import InvalidInput
from ai_form_builder.programs.form_generator.generator import SchemaGenerator
from ai_form_builder.programs.form_memory.history import build_combined_text, build_history_snippet, derive_purpose
from ai_form_builder.programs.form_memory.orchestrator import FormMemoryOrchestrator, generate_and_persist_form
from ai_form_builder.programs.form_generator.normalizer import normalize_schema
from ai_form_builder.providers.embeddings import DeterministicEmbedder


def _orchestrator(settings, store, *, replies=(), embedder=None, vector_index=None):
    stub = StubTextGenerator(*replies)
    orch = FormMemoryOrchestrator(
        settings,
        store=store,
        generator=SchemaGenerator(stub),
        embedder=embedder or DeterministicEmbedder(),
        vector_index=vector_index,
        run_in_background=run_inline,
    )
    return orch, stub


def _llm_schema(title: str, n_fields: int = 2) -> str:
    return json.dumps(
        {
            "title": title,
            "fields": [{"name": f"q{i}", "label": f"Question {i}", "type": "text"} for i in range(n_fields)],
        }
    )


def test_derive_purpose_priority():
    assert derive_purpose("prompt", normalize_schema({"description": "d" * 200, "fields": []})) == "d" * 120
    assert derive_purpose("p" * 130, normalize_schema({"fields": []})) == "p" * 120
    assert derive_purpose("", normalize_schema({"fields": []})) == "Generated form"


def test_history_snippet_caps_fields_and_omits_rules(settings, store):
    orch, _ = _orchestrator(settings, store, replies=[_llm_schema("Big", 5)])
    form, _ = orch.create_form("u1", "big form", use_memory=False)

    (entry,) = build_history_snippet([form], max_fields=3)
    assert entry["id"] == form.id
    assert entry["title"] == "Big"
    assert len(entry["fields"]) == 3
    assert set(entry["fields"][0]) == {"name", "label", "type", "hasValidation", "hasFileConstraints"}


def test_combined_text_contains_form_parts():
    schema = normalize_schema({"title": "RSVP", "description": "Party", "fields": [{"label": "Guest", "type": "text"}]})
    text = build_combined_text("rsvp please", schema, "Party summary", ["party", "guest"])
    for part in ("rsvp please", "RSVP", "Party", "Party summary", "party guest", "Guest (text)"):
        assert part in text


def test_create_form_persists_with_fallback_source(settings, store):
    orch, _ = _orchestrator(settings, store)
    result = generate_and_persist_form(orch, "u1", "Collect feedback with an email and a rating 1-5")

    form = result["form"]
    assert result["source"] == "fallback"
    assert [f.name for f in form.form_schema.fields] == ["full-name", "email", "details", "attachment"]
    assert form.owner_id == "u1"
    assert len(form.embedding) == 64
    assert store.get_form(form.id) == form
    assert set(orch.last_timings) >= {"llm_ms", "form_embedding_ms", "persist_ms"}


def test_create_form_rejects_empty_prompt(settings, store):
    orch, _ = _orchestrator(settings, store)
    with pytest.raises(InvalidInput):
        orch.create_form("u1", "")
    assert store.list_forms("u1") == []


def test_second_form_is_generated_with_owner_history(settings, store):
    orch, stub = _orchestrator(settings, store, replies=[_llm_schema("Feedback A"), _llm_schema("Feedback B")])
    first, _ = orch.create_form("u1", "customer feedback survey")
    orch.create_form("other-owner", "customer feedback survey")

    second, source = orch.create_form("u1", "customer feedback survey v2")

    assert source == "llm"
    last_prompt = stub.prompts[-1]
    assert "relevant user form history" in last_prompt
    assert first.id in last_prompt
    # History is owner-scoped.
    foreign = [f for f in store.list_forms("other-owner")]
    assert foreign and foreign[0].id not in last_prompt
    assert "retrieval_ms" in orch.last_timings
    assert second.id != first.id


def test_use_memory_false_skips_history(settings, store):
    orch, stub = _orchestrator(settings, store, replies=[_llm_schema("One")])
    orch.create_form("u1", "first")
    orch.create_form("u1", "second", use_memory=False)
    assert "relevant user form history" not in stub.prompts[-1]


def test_history_limited_to_top_k(settings, store):
    orch, stub = _orchestrator(settings.with_overrides(memory_top_k=2), store, replies=[_llm_schema("Same")])
    ids = [orch.create_form("u1", "survey", use_memory=False)[0].id for _ in range(4)]
    orch.create_form("u1", "survey")
    snippet_ids = [i for i in ids if i in stub.prompts[-1]]
    assert len(snippet_ids) == 2


def test_embedding_failures_never_block_creation(settings, store):
    embedder = FailingEmbedder()
    index = RecordingVectorIndex()
    orch, _ = _orchestrator(settings, store, embedder=embedder, vector_index=index)

    form, source = orch.create_form("u1", "a contact form")

    assert source == "fallback"
    assert form.embedding == []
    assert embedder.calls == 2
    assert index.upserts == []


def test_vector_index_upsert_and_query(settings, store):
    index = RecordingVectorIndex()
    orch, _ = _orchestrator(settings, store, vector_index=index)
    form, _ = orch.create_form("u1", "booking form")

    (upsert,) = index.upserts
    assert upsert["id"] == form.id
    assert upsert["ownerId"] == "u1"
    assert upsert["metadata"] == {"ownerId": "u1", "title": form.title, "purpose": form.purpose, "tags": form.tags}
    assert index.queries and index.queries[0] == {"ownerId": "u1", "k": settings.memory_top_k}


def test_index_matches_are_loaded_in_index_order(settings, store):
    orch, _ = _orchestrator(settings, store)
    a, _ = orch.create_form("u1", "alpha form", use_memory=False)
    b, _ = orch.create_form("u1", "beta form", use_memory=False)
    orch.vector_index = RecordingVectorIndex(matches=[(b.id, 0.9), (a.id, 0.8)])

    similar = orch.find_similar_forms("u1", [0.1] * 64, 5)
    assert [f.id for f in similar] == [b.id, a.id]
    assert orch.find_similar_forms("u2", [0.1] * 64, 5) == []


def test_failing_vector_upsert_is_absorbed(settings, store):
    orch, _ = _orchestrator(settings, store, vector_index=RecordingVectorIndex(fail_upsert=True))
    form, _ = orch.create_form("u1", "upload form")
    assert store.get_form(form.id) is not None


def test_backfill_embedding(settings, store):
    orch, _ = _orchestrator(settings, store, embedder=FailingEmbedder())
    form, _ = orch.create_form("u1", "newsletter signup")
    assert store.list_forms_missing_embedding() == [form]

    orch.embedder = DeterministicEmbedder()
    updated = orch.backfill_embedding(form)

    assert len(updated.embedding) == 64
    assert store.list_forms_missing_embedding() == []


def test_find_similar_forms_over_store_returns_closest_owner_form(settings, store):
    orch, _ = _orchestrator(settings, store)
    base = {"title": "T", "purpose": "p", "formSchema": normalize_schema({"title": "T", "fields": []})}
    first = store.insert_form({**base, "ownerId": "U", "embedding": [1.0, 0.0]})
    store.insert_form({**base, "ownerId": "U", "embedding": [0.0, 1.0]})
    store.insert_form({**base, "ownerId": "V", "embedding": [1.0, 0.0]})

    similar = orch.find_similar_forms("U", [1.0, 0.0], 1)
    assert [f.id for f in similar] == [first.id]
