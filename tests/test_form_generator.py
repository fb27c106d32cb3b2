from __future__ import annotations

import json

import pytest

from conftest import StubTextGenerator
from ai_form_builder.errors import InvalidInput
from ai_form_builder.programs.form_generator.generator import SchemaGenerator, derive_summary, derive_tags
from ai_form_builder.programs.form_generator.parsing import parse_schema_text, strip_code_fences
from ai_form_builder.programs.form_generator.prompts import (
    SCHEMA_INSTRUCTION,
    build_generation_message,
    build_prompt_with_history,
)
from ai_form_builder.schemas.form_schema import FormSchema


_SCHEMA_JSON = json.dumps(
    {
        "title": "Event RSVP",
        "description": "RSVP for the launch party",
        "fields": [
            {"name": "Guest Name", "label": "Guest Name", "type": "text"},
            {"name": "guest_email", "label": "Email", "type": "email"},
        ],
    }
)


def test_strip_code_fences():
    assert strip_code_fences("```json\n{\"a\": 1}\n```") == '{"a": 1}'
    assert strip_code_fences("```\n{}\n```") == "{}"
    assert strip_code_fences("{}") == "{}"


def test_parse_schema_text_accepts_fenced_json():
    result = parse_schema_text(f"```json\n{_SCHEMA_JSON}\n```")
    assert result.ok
    assert result.value["title"] == "Event RSVP"


def test_parse_schema_text_extracts_object_from_prose():
    result = parse_schema_text(f"Sure! Here is your form:\n{_SCHEMA_JSON}\nEnjoy.")
    assert result.ok
    assert len(result.value["fields"]) == 2


@pytest.mark.parametrize(
    "text",
    ["", "   ", "not json at all", "[1, 2, 3]", '{"title": "no fields"}', None],
)
def test_parse_schema_text_reports_errors_without_raising(text):
    result = parse_schema_text(text)
    assert not result.ok
    assert result.error


def test_generation_message_merges_instruction_and_prompt():
    msg = build_generation_message("A contact form")
    assert msg.startswith(SCHEMA_INSTRUCTION)
    assert msg.endswith("User prompt:\nA contact form")


def test_prompt_with_history_is_unchanged_without_history():
    assert build_prompt_with_history("Make a survey", []) == "Make a survey"


def test_prompt_with_history_embeds_compact_json():
    out = build_prompt_with_history("Make a survey", [{"id": "f1", "title": "Old"}])
    assert '[{"id":"f1","title":"Old"}]' in out
    assert out.endswith("Now generate a new form schema for this request:\nMake a survey")


def test_generate_with_llm_reply_is_normalized():
    stub = StubTextGenerator(f"```json\n{_SCHEMA_JSON}\n```")
    meta = SchemaGenerator(stub).generate("RSVP for my party")

    assert meta.source == "llm"
    assert [f.name for f in meta.form_schema.fields] == ["guest-name", "guest-email"]
    assert meta.form_schema.fields[1].validation.required is True
    assert meta.summary == "RSVP for the launch party"
    assert len(stub.prompts) == 1
    assert stub.prompts[0].startswith(SCHEMA_INSTRUCTION)


def test_generate_falls_back_when_provider_unavailable():
    meta = SchemaGenerator(StubTextGenerator()).generate("Job application with resume upload")

    assert meta.source == "fallback"
    assert [f.name for f in meta.form_schema.fields] == ["full-name", "email", "details", "attachment"]
    details = meta.form_schema.fields[2]
    assert details.validation.min_length == 10
    assert details.validation.max_length == 500
    attachment = meta.form_schema.fields[3]
    assert attachment.file_constraints.allowed_mime_types == ["image/jpeg", "image/png", "application/pdf"]
    assert meta.form_schema.description == "Auto-generated form for: Job application with resume upload"


def test_generate_falls_back_on_unparseable_reply_and_unexpected_errors():
    assert SchemaGenerator(StubTextGenerator("I cannot help with that")).generate("x form").source == "fallback"
    assert SchemaGenerator(StubTextGenerator(RuntimeError("boom"))).generate("x form").source == "fallback"


def test_generate_rejects_empty_prompt():
    with pytest.raises(InvalidInput):
        SchemaGenerator(StubTextGenerator()).generate("   ")


def test_feedback_prompt_tags_when_provider_unavailable():
    meta = SchemaGenerator(StubTextGenerator()).generate("Collect feedback with an email and a rating 1-5")

    assert meta.source == "fallback"
    assert meta.tags[:4] == ["collect", "feedback", "with", "email"]
    assert "rating" in meta.tags
    assert len(meta.tags) == len(set(meta.tags))
    assert len(meta.tags) <= 10


def test_derive_tags_caps_at_ten():
    prompt = " ".join(f"word{i}" for i in range(20))
    assert len(derive_tags(prompt, [])) == 10


def test_derive_summary_priority():
    with_desc = FormSchema(title="T", description="D" * 300)
    without_desc = FormSchema(title="T")
    assert derive_summary("prompt", with_desc) == "D" * 180
    assert derive_summary("p" * 200, without_desc) == "p" * 180
    assert derive_summary("", without_desc) == "Form about T"


def test_llm_prompt_only_changes_the_model_call():
    stub = StubTextGenerator()
    meta = SchemaGenerator(stub).generate("Pet adoption form", llm_prompt="History: kennel booking\nPet adoption form")

    assert "History: kennel booking" in stub.prompts[0]
    assert meta.form_schema.description == "Auto-generated form for: Pet adoption form"
    assert "kennel" not in meta.tags


def test_deeply_nested_reply_is_a_parse_error():
    result = parse_schema_text("[" * 200000)
    assert not result.ok
    assert result.error


def test_deeply_nested_reply_falls_back():
    meta = SchemaGenerator(StubTextGenerator('{"fields": ' + "[" * 200000)).generate("x form")
    assert meta.source == "fallback"
    assert len(meta.form_schema.fields) == 4


def test_out_of_range_number_in_reply_is_dropped():
    reply = '{"title": "T", "fields": [{"name": "n", "label": "N", "type": "number", "validation": {"max": 1%s}}]}' % (
        "0" * 400
    )
    meta = SchemaGenerator(StubTextGenerator(reply)).generate("number form")
    assert meta.source == "llm"
    assert meta.form_schema.fields[0].validation.max is None
    assert meta.form_schema.fields[0].validation.min == 0
