from __future__ import annotations

import math

import pytest

from ai_form_builder.errors import UpstreamUnavailable
from ai_form_builder.providers.embeddings import (
    DeterministicEmbedder,
    DspyEmbedder,
    PSEUDO_EMBEDDING_DIM,
    build_embedder,
    pseudo_embedding,
)
from ai_form_builder.settings import Settings


def test_pseudo_embedding_matches_formula():
    vec = pseudo_embedding("ab")
    assert len(vec) == PSEUDO_EMBEDDING_DIM
    assert vec[0] == pytest.approx((math.sin(ord("a") + 0) + 1) * 0.5)
    assert vec[1] == pytest.approx((math.sin(ord("b") + 1) + 1) * 0.5)
    assert vec[2] == pytest.approx((math.sin(ord("a") + 2) + 1) * 0.5)
    assert all(0.0 <= x <= 1.0 for x in vec)


def test_pseudo_embedding_is_deterministic_and_empty_for_blank_text():
    assert pseudo_embedding("hello") == pseudo_embedding("hello")
    assert pseudo_embedding("hello") != pseudo_embedding("world")
    assert pseudo_embedding("") == []
    assert pseudo_embedding("   ") == []


def test_build_embedder_without_key_is_deterministic():
    embedder = build_embedder(Settings.from_env({}))
    assert isinstance(embedder, DeterministicEmbedder)
    assert len(embedder.embed("contact form")) == 64


class _FakeDspyEmbedder:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.inputs = []

    def __call__(self, text):
        self.inputs.append(text)
        if self.error:
            raise self.error
        return self.result


def test_dspy_embedder_unwraps_batch_of_one():
    fake = _FakeDspyEmbedder(result=[[0.1, 0.2, 0.3]])
    embedder = DspyEmbedder(Settings(embedding_api_key="k"), embedder=fake)
    assert embedder.embed("hi") == [0.1, 0.2, 0.3]
    assert fake.inputs == ["hi"]


def test_dspy_embedder_skips_blank_text():
    fake = _FakeDspyEmbedder(result=[0.5])
    assert DspyEmbedder(Settings(embedding_api_key="k"), embedder=fake).embed("  ") == []
    assert fake.inputs == []


def test_dspy_embedder_wraps_provider_errors():
    fake = _FakeDspyEmbedder(error=RuntimeError("429"))
    with pytest.raises(UpstreamUnavailable):
        DspyEmbedder(Settings(embedding_api_key="k"), embedder=fake).embed("hi")


def test_dspy_embedder_rejects_empty_vector():
    fake = _FakeDspyEmbedder(result=[])
    with pytest.raises(UpstreamUnavailable):
        DspyEmbedder(Settings(embedding_api_key="k"), embedder=fake).embed("hi")
