from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest


_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))

from ai_form_builder.errors import UpstreamUnavailable
from ai_form_builder.providers.embeddings import DeterministicEmbedder
from ai_form_builder.settings import Settings
from ai_form_builder.storage.memory_store import InMemoryFormStore


class StubTextGenerator:
    """Returns canned replies in order (last one repeats) and records prompts."""

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies)
        self.prompts: List[str] = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies[min(len(self.prompts), len(self.replies)) - 1] if self.replies else None
        if reply is None:
            raise UpstreamUnavailable("stub: no reply")
        if isinstance(reply, BaseException):
            raise reply
        return reply


class FailingEmbedder:
    def __init__(self) -> None:
        self.calls = 0

    def embed(self, text: str) -> List[float]:
        self.calls += 1
        raise UpstreamUnavailable("stub embedder down")


class RecordingVectorIndex:
    enabled = True

    def __init__(self, matches: Optional[List[Tuple[str, float]]] = None, fail_upsert: bool = False) -> None:
        self.matches = list(matches or [])
        self.fail_upsert = fail_upsert
        self.upserts: List[Dict[str, Any]] = []
        self.queries: List[Dict[str, Any]] = []

    def upsert(self, item_id: str, owner_id: str, vector: Sequence[float], metadata: Dict[str, Any]) -> None:
        if self.fail_upsert:
            raise RuntimeError("index down")
        self.upserts.append({"id": item_id, "ownerId": owner_id, "vector": list(vector), "metadata": metadata})

    def query(self, owner_id: str, vector: Sequence[float], k: int) -> List[Tuple[str, float]]:
        self.queries.append({"ownerId": owner_id, "k": k})
        return self.matches[:k]


def run_inline(fn) -> None:
    fn()


@pytest.fixture
def settings() -> Settings:
    return Settings.from_env({})


@pytest.fixture
def store() -> InMemoryFormStore:
    return InMemoryFormStore()


@pytest.fixture
def embedder() -> DeterministicEmbedder:
    return DeterministicEmbedder()


@pytest.fixture
def services(settings, store, embedder):
    from ai_form_builder.api.deps import build_services

    return build_services(
        settings,
        store=store,
        text_generator=StubTextGenerator(),
        embedder=embedder,
        run_in_background=run_inline,
    )


@pytest.fixture
def client(services):
    from fastapi.testclient import TestClient

    from ai_form_builder.api.main import create_app

    with TestClient(create_app(services=services)) as c:
        yield c
