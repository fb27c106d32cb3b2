"""
Form memory pipeline (retrieve -> augment -> generate -> embed -> persist).

Enrichment stages (prompt embedding, retrieval, form embedding, vector upsert)
are best-effort: their failures are logged and never block form creation.
Generation always yields a schema. Only store errors propagate.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from ai_form_builder.errors import InvalidInput
from ai_form_builder.programs.form_generator.generator import SchemaGenerator
from ai_form_builder.programs.form_generator.prompts import build_prompt_with_history
from ai_form_builder.programs.form_memory.history import build_combined_text, build_history_snippet, derive_purpose
from ai_form_builder.programs.form_memory.similarity import rank
from ai_form_builder.providers.embeddings import Embedder
from ai_form_builder.providers.vector_index import NullVectorIndex, VectorIndex
from ai_form_builder.schemas.form_schema import GenerationSource
from ai_form_builder.schemas.records import Form
from ai_form_builder.settings import Settings
from ai_form_builder.storage.base import FormStore

logger = logging.getLogger(__name__)

BackgroundRunner = Callable[[Callable[[], None]], None]


def _run_in_thread(fn: Callable[[], None]) -> None:
    threading.Thread(target=fn, name="vector-upsert", daemon=True).start()


def _ms_since(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


class FormMemoryOrchestrator:
    def __init__(
        self,
        settings: Settings,
        *,
        store: FormStore,
        generator: SchemaGenerator,
        embedder: Embedder,
        vector_index: Optional[VectorIndex] = None,
        run_in_background: Optional[BackgroundRunner] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.generator = generator
        self.embedder = embedder
        self.vector_index = vector_index or NullVectorIndex()
        self.run_in_background = run_in_background or _run_in_thread
        self.last_timings: Dict[str, int] = {}

    def _embed_safely(self, text: str, *, stage: str) -> List[float]:
        try:
            return list(self.embedder.embed(text) or [])
        except Exception as e:
            logger.warning("[memory] %s embedding failed: %r", stage, e)
            return []

    def find_similar_forms(self, owner_id: str, query_embedding: List[float], top_k: int) -> List[Form]:
        """Owner's most similar stored forms; external index first when enabled, else local cosine rank."""
        if self.vector_index.enabled:
            matches = self.vector_index.query(owner_id, query_embedding, top_k)
            if matches:
                return self.store.get_forms_by_ids([item_id for item_id, _ in matches], owner_id)

        candidates = self.store.list_forms_with_embedding(owner_id)
        by_id = {f.id: f for f in candidates}
        ids = rank(query_embedding, [(f.id, f.embedding) for f in candidates], top_k)
        return [by_id[i] for i in ids]

    def _retrieve_history(self, owner_id: str, prompt: str, timings: Dict[str, int]) -> List[Form]:
        t0 = time.perf_counter()
        prompt_embedding = self._embed_safely(prompt, stage="prompt")
        timings["embedding_ms"] = _ms_since(t0)
        if not prompt_embedding:
            return []

        t0 = time.perf_counter()
        try:
            forms = self.find_similar_forms(owner_id, prompt_embedding, self.settings.memory_top_k)
        except Exception as e:
            logger.warning("[memory] retrieval failed owner=%s: %r", owner_id, e)
            forms = []
        timings["retrieval_ms"] = _ms_since(t0)
        return forms

    def _upsert_vector(self, form: Form) -> None:
        metadata = {"ownerId": form.owner_id, "title": form.title, "purpose": form.purpose, "tags": list(form.tags)}

        def _job() -> None:
            try:
                self.vector_index.upsert(form.id, form.owner_id, form.embedding, metadata)
            except Exception as e:
                logger.warning("[memory] vector upsert failed form=%s: %r", form.id, e)

        try:
            self.run_in_background(_job)
        except Exception as e:
            logger.warning("[memory] could not schedule vector upsert form=%s: %r", form.id, e)

    def create_form(self, owner_id: str, prompt: str, *, use_memory: bool = True) -> Tuple[Form, GenerationSource]:
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidInput("Prompt is required")
        owner_id = str(owner_id)
        timings: Dict[str, int] = {}

        history_forms = self._retrieve_history(owner_id, prompt, timings) if use_memory else []
        history_snippet = build_history_snippet(history_forms, self.settings.memory_max_fields_per_form)
        prompt_with_history = build_prompt_with_history(prompt, history_snippet)

        t0 = time.perf_counter()
        meta = self.generator.generate(prompt, llm_prompt=prompt_with_history)
        timings["llm_ms"] = _ms_since(t0)

        schema = meta.form_schema
        purpose = derive_purpose(prompt, schema)

        t0 = time.perf_counter()
        form_embedding = self._embed_safely(build_combined_text(prompt, schema, meta.summary, meta.tags), stage="form")
        timings["form_embedding_ms"] = _ms_since(t0)

        t0 = time.perf_counter()
        form = self.store.insert_form(
            {
                "ownerId": owner_id,
                "title": schema.title,
                "purpose": purpose,
                "summary": meta.summary,
                "tags": list(meta.tags),
                "formSchema": schema,
                "referenceMedia": [],
                "embedding": form_embedding,
            }
        )
        timings["persist_ms"] = _ms_since(t0)

        if self.vector_index.enabled and form.embedding:
            self._upsert_vector(form)

        self.last_timings = timings
        logger.info(
            "[forms] created form id=%s owner=%s source=%s history=%s embedding=%s timings=%s",
            form.id,
            owner_id,
            meta.source,
            len(history_forms),
            len(form.embedding),
            timings,
        )
        return form, meta.source

    def backfill_embedding(self, form: Form) -> Form:
        """Compute and store an embedding for a form persisted without one."""
        text = build_combined_text(form.purpose, form.form_schema, form.summary, form.tags)
        embedding = self._embed_safely(text, stage="backfill")
        if not embedding:
            return form
        updated = self.store.update_form(form.id, {"embedding": embedding})
        if self.vector_index.enabled:
            self._upsert_vector(updated)
        return updated


def generate_and_persist_form(
    orchestrator: FormMemoryOrchestrator, owner_id: str, prompt: str, use_memory: bool = True
) -> Dict[str, Any]:
    form, source = orchestrator.create_form(owner_id, prompt, use_memory=use_memory)
    return {"form": form, "source": source}


__all__ = ["FormMemoryOrchestrator", "generate_and_persist_form"]
