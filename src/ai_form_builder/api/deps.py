"""
Service wiring and FastAPI dependencies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, Header, HTTPException, Request
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_429_TOO_MANY_REQUESTS

from ai_form_builder.api.rate_limit import GenerateRateLimiter

from ai_form_builder.programs.form_generator.generator import SchemaGenerator
from ai_form_builder.programs.form_memory.orchestrator import BackgroundRunner, FormMemoryOrchestrator
from ai_form_builder.programs.submissions.service import FormService, SubmissionService
from ai_form_builder.providers.embeddings import Embedder, build_embedder
from ai_form_builder.providers.text_generation import TextGenerator, build_text_generator
from ai_form_builder.providers.vector_index import VectorIndex, build_vector_index
from ai_form_builder.settings import Settings
from ai_form_builder.storage.base import FormStore
from ai_form_builder.storage.memory_store import InMemoryFormStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Services:
    settings: Settings
    store: FormStore
    orchestrator: FormMemoryOrchestrator
    forms: FormService
    submissions: SubmissionService
    generate_limiter: GenerateRateLimiter


def build_services(
    settings: Settings,
    *,
    store: Optional[FormStore] = None,
    text_generator: Optional[TextGenerator] = None,
    embedder: Optional[Embedder] = None,
    vector_index: Optional[VectorIndex] = None,
    supabase_client: Optional[Any] = None,
    run_in_background: Optional[BackgroundRunner] = None,
) -> Services:
    """Assemble services from settings; any collaborator can be injected (tests, scripts)."""
    if supabase_client is None and (store is None or vector_index is None) and settings.supabase_enabled:
        from ai_form_builder.storage.supabase_store import get_supabase_client

        supabase_client = get_supabase_client(settings)

    if store is None:
        if supabase_client is not None:
            from ai_form_builder.storage.supabase_store import SupabaseFormStore

            store = SupabaseFormStore(supabase_client)
        else:
            logger.warning("[app] Supabase not configured; using in-memory store (data is not persisted)")
            store = InMemoryFormStore()

    generator = SchemaGenerator(text_generator or build_text_generator(settings))
    orchestrator = FormMemoryOrchestrator(
        settings,
        store=store,
        generator=generator,
        embedder=embedder or build_embedder(settings),
        vector_index=vector_index or build_vector_index(settings, supabase_client),
        run_in_background=run_in_background,
    )
    return Services(
        settings=settings,
        store=store,
        orchestrator=orchestrator,
        forms=FormService(store),
        submissions=SubmissionService(store),
        generate_limiter=GenerateRateLimiter.from_settings(settings),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def require_owner(x_owner_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity, already authenticated upstream and forwarded as `X-Owner-Id`."""
    owner_id = str(x_owner_id or "").strip()
    if not owner_id:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return owner_id


def limit_generate(
    owner_id: str = Depends(require_owner),
    services: Services = Depends(get_services),
) -> None:
    limiter = services.generate_limiter
    if limiter.hit(owner_id):
        return
    retry_after = limiter.retry_after(owner_id)
    logger.info("[api] generate rate limit hit owner=%s retryAfter=%s", owner_id, retry_after)
    raise HTTPException(
        status_code=HTTP_429_TOO_MANY_REQUESTS,
        detail="Too many form generation requests, please try again later",
        headers={"Retry-After": str(retry_after)},
    )


__all__ = ["Services", "build_services", "get_services", "limit_generate", "require_owner"]
