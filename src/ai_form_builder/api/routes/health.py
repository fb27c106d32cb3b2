from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    settings = request.app.state.services.settings
    return {
        "ok": True,
        "service": "ai-form-builder",
        "llm": settings.llm_enabled,
        "embeddings": settings.embedding_enabled,
        "vectorIndex": request.app.state.services.orchestrator.vector_index.enabled,
        "ts": int(time.time() * 1000),
    }
