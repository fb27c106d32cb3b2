from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from ai_form_builder.programs.form_memory.similarity import rank_scored
from ai_form_builder.schemas.api_models import RankRequest

router = APIRouter(prefix="/api/similarity", tags=["similarity"])


@router.post("/rank")
def rank_similar(body: RankRequest) -> Dict[str, Any]:
    scored = rank_scored(body.query, [(c.id, c.vector) for c in body.candidates], body.k)
    return {
        "ok": True,
        "ids": [item_id for item_id, _ in scored],
        "scores": [{"id": item_id, "score": score} for item_id, score in scored],
    }
