from __future__ import annotations

from typing import Any, Dict, List

import anyio
from fastapi import APIRouter, Depends

from ai_form_builder.api.deps import Services, get_services, limit_generate, require_owner
from ai_form_builder.programs.form_memory.orchestrator import generate_and_persist_form
from ai_form_builder.schemas.api_models import GenerateFormRequest, ReferenceMediaRequest

router = APIRouter(prefix="/api/forms", tags=["forms"])


@router.post("/generate", dependencies=[Depends(limit_generate)])
async def generate_form(
    body: GenerateFormRequest,
    owner_id: str = Depends(require_owner),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    # The pipeline blocks on LLM and embedding calls; keep it off the event loop.
    result = await anyio.to_thread.run_sync(
        lambda: generate_and_persist_form(services.orchestrator, owner_id, body.prompt, body.use_memory)
    )
    return {"ok": True, "form": result["form"].to_public(), "source": result["source"]}


@router.get("")
def list_forms(
    owner_id: str = Depends(require_owner),
    services: Services = Depends(get_services),
) -> List[Dict[str, Any]]:
    return services.forms.list_forms(owner_id)


@router.get("/{form_id}")
def get_form(form_id: str, services: Services = Depends(get_services)) -> Dict[str, Any]:
    # Public: respondents render the form without an owner header.
    return services.forms.get_form(form_id).to_public()


@router.post("/{form_id}/reference-media")
def add_reference_media(
    form_id: str,
    body: ReferenceMediaRequest,
    owner_id: str = Depends(require_owner),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    form = services.forms.add_reference_media(owner_id, form_id, body.target_urls())
    return form.to_public()
