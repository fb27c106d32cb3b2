from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends

from ai_form_builder.api.deps import Services, get_services, require_owner
from ai_form_builder.schemas.api_models import SubmitRequest

router = APIRouter(prefix="/api/forms", tags=["submissions"])


@router.post("/{form_id}/submit")
def submit(form_id: str, body: SubmitRequest, services: Services = Depends(get_services)) -> Dict[str, Any]:
    submission = services.submissions.submit(form_id, body.responses)
    return {"ok": True, "submission": submission.to_public()}


@router.get("/{form_id}/submissions")
def list_submissions(
    form_id: str,
    owner_id: str = Depends(require_owner),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    submissions = services.submissions.list_submissions(owner_id, form_id)
    return {"ok": True, "submissions": [s.to_public() for s in submissions]}
