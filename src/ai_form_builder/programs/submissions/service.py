from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ai_form_builder.errors import Forbidden, InvalidInput, NotFound
from ai_form_builder.programs.submissions.validation import validate_responses
from ai_form_builder.schemas.form_schema import FormSchema
from ai_form_builder.schemas.records import Form, Submission
from ai_form_builder.storage.base import FormStore

logger = logging.getLogger(__name__)


def _require_form(store: FormStore, form_id: str) -> Form:
    if not str(form_id or "").strip():
        raise InvalidInput("Form id is required")
    form = store.get_form(form_id)
    if form is None:
        raise NotFound("Form not found")
    return form


def _require_owner(form: Form, owner_id: str) -> None:
    if form.owner_id != str(owner_id):
        raise Forbidden("Forbidden")


class FormService:
    def __init__(self, store: FormStore) -> None:
        self.store = store

    def list_forms(self, owner_id: str) -> List[Dict[str, Any]]:
        forms = self.store.list_forms(owner_id)
        counts = self.store.count_submissions_by_form(owner_id)
        return [{**f.to_public(), "submissionCount": counts.get(f.id, 0)} for f in forms]

    def get_form(self, form_id: str) -> Form:
        return _require_form(self.store, form_id)

    def add_reference_media(self, owner_id: str, form_id: str, urls: Sequence[str]) -> Form:
        targets = [u.strip() for u in urls if isinstance(u, str) and u.strip()]
        if not targets:
            raise InvalidInput("url or urls is required")
        form = _require_form(self.store, form_id)
        _require_owner(form, owner_id)
        updated = self.store.update_form(form.id, {"referenceMedia": [*form.reference_media, *targets]})
        logger.info("[forms] attached reference media form=%s count=%s", form.id, len(targets))
        return updated


class SubmissionService:
    def __init__(self, store: FormStore) -> None:
        self.store = store

    def submit(self, form_id: str, responses: Optional[Mapping[str, Any]]) -> Submission:
        form = _require_form(self.store, form_id)
        data = dict(responses or {})
        errors = validate_submission(form.form_schema, data)
        if errors:
            raise InvalidInput("Submission failed validation", details={"errors": errors})
        # Attributed to the form owner so owners can list their forms' submissions.
        submission = self.store.insert_submission({"formId": form.id, "ownerId": form.owner_id, "responses": data})
        logger.info("[submissions] created submission id=%s form=%s", submission.id, form.id)
        return submission

    def list_submissions(self, owner_id: str, form_id: str) -> List[Submission]:
        form = _require_form(self.store, form_id)
        _require_owner(form, owner_id)
        return self.store.list_submissions(form.id)


def validate_submission(schema: FormSchema, responses: Mapping[str, Any]) -> Dict[str, str]:
    return validate_responses(schema, responses)


__all__ = ["FormService", "SubmissionService", "validate_submission"]
