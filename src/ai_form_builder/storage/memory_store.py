"""
Dict-backed store used for tests and when Supabase is not configured.
"""

from __future__ import annotations

import itertools
import threading
import uuid
from typing import Any, Dict, List, Optional, Sequence

from ai_form_builder.errors import NotFound
from ai_form_builder.schemas.records import Form, Submission, utcnow


class InMemoryFormStore:
    def __init__(self) -> None:
        self._forms: Dict[str, Form] = {}
        self._submissions: Dict[str, Submission] = {}
        self._lock = threading.Lock()
        self._seq = itertools.count()
        self._order: Dict[str, int] = {}

    def insert_form(self, data: Dict[str, Any]) -> Form:
        now = utcnow()
        payload = {"id": uuid.uuid4().hex, "createdAt": now, "updatedAt": now, **data}
        form = Form.model_validate(payload)
        with self._lock:
            self._forms[form.id] = form
            self._order[form.id] = next(self._seq)
        return form

    def get_form(self, form_id: str) -> Optional[Form]:
        return self._forms.get(str(form_id))

    def list_forms(self, owner_id: str) -> List[Form]:
        forms = [f for f in self._forms.values() if f.owner_id == str(owner_id)]
        return sorted(forms, key=lambda f: (f.created_at, self._order.get(f.id, 0)), reverse=True)

    def list_forms_with_embedding(self, owner_id: str) -> List[Form]:
        # Insertion order, so ranking ties resolve oldest-first.
        return [f for f in self._forms.values() if f.owner_id == str(owner_id) and f.embedding]

    def list_forms_missing_embedding(self, limit: Optional[int] = None) -> List[Form]:
        forms = [f for f in self._forms.values() if not f.embedding]
        return forms[:limit] if limit else forms

    def get_forms_by_ids(self, form_ids: Sequence[str], owner_id: str) -> List[Form]:
        out: List[Form] = []
        for fid in form_ids:
            form = self._forms.get(str(fid))
            if form is not None and form.owner_id == str(owner_id):
                out.append(form)
        return out

    def update_form(self, form_id: str, changes: Dict[str, Any]) -> Form:
        with self._lock:
            current = self._forms.get(str(form_id))
            if current is None:
                raise NotFound("Form not found")
            merged = {**current.model_dump(by_alias=True), **changes, "updatedAt": utcnow()}
            form = Form.model_validate(merged)
            self._forms[form.id] = form
        return form

    def insert_submission(self, data: Dict[str, Any]) -> Submission:
        payload = {"id": uuid.uuid4().hex, "createdAt": utcnow(), **data}
        submission = Submission.model_validate(payload)
        with self._lock:
            self._submissions[submission.id] = submission
            self._order[submission.id] = next(self._seq)
        return submission

    def list_submissions(self, form_id: str) -> List[Submission]:
        subs = [s for s in self._submissions.values() if s.form_id == str(form_id)]
        return sorted(subs, key=lambda s: (s.created_at, self._order.get(s.id, 0)), reverse=True)

    def count_submissions_by_form(self, owner_id: str) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for s in self._submissions.values():
            if s.owner_id == str(owner_id):
                counts[s.form_id] = counts.get(s.form_id, 0) + 1
        return counts


__all__ = ["InMemoryFormStore"]
