"""
Supabase-backed document store.

Tables (snake_case columns):

- `forms`: id, owner_id, title, purpose, form_schema (jsonb), summary,
  tags (jsonb), reference_media (jsonb), embedding (jsonb), created_at, updated_at
- `submissions`: id, form_id, owner_id, responses (jsonb), created_at

Data-store errors propagate to the caller.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence

from supabase import Client, create_client

from ai_form_builder.errors import NotFound
from ai_form_builder.schemas.records import Form, Submission, utcnow
from ai_form_builder.settings import Settings

logger = logging.getLogger(__name__)

FORMS_TABLE = "forms"
SUBMISSIONS_TABLE = "submissions"

_FORM_COLUMNS = {
    "ownerId": "owner_id",
    "formSchema": "form_schema",
    "referenceMedia": "reference_media",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "formId": "form_id",
}
_ROW_KEYS = {v: k for k, v in _FORM_COLUMNS.items()}


def get_supabase_client(settings: Settings) -> Optional[Client]:
    if not settings.supabase_enabled:
        return None
    try:
        return create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logger.error("[supabase] failed to create client: %r", e)
        return None


def _to_row(data: Dict[str, Any]) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    for k, v in data.items():
        if hasattr(v, "model_dump"):
            v = v.model_dump(mode="json", by_alias=True, exclude_none=True)
        elif hasattr(v, "isoformat"):
            v = v.isoformat()
        row[_FORM_COLUMNS.get(k, k)] = v
    return row


def _from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    return {_ROW_KEYS.get(k, k): v for k, v in (row or {}).items()}


class SupabaseFormStore:
    def __init__(self, client: Client) -> None:
        self.client = client

    def _forms(self):
        return self.client.table(FORMS_TABLE)

    def _submissions(self):
        return self.client.table(SUBMISSIONS_TABLE)

    def insert_form(self, data: Dict[str, Any]) -> Form:
        now = utcnow()
        payload = {"id": uuid.uuid4().hex, "createdAt": now, "updatedAt": now, **data}
        result = self._forms().insert(_to_row(payload)).execute()
        rows = result.data or []
        return Form.model_validate(_from_row(rows[0]) if rows else payload)

    def get_form(self, form_id: str) -> Optional[Form]:
        result = self._forms().select("*").eq("id", str(form_id)).limit(1).execute()
        rows = result.data or []
        return Form.model_validate(_from_row(rows[0])) if rows else None

    def list_forms(self, owner_id: str) -> List[Form]:
        result = self._forms().select("*").eq("owner_id", str(owner_id)).order("created_at", desc=True).execute()
        return [Form.model_validate(_from_row(r)) for r in result.data or []]

    def list_forms_with_embedding(self, owner_id: str) -> List[Form]:
        result = (
            self._forms()
            .select("*")
            .eq("owner_id", str(owner_id))
            .not_.is_("embedding", "null")
            .neq("embedding", "[]")
            .order("created_at")
            .execute()
        )
        return [f for f in (Form.model_validate(_from_row(r)) for r in result.data or []) if f.embedding]

    def list_forms_missing_embedding(self, limit: Optional[int] = None) -> List[Form]:
        query = self._forms().select("*").or_("embedding.is.null,embedding.eq.[]").order("created_at")
        if limit:
            query = query.limit(limit)
        result = query.execute()
        return [f for f in (Form.model_validate(_from_row(r)) for r in result.data or []) if not f.embedding]

    def get_forms_by_ids(self, form_ids: Sequence[str], owner_id: str) -> List[Form]:
        ids = [str(x) for x in form_ids if x]
        if not ids:
            return []
        result = self._forms().select("*").in_("id", ids).eq("owner_id", str(owner_id)).execute()
        by_id = {str(r.get("id")): Form.model_validate(_from_row(r)) for r in result.data or []}
        # Keep the index's ranking order.
        return [by_id[i] for i in ids if i in by_id]

    def update_form(self, form_id: str, changes: Dict[str, Any]) -> Form:
        row = _to_row({**changes, "updatedAt": utcnow()})
        result = self._forms().update(row).eq("id", str(form_id)).execute()
        rows = result.data or []
        if not rows:
            raise NotFound("Form not found")
        return Form.model_validate(_from_row(rows[0]))

    def insert_submission(self, data: Dict[str, Any]) -> Submission:
        payload = {"id": uuid.uuid4().hex, "createdAt": utcnow(), **data}
        result = self._submissions().insert(_to_row(payload)).execute()
        rows = result.data or []
        return Submission.model_validate(_from_row(rows[0]) if rows else payload)

    def list_submissions(self, form_id: str) -> List[Submission]:
        result = self._submissions().select("*").eq("form_id", str(form_id)).order("created_at", desc=True).execute()
        return [Submission.model_validate(_from_row(r)) for r in result.data or []]

    def count_submissions_by_form(self, owner_id: str) -> Dict[str, int]:
        result = self._submissions().select("form_id").eq("owner_id", str(owner_id)).execute()
        counts: Dict[str, int] = {}
        for r in result.data or []:
            fid = str(r.get("form_id") or "")
            if fid:
                counts[fid] = counts.get(fid, 0) + 1
        return counts


__all__ = ["SupabaseFormStore", "get_supabase_client"]
