from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, Sequence

from ai_form_builder.schemas.records import Form, Submission


class FormStore(Protocol):
    """Document-store contract for forms and submissions."""

    def insert_form(self, data: Dict[str, Any]) -> Form: ...

    def get_form(self, form_id: str) -> Optional[Form]: ...

    def list_forms(self, owner_id: str) -> List[Form]:
        """Owner's forms, newest first."""
        ...

    def list_forms_with_embedding(self, owner_id: str) -> List[Form]: ...

    def list_forms_missing_embedding(self, limit: Optional[int] = None) -> List[Form]: ...

    def get_forms_by_ids(self, form_ids: Sequence[str], owner_id: str) -> List[Form]: ...

    def update_form(self, form_id: str, changes: Dict[str, Any]) -> Form: ...

    def insert_submission(self, data: Dict[str, Any]) -> Submission: ...

    def list_submissions(self, form_id: str) -> List[Submission]:
        """Submissions for a form, newest first."""
        ...

    def count_submissions_by_form(self, owner_id: str) -> Dict[str, int]: ...


__all__ = ["FormStore"]
