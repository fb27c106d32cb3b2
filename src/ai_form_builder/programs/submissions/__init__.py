from ai_form_builder.programs.submissions.service import FormService, SubmissionService
from ai_form_builder.programs.submissions.validation import validate_field, validate_responses

__all__ = ["FormService", "SubmissionService", "validate_field", "validate_responses"]
