from ai_form_builder.schemas.form_schema import (
    FileConstraints,
    FormField,
    FormSchema,
    GeneratedMeta,
    ValidationRule,
)
from ai_form_builder.schemas.records import Form, Submission

__all__ = [
    "FileConstraints",
    "Form",
    "FormField",
    "FormSchema",
    "GeneratedMeta",
    "Submission",
    "ValidationRule",
]
