from ai_form_builder.programs.form_generator.generator import SchemaGenerator, fallback_schema
from ai_form_builder.programs.form_generator.normalizer import normalize_fields, normalize_schema, slugify
from ai_form_builder.programs.form_generator.parsing import ParseResult, parse_schema_text

__all__ = [
    "ParseResult",
    "SchemaGenerator",
    "fallback_schema",
    "normalize_fields",
    "normalize_schema",
    "parse_schema_text",
    "slugify",
]
