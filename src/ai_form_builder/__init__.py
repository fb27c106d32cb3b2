"""
Internal library package for ai-form-builder.

This package holds the service implementation (API, DSPy-backed generation,
form memory, submission validation, storage adapters).

- Runtime package: `src/ai_form_builder/`
- ASGI entrypoint: `ai_form_builder.api.main:app`
"""

__version__ = "0.1.0"
