from __future__ import annotations

from typing import Any, Dict, Optional


class FormServiceError(Exception):
    """Base class for errors surfaced to API callers as `{ok:false, error, message}`."""

    error: str = "internal_error"
    status_code: int = 500

    def __init__(self, message: str = "", *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message or self.error)
        self.message = message or self.error
        self.details = details


class InvalidInput(FormServiceError):
    """Empty prompt, malformed request, or submission field errors (`details`)."""

    error = "invalid_input"
    status_code = 400


class UpstreamUnavailable(FormServiceError):
    """Text-generation / embedding / vector-index failure. Recovered internally."""

    error = "upstream_unavailable"
    status_code = 502


class NotFound(FormServiceError):
    error = "not_found"
    status_code = 404


class Forbidden(FormServiceError):
    error = "forbidden"
    status_code = 403


__all__ = ["FormServiceError", "InvalidInput", "UpstreamUnavailable", "NotFound", "Forbidden"]
