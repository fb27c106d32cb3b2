from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from ai_form_builder.api.deps import Services, build_services
from ai_form_builder.api.http_logging import install_http_logging
from ai_form_builder.api.routes.forms import router as forms_router
from ai_form_builder.api.routes.health import router as health_router
from ai_form_builder.api.routes.similarity import router as similarity_router
from ai_form_builder.api.routes.submissions import router as submissions_router
from ai_form_builder.errors import FormServiceError
from ai_form_builder.settings import Settings

logger = logging.getLogger("ai_form_builder.api")

_app: Optional[FastAPI] = None


def _request_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def _error_body(error: str, message: str, request_id: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    content: Dict[str, Any] = {"ok": False, "error": error, "message": message, "requestId": request_id}
    if details:
        content.update(details)
    return content


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FormServiceError)
    async def _service_error_handler(request: Request, exc: FormServiceError) -> JSONResponse:
        request_id = _request_id(exc.error)
        logger.info(
            "[api] %s %s requestId=%s path=%s message=%s",
            exc.status_code,
            exc.error,
            request_id,
            request.url.path,
            exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error, exc.message, request_id, exc.details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        request_id = _request_id("http")
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("http_error", str(exc.detail), request_id),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = _request_id("val")
        # Keep server logs useful without dumping full bodies.
        logger.info("[api] 422 validation_error requestId=%s path=%s errors=%s", request_id, request.url.path, exc.errors())
        return JSONResponse(
            status_code=422,
            content=_error_body(
                "validation_error",
                "Request body did not match expected schema.",
                request_id,
                {"details": jsonable_encoder(exc.errors())},
            ),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = _request_id("err")
        logger.exception("[api] 500 internal_error requestId=%s path=%s", request_id, request.url.path)
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("internal_error", "Unhandled server error.", request_id),
        )


def create_app(settings: Optional[Settings] = None, *, services: Optional[Services] = None) -> FastAPI:
    settings = settings or (services.settings if services else Settings.from_env())
    api_v1_prefix = "/v1"

    app = FastAPI(title="ai-form-builder", version="0.1.0")
    app.state.services = services or build_services(settings)

    install_error_handlers(app)
    install_http_logging(app, settings)

    # Unversioned health is convenient for deployments and uptime checks.
    app.include_router(health_router)
    app.include_router(forms_router, prefix=api_v1_prefix)
    app.include_router(submissions_router, prefix=api_v1_prefix)
    app.include_router(similarity_router, prefix=api_v1_prefix)
    return app


def __getattr__(name: str) -> Any:
    # `uvicorn ai_form_builder.api.main:app` builds the app lazily so importing
    # this module (tests, scripts) never touches the environment.
    global _app
    if name == "app":
        if _app is None:
            _app = create_app()
        return _app
    raise AttributeError(name)
