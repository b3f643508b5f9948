"""tfscore FastAPI application.

Routes:
    GET  /health          Liveness check
    POST /v1/assessments  Assess one project; body is an AssessmentRequest

Error envelope (all non-2xx responses):
    {"code": str, "message": str, "details": dict | None, "request_id": str}
"""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tfscore import __version__
from tfscore.models.inputs import AssessmentRequest
from tfscore.scoring.engine import AssessmentEngine, AssessmentError, build_engine_from_env
from tfscore.scoring.models import AssessmentReport

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    time: str
    version: str


def make_error_response(
    request: Request,
    *,
    code: str,
    message: str,
    http_status: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build an error JSON response with a request correlation ID."""
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    body: dict[str, Any] = {
        "code": code,
        "message": message,
        "details": details,
        "request_id": request_id,
    }
    response = JSONResponse(status_code=http_status, content=body)
    response.headers["X-Request-Id"] = request_id
    return response


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map request validation errors to the error envelope (422)."""
    assert isinstance(exc, RequestValidationError)

    safe_details: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        safe_loc = [str(part) for part in loc if part not in ("body", "query", "path")]
        safe_details.append(
            {
                "field": ".".join(safe_loc) if safe_loc else "request",
                "message": error.get("msg", "Validation error"),
            }
        )

    return make_error_response(
        request,
        code="REQUEST_VALIDATION_FAILED",
        message="Request validation failed",
        http_status=422,
        details={"errors": safe_details} if safe_details else None,
    )


async def assessment_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Assessment could not produce a report (500)."""
    logger.error("Assessment failed: %s", exc)
    return make_error_response(
        request,
        code="ASSESSMENT_FAILED",
        message="Assessment could not be completed",
        http_status=500,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: 500 with a generic message, no exception details exposed."""
    logger.exception("Unhandled exception: %s", type(exc).__name__)
    return make_error_response(
        request,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        http_status=500,
    )


def create_app(engine: AssessmentEngine | None = None) -> FastAPI:
    """Create the tfscore FastAPI application.

    Args:
        engine: Engine to serve; built from the environment on first use when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title="tfscore",
        description="Transition finance compliance scoring engine",
        version=__version__,
    )
    app.state.engine = engine

    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(AssessmentError, assessment_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    def get_engine() -> AssessmentEngine:
        if app.state.engine is None:
            app.state.engine = build_engine_from_env()
        engine: AssessmentEngine = app.state.engine
        return engine

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="ok",
            time=datetime.now(UTC).isoformat(),
            version=__version__,
        )

    @app.post("/v1/assessments", response_model=AssessmentReport)
    def create_assessment(body: AssessmentRequest) -> AssessmentReport:
        """Assess one project and return the report."""
        return get_engine().assess(body)

    return app


app = create_app()
