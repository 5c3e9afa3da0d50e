"""Error Handlers — global exception handlers for the brain dump API.

Invariants:
    - BrainSpaceError → structured JSON with its own http_status (404 / 409 / 503 ...)
    - RequestValidationError → 400 with field-level details
    - Exception (catch-all) → opaque 500, never leaks internal details

Design Decisions:
    - Log level follows error severity: a missing node is a warning, a failed write is not
    - Extracted from main.py to keep the entry point about wiring only
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import BrainSpaceError, ErrorSeverity, StructuralConflictError

logger = logging.getLogger(__name__)

_LOG_LEVEL: dict[ErrorSeverity, int] = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    app.add_exception_handler(BrainSpaceError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _generic_error_handler)


async def _domain_error_handler(request: Request, exc: BrainSpaceError) -> JSONResponse:
    logger.log(
        _LOG_LEVEL.get(exc.severity, logging.ERROR),
        f"{type(exc).__name__}: {exc.message}",
        extra={
            "error_code": exc.code, "path": request.url.path,
            "document_id": exc.context.document_id, "node_id": exc.context.node_id,
        },
    )
    content = exc.to_response()
    if isinstance(exc, StructuralConflictError) and exc.conflicting_ids:
        content["error"]["conflicting_ids"] = exc.conflicting_ids
    return JSONResponse(status_code=exc.http_status, content=content)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": "validation",
                "severity": ErrorSeverity.ERROR.value,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                        "type": e["type"],
                    }
                    for e in exc.errors()
                ],
            },
        },
    )


async def _generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": "internal",
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )
