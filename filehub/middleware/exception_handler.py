"""Exception handlers for structured error responses."""

import logging
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from ..exceptions import ErrorCode, FileHubException

logger = logging.getLogger(__name__)


async def filehub_exception_handler(request: Request, exc: FileHubException) -> JSONResponse:
    """
    Handle custom exceptions and return structured JSON responses.

    Logs error details and converts exception to standardized JSON format.
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"FileHubException: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def _field_errors(exc: RequestValidationError) -> list[dict]:
    """Flatten pydantic errors to ``[{"field", "message"}]``.

    The first ``loc`` element is the request part (query, body, path) and is
    dropped so the field names match the client-facing parameter names.
    """
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("query", "body", "path", "header", "form"):
            loc = loc[1:]
        errors.append({"field": ".".join(loc) or "request", "message": err.get("msg", "Invalid value")})
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed requests as 400 with the offending fields listed."""
    errors = _field_errors(exc)
    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "method": request.method, "fields": [e["field"] for e in errors]},
    )
    return JSONResponse(
        status_code=400,
        content={
            "error": ErrorCode.VALIDATION_ERROR.value,
            "message": "Invalid request data",
            "details": {"errors": errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: full detail in the log, nothing internal in the response."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": ErrorCode.INTERNAL_ERROR.value,
            "message": "Internal server error",
            "details": {},
        },
    )
