"""Exception handlers that turn errors into the standard JSON error body."""

import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from kol360.config import get_settings
from kol360.exceptions import ApiError

logger = logging.getLogger(__name__)

FRIENDLY_MESSAGES = {
    400: "The request was invalid. Please check your input and try again.",
    401: "Please sign in to continue.",
    403: "You do not have permission to perform this action.",
    404: "The requested resource was not found.",
    409: "This record already exists.",
    429: "Too many requests. Please wait a moment and try again.",
    500: "Something went wrong. Please try again later.",
    503: "The service is temporarily unavailable. Please try again later.",
}

ERROR_NAMES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _trace_id(request: Request) -> str:
    return getattr(request.state, "trace_id", "") or ""


def error_body(request: Request, status_code: int, message: str, error: str = None) -> dict:
    return {
        "error": error or ERROR_NAMES.get(status_code, "Error"),
        "message": message,
        "status_code": status_code,
        "trace_id": _trace_id(request),
    }


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        f"{exc.error}: {exc.message}",
        extra={"extra_fields": {"path": request.url.path, "status_code": exc.status_code,
                                "trace_id": _trace_id(request)}},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.message, exc.error),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else FRIENDLY_MESSAGES.get(exc.status_code, "Error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = error_body(request, 422, "Validation failed")
    body["details"] = [
        {"field": ".".join(str(p) for p in err.get("loc", [])[1:]), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=422, content=body)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Integrity error: {exc.orig}", extra={"extra_fields": {"path": request.url.path}})
    return JSONResponse(status_code=409, content=error_body(request, 409, FRIENDLY_MESSAGES[409]))


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(f"Database unavailable: {exc}", extra={"extra_fields": {"path": request.url.path}})
    return JSONResponse(status_code=503, content=error_body(request, 503, FRIENDLY_MESSAGES[503]))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        f"Unhandled error: {exc}",
        extra={"extra_fields": {"path": request.url.path, "trace_id": _trace_id(request)}},
    )
    if get_settings().is_production:
        message = FRIENDLY_MESSAGES[500]
    else:
        message = f"{exc.__class__.__name__}: {exc}"
    return JSONResponse(status_code=500, content=error_body(request, 500, message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
