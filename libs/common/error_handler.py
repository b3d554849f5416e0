"""Uniform JSON error bodies for the storefront API.

All errors leave the service as ``{"error": <message>, "details": <optional>}``:

- ``HTTPException`` raised by routers and the service layer keeps its status
  code; a dict ``detail`` is passed through as-is (it already carries
  ``error``/``details``), a string ``detail`` becomes ``error``.
- Request validation failures become 400 with the offending fields listed.
- Anything else is logged and rendered as 500; the exception text is only
  included outside production.
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)

# Environments where a 500 may carry the exception text.
_DEBUG_ENVIRONMENTS = frozenset({"local", "development", "test"})

# An empty string counts as missing for required text fields.
_MISSING_TYPES = frozenset({"missing", "string_too_short"})


def error_body(error: str, details: Any = None) -> dict[str, Any]:
    body: dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return body


def _field_name(loc: tuple) -> str:
    # Drop the leading "body"/"query" marker FastAPI puts in front.
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    else:
        content = error_body(str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    details = [
        {"field": _field_name(tuple(err.get("loc", ()))), "message": err.get("msg")}
        for err in errors
    ]
    missing = [
        _field_name(tuple(err.get("loc", ())))
        for err in errors
        if err.get("type") in _MISSING_TYPES
    ]
    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    elif details:
        message = str(details[0]["message"]).removeprefix("Value error, ")
    else:
        message = "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(message, details),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    details = None
    if get_settings().ENVIRONMENT in _DEBUG_ENVIRONMENTS:
        details = str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal Server Error", details),
    )


def add_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
