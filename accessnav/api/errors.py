"""Exception handlers that turn errors into the structured error payload.

    {"success": false, "message": "...", "error": {"type": "...", "code": "...", ...}}
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from accessnav.core.exceptions import AccessNavError, AuthenticationError

logger = logging.getLogger(__name__)


def error_payload(message: str, error: dict) -> dict:
    return {"success": False, "message": message, "error": error}


async def accessnav_error_handler(request: Request, exc: AccessNavError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.type, request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(exc.message, exc.to_error()),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_payload(
            "Validation failed",
            {
                "type": "ValidationError",
                "code": "VALIDATION_ERROR",
                "details": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                    for err in exc.errors()
                ],
            },
        ),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_payload(
            str(exc.detail),
            {"type": "HTTPException", "code": f"HTTP_{exc.status_code}"},
        ),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_payload(
            "Internal server error",
            {"type": "InternalServerError", "code": "INTERNAL_ERROR"},
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all error handlers to ``app``."""
    app.add_exception_handler(AccessNavError, accessnav_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
