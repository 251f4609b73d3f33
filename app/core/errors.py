"""
Error Responses - one JSON shape per error family.

- Single errors:      {"message": "..."}
- Field validation:   {"errors": [{"msg": "...", "param": "...", ...}]}  (HTTP 400)
- Unexpected errors:  {"message": "Server error"}  (HTTP 500, details only in logs)
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)

SERVER_ERROR_MESSAGE = "Server error"


def _format_validation_error(error: dict) -> dict:
    loc = [str(part) for part in error.get("loc", ())]
    ctx = error.get("ctx") or {}
    # Custom validators raise ValueError; surface their text without pydantic's prefix
    if error.get("type") == "value_error" and "error" in ctx:
        msg = str(ctx["error"])
    else:
        msg = error.get("msg", "Invalid value")
    return {
        "msg": msg,
        "param": ".".join(loc[1:]) if len(loc) > 1 else (loc[0] if loc else ""),
        "location": loc[0] if loc else "body",
        "type": error.get("type"),
    }


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [_format_validation_error(error) for error in exc.errors()]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": errors})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "unhandled error",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": SERVER_ERROR_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
