"""Exception handlers mapping errors onto the JSON envelope."""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tos.api.schemas import error_envelope
from tos.errors import TosError

logger = logging.getLogger(__name__)


def _field_details(exc: RequestValidationError):
    details = []
    for err in exc.errors():
        # Drop the "query" / "body" / "path" prefix from the location
        loc = [str(part) for part in err.get("loc", ())[1:]]
        details.append({
            "field": ".".join(loc),
            "message": err.get("msg", ""),
            "type": err.get("type", ""),
        })
    return details


def install_error_handlers(app: FastAPI, development: bool = False) -> None:
    """Register envelope-producing handlers on app.

    Args:
        development: include exception details in 500 responses.
    """

    @app.exception_handler(TosError)
    async def tos_error_handler(request: Request, exc: TosError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.title, str(exc)),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_envelope(
                "Invalid request parameters",
                details=_field_details(exc),
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            content = error_envelope(
                "Route not found",
                f"{request.method} {request.url.path} not found",
            )
        else:
            content = error_envelope(str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        extra = {"details": str(exc)} if development else {}
        return JSONResponse(
            status_code=500,
            content=error_envelope("Internal Server Error", **extra),
        )
