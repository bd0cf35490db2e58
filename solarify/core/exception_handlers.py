"""Error responses.

Every error the API returns has the body {"error": CODE, "message": ...},
plus "details" for domain and request-validation errors.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from solarify.core.config import get_settings
from solarify.domain.exceptions import SolarifyException

logger = logging.getLogger(__name__)


def status_for(exc: SolarifyException) -> int:
    return exc.http_status


async def handle_domain_error(request: Request, exc: SolarifyException) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.warning("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=status,
        content=exc.to_dict(),
        headers={"WWW-Authenticate": "Bearer"} if status == 401 else None,
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors()),
        },
    )


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": exc.detail},
        headers=exc.headers,
    )


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    """500. The exception text reaches the client only with DEBUG on."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if get_settings().debug else "Internal server error"
    return JSONResponse(status_code=500, content={"error": "INTERNAL_ERROR", "message": message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SolarifyException, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected)
