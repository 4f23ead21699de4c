"""FastAPI application entrypoint. No business logic; only wiring, middleware and error envelopes."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from account_service.api import router
from account_service.api.deps import enforce_access_policy
from account_service.core.config import settings
from account_service.core.log import configure_logging
from account_service.schemas.common import ApiResponse, FieldError

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def _envelope(response: ApiResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=response.code,
        content=response.model_dump(mode="json"),
        headers=headers,
    )


def _field_name(loc: tuple) -> str:
    # Drop the "body"/"query"/"path" source prefix.
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException (route, auth and routing errors) in the response envelope."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _envelope(
        ApiResponse.error(message, code=exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed or missing input: 400 with one entry per failing field."""
    errors = [
        FieldError(field=_field_name(tuple(err.get("loc", ()))), message=err.get("msg", ""))
        for err in exc.errors()
    ]
    first = f"{errors[0].field}: {errors[0].message}" if errors else "invalid request"
    logger.info("Validation failed for %s %s: %s", request.method, request.url.path, first)
    return _envelope(
        ApiResponse.error(
            f"Validation failed: {first}",
            code=400,
            data=[e.model_dump() for e in errors],
        )
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Storage failure: generic 500, details only in the log."""
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return _envelope(ApiResponse.error(INTERNAL_ERROR_MESSAGE, code=500))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _envelope(ApiResponse.error(INTERNAL_ERROR_MESSAGE, code=500))


app = FastAPI(
    title="Account Service API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    dependencies=[Depends(enforce_access_policy)],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    max_age=3600,
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, database_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(router)
