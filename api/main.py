from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from sqlalchemy.exc import SQLAlchemyError

from api.v1.routes.router import api_router
from common.core.config import settings
from common.core.exceptions import AppException, ValidationError
from common.core.telemetry import get_logger
from common.db.session import dispose_engine
from common.providers.locking.factory import get_lock_provider
from common.providers.messaging import get_message_queue
from internal.routes.router import internal_router
from packages.vice.models.domain.admission import ErrorResponse

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting application...")
    if not await get_message_queue().connect():
        # Requests reconnect on demand
        logger.warning("RabbitMQ unavailable at startup")
    yield
    # Shutdown
    logger.info("Shutting down application...")
    await get_message_queue().disconnect()
    await get_lock_provider().disconnect()
    await dispose_engine()


# Only expose OpenAPI docs in local development
docs_url = "/docs" if settings.environment == "local" else None
openapi_url = "/openapi.json" if settings.environment == "local" else None

app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=None,
    openapi_url=openapi_url,
)


def error_response(
    status_code: int, error_code: str, message: str, details: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, message=message, details=details)
    content = body.model_dump(by_alias=True)
    if details is None:
        content.pop("details")
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.error_code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        400,
        ValidationError.error_code,
        "request failed validation",
        {"errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"{request.method} {request.url.path} database error: {exc}")
    return error_response(500, AppException.error_code, f"database error: {exc}")


# Anything else still gets an error body; Starlette re-raises it for the server log
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} failed")
    return error_response(500, AppException.error_code, str(exc) or type(exc).__name__)


# Instrument FastAPI with OpenTelemetry
FastAPIInstrumentor.instrument_app(app)

app.include_router(api_router)
app.include_router(internal_router)
