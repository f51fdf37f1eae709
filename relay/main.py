import logging
from typing import Optional
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from relay.api.router import include_api_routers
from relay.config import Settings, get_settings
from relay.core.circuit_breaker import CircuitBreakerOpenException, CircuitBreakerRegistry
from relay.core.exceptions import (
    ApiKeyRequiredException,
    ExpiredApiKeyException,
    ExternalAPIException,
    InvalidApiKeyException,
    KeyStoreError,
)
from relay.core.logging_config import setup_logging, cleanup_old_logs
from relay.core.logging_utils import get_request_id, sanitize_log_message
from relay.core.route_policy import RoutePolicy
from relay.middleware.logging_middleware import LoggingMiddleware
from relay.middleware.rate_limit import setup_rate_limiting
from relay.middleware.security import setup_security_middleware
from relay.services.key_store import JsonFileKeyStore

logger = logging.getLogger(__name__)


def error_response(status_code: int, detail: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": detail}, headers=headers)


def _request_context(request: Request) -> dict:
    return {
        "Path": request.url.path,
        "Method": request.method,
        "IP": request.client.host if request.client else None,
        "RequestID": get_request_id(request),
    }


def validation_message(exc: RequestValidationError) -> str:
    """One readable line naming the offending parameter(s)."""
    parts = []
    for error in exc.errors():
        location = [str(item) for item in error.get("loc", ()) if item not in ("query", "body", "header")]
        name = ".".join(location) or "body"
        parts.append(f"Parameter '{name}': {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request."


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Turn every failure into a JSON body with an error field."""

    @app.exception_handler(ApiKeyRequiredException)
    @app.exception_handler(InvalidApiKeyException)
    @app.exception_handler(ExpiredApiKeyException)
    async def api_key_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            sanitize_log_message("API key rejected", Detail=exc.detail, **_request_context(request))
        )
        return error_response(exc.status_code, exc.detail, getattr(exc, "headers", None))

    @app.exception_handler(ExternalAPIException)
    async def external_api_handler(request: Request, exc: ExternalAPIException):
        logger.error(
            sanitize_log_message(
                "External API error",
                StatusCode=exc.status_code,
                Detail=exc.detail,
                **_request_context(request)
            )
        )
        return error_response(exc.status_code, exc.detail)

    @app.exception_handler(CircuitBreakerOpenException)
    async def circuit_breaker_handler(request: Request, exc: CircuitBreakerOpenException):
        logger.warning(
            sanitize_log_message("Circuit breaker open", Message=exc.message, **_request_context(request))
        )
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service temporarily unavailable. Please try again later."
        )

    @app.exception_handler(KeyStoreError)
    async def key_store_handler(request: Request, exc: KeyStoreError):
        logger.error(
            sanitize_log_message("API key store error", Error=exc.message, **_request_context(request))
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "API key store is unavailable.")

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        detail = validation_message(exc)
        logger.info(sanitize_log_message("Invalid request", Detail=detail, **_request_context(request)))
        return error_response(status.HTTP_400_BAD_REQUEST, detail)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error(sanitize_log_message("Request failed", Detail=exc.detail, **_request_context(request)))
        else:
            logger.info(sanitize_log_message("Request rejected", Detail=exc.detail, **_request_context(request)))
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(
            sanitize_log_message(
                f"Unhandled exception: {type(exc).__name__}",
                ExceptionMessage=str(exc),
                **_request_context(request)
            )
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error" if settings.ENVIRONMENT == "production" else str(exc)
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the relay application from one immutable Settings object."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        docs_url=f"{settings.API_PREFIX}/docs",
        redoc_url=f"{settings.API_PREFIX}/redoc",
    )
    app.state.settings = settings
    app.state.key_store = JsonFileKeyStore(settings.API_KEYS_FILE)
    app.state.route_policy = RoutePolicy(settings.GATED_ROUTES, prefix=settings.API_PREFIX)
    app.state.circuit_breakers = CircuitBreakerRegistry(settings)

    @app.on_event("startup")
    async def startup_event():
        """Initialize logging and load the key store; a corrupt key file aborts startup."""
        setup_logging(settings)
        cleanup_old_logs(settings)
        records = await app.state.key_store.load()
        app.state.route_policy.warn_unknown(registered_routes)
        logger.info(
            f"Application startup complete - {len(records)} API key(s) on file, "
            f"services: {', '.join(settings.ENABLED_SERVICES) or 'none'}"
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key", "X-Request-ID", "Accept", "Origin"],
        expose_headers=["X-Request-ID", "Content-Disposition"],
    )

    setup_security_middleware(app, max_request_size=settings.MAX_REQUEST_SIZE)

    if settings.LOG_ENABLE_REQUEST_LOGGING:
        app.add_middleware(LoggingMiddleware)

    setup_rate_limiting(app, settings)

    registered_routes = include_api_routers(app, settings, app.state.route_policy)
    register_exception_handlers(app, settings)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "apiKeys": await app.state.key_store.count(),
            "circuits": app.state.circuit_breakers.status()
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": f"{settings.API_PREFIX}/docs"
        }

    return app


app = create_app()


def run() -> None:
    """Serve the relay with uvicorn on HOST:PORT."""
    settings = get_settings()
    logger.info(f"Starting {settings.PROJECT_NAME} on {settings.HOST}:{settings.PORT}")
    uvicorn.run("relay.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
