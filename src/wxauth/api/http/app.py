"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from wxauth.api.http.app_data import ApplicationDependencies, build_dependencies
from wxauth.api.http.middleware.authentication import BearerAuthenticationMiddleware
from wxauth.api.http.responses import failure_response
from wxauth.api.http.routers.auth import router as auth_router
from wxauth.api.http.routers.health import readiness
from wxauth.api.http.routers.health import router as health_router
from wxauth.api.http.routers.profile import router as profile_router
from wxauth.api.utils.app_startup import configure_logging
from wxauth.core.exceptions import AuthServiceError
from wxauth.runtime.config.config_template import validate_config
from wxauth.runtime.context import get_config

GENERIC_FAILURE_MESSAGE = "Request failed"


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        response.headers.setdefault("Cache-Control", "no-store")
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )
        return response


# --- Request logging middleware ---
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    # The query string is omitted; it may carry secrets.
    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()
    with logger.contextualize(**base_ctx):
        logger.info("request.start")
        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.bind(
            status_code=response.status_code,
            duration_ms=round(duration_ms, 1),
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


# --- Exception handlers ---
async def handle_auth_service_error(request: Request, exc: AuthServiceError):
    logger.bind(error_kind=str(exc.kind), status_code=exc.status_code).info(
        "request.rejected: {}", exc.message
    )
    return failure_response(exc.status_code, exc.message)


async def handle_http_exception(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else GENERIC_FAILURE_MESSAGE
    return failure_response(exc.status_code, message, headers=exc.headers)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return failure_response(400, message)


async def handle_value_error(request: Request, exc: ValueError):
    # Also catches pydantic errors from internal models; keep details in the log.
    logger.bind(error_type=type(exc).__name__).warning("request.value_error: {}", exc)
    return failure_response(400, GENERIC_FAILURE_MESSAGE)


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.bind(error_type=type(exc).__name__).error("request.unhandled")
    return failure_response(400, GENERIC_FAILURE_MESSAGE)


# --- FastAPI app setup ---
def create_app(dependencies: ApplicationDependencies | None = None) -> FastAPI:
    """Build the API application.

    Args:
        dependencies: Pre-built services. When omitted they are built from the
            active configuration during startup.
    """
    config = get_config()
    validate_config(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "app_dependencies", None) is None:
            app.state.app_dependencies = build_dependencies(config)
        deps: ApplicationDependencies = app.state.app_dependencies
        if config.database.create_tables_on_startup:
            deps.database_service.create_all()
        logger.info("Starting up application in {} environment", config.app.environment)
        try:
            yield
        finally:
            logger.info("Shutting down application")

    is_production = config.app.environment == "production"
    app = FastAPI(
        title="wxauth",
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )
    app.state.app_dependencies = dependencies

    # Starlette runs the last added middleware first: CORS, security headers,
    # request logging, then the bearer gate right before routing.
    app.add_middleware(BearerAuthenticationMiddleware)
    app.add_middleware(BaseHTTPMiddleware, dispatch=log_requests)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.app.cors.origins,
        allow_credentials=config.app.cors.allow_credentials,
        allow_methods=config.app.cors.allow_methods,
        allow_headers=config.app.cors.allow_headers,
    )

    app.add_exception_handler(AuthServiceError, handle_auth_service_error)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(ValueError, handle_value_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(health_router)

    @app.get("/ready", include_in_schema=False)
    async def ready(request: Request):
        return await readiness(request)

    return app


def run() -> None:
    import uvicorn

    configure_logging()
    config = get_config()
    uvicorn.run(
        "wxauth.api.http.app:create_app",
        factory=True,
        host=config.app.host,
        port=config.app.port,
        access_log=False,
    )


if __name__ == "__main__":
    run()
