import logging
import sys
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from weatherlog.api.routes import router
from weatherlog.config.settings import Settings, settings
from weatherlog.config.utils import get_config_summary, validate_configuration
from weatherlog.models.responses import error_response, success_response
from weatherlog.services.weather_service import create_weather_service
from weatherlog.utils.exceptions import ValidationError, WeatherAPIError


def setup_logging(settings_obj: Settings) -> None:
    """Configure structured logging for the application."""

    log_level = getattr(logging, settings_obj.log_level.upper())

    if settings_obj.log_format == "json" and not settings_obj.is_development:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


def create_app(settings_obj: Settings | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app_settings = settings_obj or settings

    setup_logging(app_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Build the weather service on startup and release it on shutdown."""
        logger = structlog.get_logger(__name__)

        logger.info(
            "Starting Weather Log API",
            version=app_settings.app_version,
            config=get_config_summary(app_settings),
        )

        validation = validate_configuration(app_settings)
        for warning in validation["warnings"]:
            logger.warning("Configuration warning", warning=warning)
        if not validation["valid"]:
            logger.error("Invalid configuration", errors=validation["errors"])
            raise RuntimeError(
                "Invalid configuration: " + "; ".join(validation["errors"])
            )

        # tests may install their own service before startup
        if getattr(app.state, "weather_service", None) is None:
            app.state.weather_service = await create_weather_service(app_settings)
            logger.info("Weather service initialized successfully")

        yield  # Application is running

        logger.info("Shutting down Weather Log API")
        try:
            await app.state.weather_service.cleanup()
            logger.info("Weather service cleanup completed")
        except Exception as e:
            logger.error("Error during service cleanup", error=str(e))

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Weather lookups backed by a persisted observation log",
        docs_url="/api/v1/docs" if app_settings.is_development else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next) -> Response:
        """Log requests and add processing time headers."""
        logger = structlog.get_logger(__name__)

        start_time = time.time()
        request_id = f"req_{int(start_time * 1000000)}"

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        logger.info("Request started")

        try:
            response = await call_next(request)

            process_time = time.time() - start_time
            response.headers["X-Process-Time"] = str(process_time)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "Request completed",
                status_code=response.status_code,
                process_time=process_time,
            )

            return response

        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                "Request failed",
                error=str(e),
                error_type=type(e).__name__,
                process_time=process_time,
            )
            raise

    @app.exception_handler(WeatherAPIError)
    async def weather_api_error_handler(
        _request: Request, exc: WeatherAPIError
    ) -> JSONResponse:
        """Convert domain errors raised outside the route handlers."""
        logger = structlog.get_logger(__name__)
        logger.warning(
            "Weather API error", error=str(exc), error_type=type(exc).__name__
        )

        message = (
            "Validation Error" if isinstance(exc, ValidationError) else "Request failed"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(message, str(exc)),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed requests with the 400 validation envelope."""
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content=error_response("Validation Error", details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Wrap framework HTTP errors (unknown routes included) in the envelope."""
        if exc.status_code == 404:
            logger = structlog.get_logger(__name__)
            logger.warning("Route not found", path=request.url.path, method=request.method)
            content = error_response(
                "Route not found",
                f"The requested route {request.method} {request.url.path} was not found",
            )
        else:
            content = error_response(str(exc.detail))

        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        _request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected errors gracefully."""
        logger = structlog.get_logger(__name__)
        logger.error(
            "Unhandled exception", error=str(exc), error_type=type(exc).__name__
        )

        return JSONResponse(
            status_code=500,
            content=error_response(
                "Internal Server Error",
                str(exc) if app_settings.is_development else None,
            ),
        )

    app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint providing basic service information."""
        return success_response(
            {
                "service": app_settings.app_name,
                "version": app_settings.app_version,
                "status": "running",
                "docs": "/api/v1/docs" if app_settings.is_development else "disabled",
            },
            "Weather Log API is running",
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "weatherlog.main:app",
        host=settings.host,
        port=settings.port,
        workers=settings.workers,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
