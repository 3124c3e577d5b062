"""FastAPI application initialization and configuration module.

This module serves as the main entry point for the Userbase API application.
It handles:
- Application lifecycle management (startup state machine, shutdown)
- Middleware registration in the correct order
- Exception handler registration
- The ``/api/users`` resource and the ``/health`` endpoint

The module follows a layered middleware approach where middleware are
executed in reverse order of registration, ensuring proper request/response
processing flow.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from loguru import logger

from src.api.constants import API_PREFIX
from src.api.middleware.error_handler import register_exception_handlers
from src.api.middleware.request_context import RequestContextMiddleware
from src.api.middleware.request_logging import RequestLoggingMiddleware
from src.api.routes.users import router as users_router
from src.api.schemas.users import HealthResponse
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.exceptions import StartupError
from src.core.lifecycle import StartupState, StartupStateMachine
from src.core.logging import log_error, log_info, setup_logging
from src.infrastructure.database.dependencies import DatabaseDep
from src.infrastructure.database.session import Database


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan events.

    Uvicorn runs this startup phase before binding its sockets, so no
    request is accepted until the database is reachable and bootstrapped.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.

    Raises:
        StartupError: If the database stays unreachable after every retry.
    """
    database: Database = app_instance.state.database
    startup: StartupStateMachine = app_instance.state.startup

    startup.transition(StartupState.CONNECTING)
    try:
        await database.connect()
    except StartupError as exc:
        startup.transition(StartupState.FAILED)
        logger.bind(
            status=None,
            context={
                **exc.context,
                "error_code": exc.error_code,
                "cause_type": type(exc.cause).__name__ if exc.cause else None,
            },
        ).critical("Startup aborted: {}", exc.message)
        await database.close()
        raise

    startup.transition(StartupState.READY)
    startup.transition(StartupState.SERVING)
    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    # Shutdown: Cleanup database connections
    logger.info("Application shutdown initiated")
    await database.close()
    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None, database: Database | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use get_settings().
        database: Optional database handle. Built from settings if not provided.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    # Setup logging first
    setup_logging(settings)

    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    application.state.database = database or Database.from_settings(settings)
    application.state.startup = StartupStateMachine()

    # Register exception handlers BEFORE middleware
    register_exception_handlers(application)

    # Middleware are executed in reverse order of registration

    # 2. Request logging middleware (writes access records)
    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)

    # 1. Request context middleware (creates correlation ID)
    application.add_middleware(RequestContextMiddleware)

    application.include_router(users_router, prefix=API_PREFIX)

    @application.get("/health", response_model=HealthResponse)
    async def health(db: DatabaseDep) -> ORJSONResponse:
        """Health check endpoint for monitoring and container orchestration.

        Returns:
            ORJSONResponse: 200 when the database answers, 500 otherwise.
        """
        if await db.ping():
            log_info(status.HTTP_200_OK, "Health check passed", event="HEALTH_CHECK")
            return ORJSONResponse(
                status_code=status.HTTP_200_OK,
                content=HealthResponse(status="OK", database="connected"),
            )

        log_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Health check failed",
            event="HEALTH_CHECK_FAILED",
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=HealthResponse(status="ERROR", database="disconnected"),
        )

    return application


app = create_app()
