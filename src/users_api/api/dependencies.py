"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Services stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from users_api.config import Settings, get_engine, get_redis_client
from users_api.handlers import UserHandler
from users_api.logger import get_logger
from users_api.repositories import SqlUserRepository
from users_api.services import UserService
from users_api.telemetry import get_tracer


def get_handler(request: Request) -> UserHandler:
    """Dependency injection for UserHandler from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The UserHandler instance from app.state

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "user_handler", None)
    if handler is None:
        raise RuntimeError("UserHandler not initialized. Check lifespan setup.")
    return handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app.

    Initializes all layers and stores in app.state:
    1. Engine and Redis client (process-owned connections)
    2. Repository (data access) - schema created if configured
    3. Service (business logic) - stored in app.state.user_service
    4. Handler (HTTP endpoints) - stored in app.state.user_handler

    Cleanup:
        Closes connections, flushes tracing and removes all services from
        app.state on shutdown
    """
    settings: Settings = app.state.settings
    logger = get_logger("users_api.api")

    engine = get_engine(settings)
    redis_client = get_redis_client(settings)

    repository = SqlUserRepository(engine)
    if settings.database_create_schema:
        await repository.create_schema()

    user_service = UserService(
        repository=repository,
        cache_backend=redis_client,
        expiration=settings.cache_expiration,
        logger=get_logger("users_api.services"),
        tracer=get_tracer("users_api.services"),
    )
    user_handler = UserHandler(user_service=user_service, logger=get_logger("users_api.handlers"))

    # Store in app.state (FastAPI pattern)
    app.state.user_service = user_service
    app.state.user_handler = user_handler

    logger.info(
        "User service initialized",
        cache_expiration=settings.cache_expiration,
        redis_url=settings.redis_url,
    )

    yield

    logger.info("Shutting down user service")
    del app.state.user_handler
    del app.state.user_service

    await redis_client.aclose()
    await engine.dispose()
    app.state.tracing_shutdown()


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[UserHandler, Depends(get_handler)]
