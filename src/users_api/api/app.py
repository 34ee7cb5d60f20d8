from http import HTTPStatus
from typing import Any

from fastapi import APIRouter, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from users_api.api.dependencies import HandlerDep, lifespan
from users_api.api.middleware import (
    RecoverMiddleware,
    RequestLoggingMiddleware,
    TraceIDMiddleware,
    get_trace_id,
    problem_response,
)
from users_api.config import Settings, settings
from users_api.dto import HealthCheckResponse, InvalidParam, ListUsersResponse, UserRequest, UserResponse
from users_api.entities.health import HEALTHY
from users_api.handlers import ProblemException
from users_api.handlers.problems import path_not_found, validation_failed
from users_api.logger import configure_logging, get_logger
from users_api.telemetry import setup_tracing

API_TITLE = "Users API"
API_VERSION = "0.1.0"

router = APIRouter(prefix="/api")


@router.post(
    "/user",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["user"],
)
async def create_user(body: UserRequest, request: Request, handler: HandlerDep) -> UserResponse:
    """Create a user."""
    return await handler.create_user(body, trace_id=get_trace_id(request))


@router.get("/user", response_model=ListUsersResponse, tags=["user"])
async def list_users(
    request: Request, handler: HandlerDep, name: str | None = None
) -> ListUsersResponse:
    """List users, optionally filtered by exact name."""
    return await handler.list_users(name, trace_id=get_trace_id(request))


@router.get("/user/{user_id}", response_model=UserResponse, tags=["user"])
async def read_user(user_id: str, request: Request, handler: HandlerDep) -> UserResponse:
    """Read a user by id."""
    return await handler.read_user(user_id, trace_id=get_trace_id(request))


@router.put("/user/{user_id}", response_model=UserResponse, tags=["user"])
async def update_user(
    user_id: str, body: UserRequest, request: Request, handler: HandlerDep
) -> UserResponse:
    """Replace every field of a user."""
    return await handler.update_user(user_id, body, trace_id=get_trace_id(request))


@router.delete("/user/{user_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["user"])
async def delete_user(user_id: str, request: Request, handler: HandlerDep) -> Response:
    """Delete a user by id."""
    await handler.delete_user(user_id, trace_id=get_trace_id(request))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/health", response_model=HealthCheckResponse, tags=["health"])
async def health(response: Response, handler: HandlerDep) -> HealthCheckResponse:
    """Deep health check of the database and the cache."""
    result = await handler.health_check()
    if result.status != HEALTHY:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return result


async def handle_problem(request: Request, exc: ProblemException) -> Response:
    return problem_response(request, exc)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
    invalid_params = [
        InvalidParam(
            field=".".join(str(part) for part in error["loc"] if part != "body"),
            code=error["type"],
            message=error["msg"],
        )
        for error in exc.errors()
    ]
    return problem_response(request, validation_failed(invalid_params))


async def handle_http_error(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return problem_response(request, path_not_found())

    problem = ProblemException(exc.status_code, HTTPStatus(exc.status_code).phrase, str(exc.detail))
    response = problem_response(request, problem)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def create_app(config: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Configures logging and tracing, registers the middleware chain,
    problem-detail error handlers and the ``/api`` routes. Connections
    are opened by the lifespan, not here.
    """
    config = config or settings
    configure_logging(config)

    app = FastAPI(
        title=API_TITLE,
        description="Cache-aside users CRUD service backed by SQL and Redis",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.tracing_shutdown = setup_tracing(config, app)

    logger = get_logger("users_api.api")

    # add_middleware wraps, so the last one added runs first
    app.add_middleware(RecoverMiddleware, logger=logger)
    app.add_middleware(RequestLoggingMiddleware, logger=logger)
    app.add_middleware(TraceIDMiddleware, header=config.trace_id_header)

    app.add_exception_handler(ProblemException, handle_problem)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": API_TITLE,
            "version": API_VERSION,
            "endpoints": {
                "users": "/api/user",
                "health": "/api/health",
                "docs": "/docs",
            },
        }

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "users_api.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
