"""HTTP middleware: trace id, request logging and panic recovery.

Registered outermost first as TraceIDMiddleware -> RequestLoggingMiddleware
-> RecoverMiddleware, so every log line and every error body of a request
carries the same trace id.
"""

import time
import uuid

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from users_api.handlers.problems import internal_server_error

DEFAULT_TRACE_ID_HEADER = "X-Trace-Id"


def get_trace_id(request: Request) -> str | None:
    """Return the trace id assigned to the request, if any."""
    return getattr(request.state, "trace_id", None)


def problem_response(request: Request, problem) -> JSONResponse:
    """Render a ProblemException as an ``application/problem+json`` response."""
    body = problem.to_problem(get_trace_id(request))
    return JSONResponse(
        status_code=problem.status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        media_type="application/problem+json",
    )


class TraceIDMiddleware(BaseHTTPMiddleware):
    """Assign a trace id to every request.

    The id is taken from the configured request header when present,
    otherwise a UUID4 is generated. It is stored on ``request.state``,
    bound into structlog's context for the duration of the request and
    echoed back in the response header.
    """

    def __init__(self, app: ASGIApp, header: str = DEFAULT_TRACE_ID_HEADER) -> None:
        super().__init__(app)
        self._header = header

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = request.headers.get(self._header) if self._header else None
        if not trace_id:
            trace_id = str(uuid.uuid4())

        request.state.trace_id = trace_id
        structlog.contextvars.bind_contextvars(trace_id=trace_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("trace_id")

        response.headers[self._header or DEFAULT_TRACE_ID_HEADER] = trace_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""

    def __init__(self, app: ASGIApp, logger: structlog.stdlib.BoundLogger) -> None:
        super().__init__(app)
        self._logger = logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        self._logger.info(
            "request completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 3),
            trace_id=get_trace_id(request),
        )
        return response


class RecoverMiddleware(BaseHTTPMiddleware):
    """Turn unhandled exceptions into a logged 500 problem response."""

    def __init__(self, app: ASGIApp, logger: structlog.stdlib.BoundLogger) -> None:
        super().__init__(app)
        self._logger = logger

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception:
            self._logger.exception(
                "panic recovered",
                method=request.method,
                path=request.url.path,
                status=500,
                trace_id=get_trace_id(request),
            )
            return problem_response(request, internal_server_error())
