"""RFC 7807 problem responses raised by handlers."""

from fastapi import status

from users_api.dto import InvalidParam, ProblemDetail, ProblemDetailValidation


class ProblemException(Exception):
    """Raised by handlers to abort a request with a problem-detail body.

    The app's exception handler renders it, filling in the request's
    trace id.
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: str,
        invalid_params: list[InvalidParam] | None = None,
    ) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.invalid_params = invalid_params

    def to_problem(self, trace_id: str | None) -> ProblemDetail:
        if self.invalid_params is not None:
            return ProblemDetailValidation(
                title=self.title,
                status=self.status_code,
                detail=self.detail,
                trace_id=trace_id,
                invalid_params=self.invalid_params,
            )
        return ProblemDetail(
            title=self.title, status=self.status_code, detail=self.detail, trace_id=trace_id
        )


def invalid_id() -> ProblemException:
    return ProblemException(
        status.HTTP_400_BAD_REQUEST,
        "Invalid ID",
        "The provided ID is not a valid integer.",
    )


def validation_failed(invalid_params: list[InvalidParam]) -> ProblemException:
    return ProblemException(
        status.HTTP_400_BAD_REQUEST,
        "Bad Request",
        "The request contains invalid parameters.",
        invalid_params=invalid_params,
    )


def not_found(detail: str) -> ProblemException:
    return ProblemException(status.HTTP_404_NOT_FOUND, "Not Found", detail)


def path_not_found() -> ProblemException:
    return ProblemException(
        status.HTTP_404_NOT_FOUND,
        "Path Not Found",
        "The requested path does not exist.",
    )


def internal_server_error() -> ProblemException:
    return ProblemException(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal Server Error",
        "An unexpected error occurred.",
    )
