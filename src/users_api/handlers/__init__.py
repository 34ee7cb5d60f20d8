"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (business logic), not directly on repositories.

Architecture:
    Handler -> Service -> Repository / Cache
    (HTTP)  -> (Business) -> (Data Access)
"""

from .problems import ProblemException
from .user_handler import UserHandler

__all__ = [
    "ProblemException",
    "UserHandler",
]
