"""Dependency health entity."""

from dataclasses import dataclass

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


@dataclass(frozen=True)
class HealthStatus:
    """Health of a single backing dependency (``db`` or ``cache``)."""

    name: str
    status: str

    @property
    def is_healthy(self) -> bool:
        return self.status == HEALTHY
