"""Container health status as reported by the runtime."""

from enum import Enum
from typing import Any, Dict, Optional


class HealthStatus(str, Enum):
    """Docker health states collapsed to the three the prober acts on."""

    STARTING = "starting"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"

    @classmethod
    def from_inspect(cls, attrs: Optional[Dict[str, Any]]) -> "HealthStatus":
        """Read the health status from a container inspect payload.

        Missing or unrecognised values count as still starting.
        """
        state = (attrs or {}).get("State") or {}
        health = state.get("Health") or {}
        status = str(health.get("Status", "")).lower()
        if status == cls.HEALTHY.value:
            return cls.HEALTHY
        if status == cls.UNHEALTHY.value:
            return cls.UNHEALTHY
        return cls.STARTING
