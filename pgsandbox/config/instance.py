"""Per-instance database configuration.

InstanceConfig holds the options a caller may override for one disposable
Postgres instance. Every option has a default; the password default is a
fresh random secret generated when the instance is started.
"""

from typing import Dict, Literal, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

POSTGRES_PORT = 5432
LOOPBACK_HOST = "127.0.0.1"

SSLMode = Literal["disable", "allow", "prefer", "require", "verify-ca", "verify-full"]


class InstanceConfig(BaseModel):
    """Database name, credentials and session options for one instance.

    Usage:
        InstanceConfig()                                  # all defaults
        InstanceConfig(dbname="orders", timezone="Europe/Berlin")
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    dbname: str = Field(default="pgtest", min_length=1)
    user: str = Field(default="pgtest", min_length=1)
    password: Optional[str] = Field(
        default=None,
        min_length=1,
        description="Superuser password; a random one is generated when unset",
    )
    timezone: str = Field(default="UTC", min_length=1)
    sslmode: SSLMode = Field(default="disable")

    def with_password(self, password: str) -> "InstanceConfig":
        """Return a copy with the password filled in."""
        return self.model_copy(update={"password": password})

    def environment(self) -> Dict[str, str]:
        """Environment variables understood by the official postgres image."""
        if self.password is None:
            raise ValueError("password must be resolved before building the environment")
        return {
            "POSTGRES_DB": self.dbname,
            "POSTGRES_USER": self.user,
            "POSTGRES_PASSWORD": self.password,
            "TZ": self.timezone,
            "PGTZ": self.timezone,
        }

    def connection_string(self, port: int) -> str:
        """Build the connection URI for an instance bound to ``port`` on loopback."""
        if self.password is None:
            raise ValueError("password must be resolved before building a connection string")
        return (
            f"postgres://{quote(self.user, safe='')}:{quote(self.password, safe='')}"
            f"@{LOOPBACK_HOST}:{port}/{quote(self.dbname, safe='')}"
            f"?sslmode={self.sslmode}"
        )
