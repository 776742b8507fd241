from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, SecretStr
from ..exceptions import ConfigurationError

DEFAULT_SCHEMA = "public"


class ConnectionTarget(BaseModel):
    """
    Where to connect. Built once from configuration and never mutated
    during a probe run.
    """
    model_config = ConfigDict(frozen=True)

    host: str
    port: int = Field(ge=0, le=65535)
    user: str
    password: Optional[SecretStr] = None
    database: str
    driver: str = "postgresql+psycopg2"
    sslmode: Optional[str] = None

    @property
    def secret(self) -> Optional[str]:
        if self.password is None:
            return None
        return self.password.get_secret_value() or None

    def describe(self) -> str:
        return f"host={self.host} port={self.port} user={self.user} dbname={self.database}"


class TableIdentifier(BaseModel):
    schema_name: str = Field(default=DEFAULT_SCHEMA, alias="schema")
    name: str

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def schema(self) -> str:
        return self.schema_name

    @classmethod
    def parse(cls, raw: str) -> "TableIdentifier":
        """Parse 'table' or 'schema.table' (split on the first dot)."""
        text = raw.strip()
        if "." in text:
            schema, name = (part.strip() for part in text.split(".", 1))
        else:
            schema, name = DEFAULT_SCHEMA, text
        if not schema or not name:
            raise ConfigurationError(f"Invalid table identifier: '{raw}'")
        return cls(schema=schema, name=name)

    def __str__(self) -> str:
        if self.schema_name == DEFAULT_SCHEMA:
            return self.name
        return f"{self.schema_name}.{self.name}"


def parse_table_list(raw: Optional[str]) -> List[TableIdentifier]:
    """
    Split a comma-separated table list. Segments are trimmed and empty
    ones dropped, so 'users, ,orders,' yields two identifiers.
    Order and duplicates are preserved.
    """
    if not raw:
        return []
    return [TableIdentifier.parse(part) for part in raw.split(",") if part.strip()]


class AttemptOutcome(str, Enum):
    CONNECTED = "connected"
    CONNECT_FAILED = "connect_failed"
    TABLES_MISSING = "tables_missing"
    CHECK_FAILED = "check_failed"
    SUCCESS = "success"


class Attempt(BaseModel):
    """Record of one connect+check cycle. Discarded after the iteration."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    number: int
    started_at: float
    outcome: Optional[AttemptOutcome] = None
    error: Optional[Exception] = None

    @property
    def connected(self) -> bool:
        return self.outcome in (
            AttemptOutcome.CONNECTED,
            AttemptOutcome.TABLES_MISSING,
            AttemptOutcome.CHECK_FAILED,
            AttemptOutcome.SUCCESS,
        )


class ProbeStatus(str, Enum):
    READY = "ready"
    CONNECTION_FAILED = "connection_failed"
    CHECKS_FAILED = "checks_failed"
    TIMEOUT = "timeout"
    # Produced by the command line shell, never by the prober loop
    BAD_ARGS = "bad_args"
    INTERNAL_ERROR = "internal_error"


class ProbeResult(BaseModel):
    """Terminal value of a probe run"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: ProbeStatus
    elapsed: float = 0.0
    last_error: Optional[Exception] = None
    attempts: int = 0

    @property
    def ready(self) -> bool:
        return self.status == ProbeStatus.READY
