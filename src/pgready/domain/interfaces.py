from typing import Protocol, runtime_checkable
from .models import ConnectionTarget


@runtime_checkable
class Connection(Protocol):
    """
    A live, exclusively owned database connection. Used as a context
    manager: leaving the block releases it.
    """

    def verify_live(self, deadline) -> None:
        """Raise LivenessError if the server does not answer."""
        ...

    def lookup_table_exists(self, deadline, schema: str, name: str) -> bool:
        """Raise CatalogQueryError if the lookup itself fails."""
        ...

    def release(self) -> None:
        """Idempotent. Never raises."""
        ...

    def __enter__(self) -> "Connection":
        ...

    def __exit__(self, exc_type, exc, tb) -> None:
        ...


@runtime_checkable
class Connector(Protocol):
    def connect(self, deadline, target: ConnectionTarget) -> Connection:
        """Raise ConnectError if transport or authentication fails."""
        ...
