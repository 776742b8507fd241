import math
from typing import Any, Dict, Optional
from ..domain.models import ConnectionTarget
from ..prober.deadline import Deadline
from .base import SQLAlchemyConnection, SQLAlchemyConnector

APPLICATION_NAME = "pg_ready_check"


class PostgresConnection(SQLAlchemyConnection):
    def _apply_deadline(self, deadline: Optional[Deadline]) -> None:
        # statement_timeout is in milliseconds; 0 would mean "no limit"
        if deadline is None:
            return
        timeout_ms = max(1, int(deadline.remaining() * 1000))
        self._connection.exec_driver_sql(f"SET statement_timeout = {timeout_ms}")


class PostgresConnector(SQLAlchemyConnector):
    """
    PostgreSQL specific implementation.
    Translates the attempt deadline into libpq's connect_timeout and a
    per-statement timeout, and opens every session read-only.
    """
    connection_class = PostgresConnection

    def _connect_args(self, target: ConnectionTarget, deadline: Deadline) -> Dict[str, Any]:
        # libpq takes whole seconds and treats 0 as "wait forever". Values
        # below 2 become 2, so a connect may overrun the deadline by ~2s;
        # the engine then records a ConnectError.
        args = {
            "connect_timeout": max(1, math.ceil(deadline.remaining())),
            "application_name": APPLICATION_NAME,
            "options": "-c default_transaction_read_only=on",
        }
        if target.sslmode:
            args["sslmode"] = target.sslmode
        return args
