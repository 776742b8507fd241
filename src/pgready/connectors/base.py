import logging
from typing import Any, Dict, Optional
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import URL, Connection as SAConnection, Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import NullPool
from ..domain.models import ConnectionTarget
from ..exceptions import (
    CatalogQueryError,
    ConfigurationError,
    ConnectError,
    LivenessError,
    redact_text,
)
from ..prober.deadline import Deadline

logger = logging.getLogger(__name__)


def _describe_error(exc: Exception, secret: Optional[str] = None) -> str:
    # The DBAPI error is more useful than SQLAlchemy's wrapper text
    return redact_text(str(getattr(exc, "orig", None) or exc).strip(), secret)


class SQLAlchemyConnection:
    """
    One probe attempt's connection. Owns its engine, which is disposed
    together with the connection on release.
    """

    def __init__(self, engine: Engine, connection: SAConnection, secret: Optional[str] = None):
        self._engine = engine
        self._connection = connection
        self._secret = secret
        self._released = False

    def _apply_deadline(self, deadline: Optional[Deadline]) -> None:
        """Hook for dialects that can bound a single statement's runtime."""
        pass

    def verify_live(self, deadline: Optional[Deadline] = None) -> None:
        try:
            self._apply_deadline(deadline)
            self._connection.execute(text("SELECT 1")).scalar()
        except SQLAlchemyError as e:
            raise LivenessError(f"failed to ping database: {_describe_error(e, self._secret)}") from None

    def lookup_table_exists(self, deadline: Optional[Deadline], schema: str, name: str) -> bool:
        try:
            self._apply_deadline(deadline)
            return inspect(self._connection).has_table(name, schema=schema)
        except SQLAlchemyError as e:
            raise CatalogQueryError(
                f"error querying for table '{schema}.{name}': {_describe_error(e, self._secret)}"
            ) from None

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        try:
            self._connection.close()
        except Exception as e:
            logger.debug("Ignoring error while closing connection: %s", _describe_error(e, self._secret))
        finally:
            self._engine.dispose()

    def __enter__(self) -> "SQLAlchemyConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


class SQLAlchemyConnector:
    """
    Generic SQLAlchemy Connector that can be specialized per dialect.

    Every connect() builds a fresh engine without pooling, so nothing is
    reused across attempts.
    """
    connection_class = SQLAlchemyConnection

    @staticmethod
    def _enforce_read_only_listener(conn, cursor, statement, parameters, context, executemany):
        """
        Blocks any SQL that doesn't start with a whitelisted keyword.
        A readiness probe has no business writing.
        """
        sql = statement.strip().upper()

        allowed_starts = (
            "SELECT",
            "WITH",
            "EXPLAIN",
            "SHOW",
            "SET",      # session configuration (timeouts)
            "PRAGMA",   # SQLite catalog introspection
        )

        if not any(sql.startswith(keyword) for keyword in allowed_starts):
            raise PermissionError(
                f"SAFETY BLOCK: Operation blocked! Only read-only queries are allowed. "
                f"Attempted: {sql[:50]}..."
            )

    def build_url(self, target: ConnectionTarget) -> URL:
        return URL.create(
            target.driver,
            username=target.user or None,
            password=target.secret,
            host=target.host or None,
            port=target.port or None,
            database=target.database or None,
        )

    def _connect_args(self, target: ConnectionTarget, deadline: Deadline) -> Dict[str, Any]:
        return {}

    def _register_listeners(self, engine: Engine) -> None:
        event.listen(engine, "before_cursor_execute", self._enforce_read_only_listener)

    def create_engine(self, target: ConnectionTarget, deadline: Deadline) -> Engine:
        try:
            engine = create_engine(
                self.build_url(target),
                poolclass=NullPool,
                connect_args=self._connect_args(target, deadline),
            )
        except ArgumentError as e:
            raise ConfigurationError(f"Unusable connection target: {_describe_error(e, target.secret)}") from None
        self._register_listeners(engine)
        return engine

    def connect(self, deadline: Deadline, target: ConnectionTarget) -> SQLAlchemyConnection:
        engine = self.create_engine(target, deadline)
        try:
            connection = engine.connect()
        except SQLAlchemyError as e:
            engine.dispose()
            raise ConnectError(f"connection attempt failed: {_describe_error(e, target.secret)}") from None
        return self.connection_class(engine, connection, target.secret)
