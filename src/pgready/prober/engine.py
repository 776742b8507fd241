import logging
import time
from typing import Callable, Optional, Sequence
from ..domain.interfaces import Connector
from ..domain.models import (
    Attempt,
    AttemptOutcome,
    ConnectionTarget,
    ProbeResult,
    ProbeStatus,
    TableIdentifier,
)
from ..exceptions import (
    CatalogQueryError,
    ConfigurationError,
    ConnectError,
    DeadlineExceeded,
    MissingTablesError,
)
from .checker import TableExistenceChecker
from .deadline import Clock, Deadline

logger = logging.getLogger(__name__)


class Prober:
    """
    Polls a database until it accepts connections (and, if asked, until
    the required tables exist) or the overall deadline passes.

    Attempts are strictly sequential. Each one opens its own connection and
    releases it before the next attempt starts. Connection failures,
    failed liveness pings, failed catalog lookups and missing tables are all
    retried; only bad configuration (raised before the loop) and errors the
    connector does not classify escape to the caller.

    With classify_timeouts off every deadline expiry is reported as TIMEOUT.
    With it on, an expiry after at least one successful connection becomes
    CHECKS_FAILED and an expiry with only connection failures becomes
    CONNECTION_FAILED.
    """

    def __init__(
        self,
        connector: Connector,
        checker: Optional[TableExistenceChecker] = None,
        *,
        classify_timeouts: bool = False,
        clock: Clock = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.connector = connector
        self.checker = checker or TableExistenceChecker()
        self.classify_timeouts = classify_timeouts
        self._clock = clock
        self._sleep = sleep

    def run(
        self,
        target: ConnectionTarget,
        required_tables: Sequence[TableIdentifier],
        overall_timeout: float,
        attempt_timeout: float,
        retry_interval: float,
    ) -> ProbeResult:
        self._validate(overall_timeout, attempt_timeout, retry_interval)

        start = self._clock()
        overall = Deadline(start + overall_timeout, self._clock)
        last_error: Optional[Exception] = None
        connected_once = False
        number = 0

        while True:
            if overall.expired():
                return self._timed_out(start, number, last_error, connected_once, overall_timeout)

            number += 1
            attempt = Attempt(number=number, started_at=self._clock())
            self._attempt(attempt, target, required_tables, overall.limit(attempt_timeout))
            connected_once = connected_once or attempt.connected

            if attempt.outcome == AttemptOutcome.SUCCESS:
                elapsed = self._clock() - start
                logger.debug("Database ready after %.3fs (%d attempt(s)).", elapsed, number)
                return ProbeResult(status=ProbeStatus.READY, elapsed=elapsed, attempts=number)

            last_error = attempt.error.redact(target.secret)
            logger.info("Attempt %d failed: %s", number, last_error)
            # Sleeps the full interval even past the deadline; the next
            # loop check stops before another attempt starts.
            self._sleep(retry_interval)

    def _attempt(
        self,
        attempt: Attempt,
        target: ConnectionTarget,
        required_tables: Sequence[TableIdentifier],
        deadline: Deadline,
    ) -> None:
        try:
            connection = self.connector.connect(deadline, target)
        except ConnectError as e:
            attempt.outcome, attempt.error = AttemptOutcome.CONNECT_FAILED, e
            return

        with connection:
            try:
                if deadline.expired():
                    raise ConnectError("connection attempt timed out")
                connection.verify_live(deadline)
            except ConnectError as e:
                attempt.outcome, attempt.error = AttemptOutcome.CONNECT_FAILED, e
                return

            attempt.outcome = AttemptOutcome.CONNECTED
            logger.debug("Connection successful.")

            if not required_tables:
                attempt.outcome = AttemptOutcome.SUCCESS
                return

            try:
                missing = self.checker.check(connection, required_tables, deadline)
            except CatalogQueryError as e:
                attempt.outcome, attempt.error = AttemptOutcome.CHECK_FAILED, e
                return

            if missing:
                attempt.outcome = AttemptOutcome.TABLES_MISSING
                attempt.error = MissingTablesError(missing)
                return

            logger.debug("All required tables found: %s", ", ".join(str(t) for t in required_tables))
            attempt.outcome = AttemptOutcome.SUCCESS

    def _timed_out(
        self,
        start: float,
        attempts: int,
        last_error: Optional[Exception],
        connected_once: bool,
        overall_timeout: float,
    ) -> ProbeResult:
        status = ProbeStatus.TIMEOUT
        if self.classify_timeouts and attempts:
            status = ProbeStatus.CHECKS_FAILED if connected_once else ProbeStatus.CONNECTION_FAILED

        if last_error is None:
            last_error = DeadlineExceeded(f"overall timeout ({overall_timeout}s) exceeded")

        logger.debug(
            "Overall timeout (%ss) exceeded after %d attempt(s). Last error: %s",
            overall_timeout, attempts, last_error,
        )
        return ProbeResult(
            status=status,
            elapsed=self._clock() - start,
            last_error=last_error,
            attempts=attempts,
        )

    @staticmethod
    def _validate(overall_timeout: float, attempt_timeout: float, retry_interval: float) -> None:
        if overall_timeout is None or overall_timeout <= 0:
            raise ConfigurationError(f"Overall timeout must be positive, got {overall_timeout}")
        if attempt_timeout is None or attempt_timeout <= 0:
            raise ConfigurationError(f"Connection timeout must be positive, got {attempt_timeout}")
        if retry_interval is None or retry_interval < 0:
            raise ConfigurationError(f"Retry interval must not be negative, got {retry_interval}")
