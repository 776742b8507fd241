from typing import List

REDACTED = "[PASSWORD]"


def redact_text(text: str, secret: str = None) -> str:
    if secret:
        return text.replace(secret, REDACTED)
    return text


class PgReadyException(Exception):
    """Base Exception Class"""

    def redact(self, secret: str = None) -> "PgReadyException":
        """Strip a secret value out of the message, in place."""
        if secret and secret in str(self):
            self.args = (redact_text(str(self), secret),)
        return self


class ConfigurationError(PgReadyException):
    """Configuration Error (fatal, raised before probing starts)"""
    pass


class ConnectError(PgReadyException):
    """Connection Failure (transport or authentication)"""
    pass


class LivenessError(ConnectError):
    """Connection opened but did not answer the liveness query"""
    pass


class CatalogQueryError(PgReadyException):
    """Catalog lookup failed for a reason other than 'no such table'"""
    pass


class MissingTablesError(PgReadyException):
    """Connection is healthy but some required tables are absent"""

    def __init__(self, missing: List):
        self.missing = list(missing)
        super().__init__(
            "required tables missing: " + ", ".join(str(t) for t in self.missing)
        )


class DeadlineExceeded(PgReadyException):
    """Overall deadline elapsed"""
    pass
