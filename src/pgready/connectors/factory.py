from ..domain.interfaces import Connector
from .base import SQLAlchemyConnector
from .postgres import PostgresConnector


def get_connector(driver: str = "postgresql") -> Connector:
    """
    Factory function to create the appropriate connector for a SQLAlchemy
    drivername such as 'postgresql+psycopg2' or 'sqlite'.
    """
    if driver.startswith("postgresql") or driver.startswith("postgres"):
        return PostgresConnector()
    # Default fallback to SQLAlchemy generic
    return SQLAlchemyConnector()
