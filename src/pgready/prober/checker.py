import logging
from typing import List, Optional, Sequence
from ..domain.interfaces import Connection
from ..domain.models import TableIdentifier
from ..exceptions import CatalogQueryError
from .deadline import Deadline

logger = logging.getLogger(__name__)


class TableExistenceChecker:
    """
    Reports which of the requested tables are absent.

    One catalog lookup per identifier, in input order. Batching into a
    single query would change nothing for callers, so it is left for later.
    """

    def check(
        self,
        connection: Connection,
        tables: Sequence[TableIdentifier],
        deadline: Optional[Deadline] = None,
    ) -> List[TableIdentifier]:
        missing: List[TableIdentifier] = []
        if not tables:
            return missing

        for table in tables:
            if deadline is not None and deadline.expired():
                raise CatalogQueryError(f"table check timed out before checking '{table}'")
            try:
                exists = connection.lookup_table_exists(deadline, table.schema, table.name)
            except CatalogQueryError:
                raise
            except Exception as e:
                raise CatalogQueryError(f"error querying for table '{table}': {e}") from e

            if not exists:
                logger.debug("Table %s not found", table)
                missing.append(table)

        return missing
