import pytest
from pgready.domain.models import TableIdentifier, parse_table_list
from pgready.exceptions import CatalogQueryError, ConnectError, LivenessError
from pgready.prober.checker import TableExistenceChecker
from pgready.prober.deadline import Deadline
from conftest import FakeClock, StubConnection


def test_reports_only_missing_tables_in_input_order():
    """Only 'users' exists, so only 'nonexistent' comes back."""
    connection = StubConnection(tables=["users"])
    missing = TableExistenceChecker().check(connection, parse_table_list("users,nonexistent"))

    assert missing == [TableIdentifier(name="nonexistent")]


def test_preserves_order_and_duplicates():
    connection = StubConnection(tables=["b"])
    tables = parse_table_list("c,a,b,c")

    missing = TableExistenceChecker().check(connection, tables)

    assert [str(t) for t in missing] == ["c", "a", "c"]
    assert len(connection.lookups) == 4


def test_empty_input_never_touches_connection():
    connection = StubConnection(tables=["users"])

    assert TableExistenceChecker().check(connection, []) == []
    assert connection.lookups == []


def test_schema_qualified_lookup():
    connection = StubConnection(tables=["app.orders"])
    tables = parse_table_list("app.orders,orders")

    missing = TableExistenceChecker().check(connection, tables)

    assert connection.lookups == [("app", "orders"), ("public", "orders")]
    assert missing == [TableIdentifier(schema="public", name="orders")]


def test_catalog_fault_is_an_error_not_a_missing_table():
    connection = StubConnection(lookup_error=CatalogQueryError("permission denied for schema app"))

    with pytest.raises(CatalogQueryError, match="permission denied"):
        TableExistenceChecker().check(connection, parse_table_list("users,orders"))
    # Aborts on the first failure
    assert connection.lookups == [("public", "users")]


@pytest.mark.parametrize(
    "error",
    [
        OSError("connection reset by peer"),
        ConnectError("connection reset by peer"),
        LivenessError("connection reset by peer"),
    ],
)
def test_other_lookup_faults_are_wrapped(error):
    connection = StubConnection(lookup_error=error)

    with pytest.raises(CatalogQueryError) as excinfo:
        TableExistenceChecker().check(connection, parse_table_list("users"))

    assert "users" in str(excinfo.value)
    assert "connection reset by peer" in str(excinfo.value)


def test_stops_when_deadline_passes_between_lookups():
    clock = FakeClock()
    deadline = Deadline.after(1.0, clock)
    connection = StubConnection(tables=["a", "b", "c"], clock=clock, lookup_latency=0.6)

    with pytest.raises(CatalogQueryError, match="timed out"):
        TableExistenceChecker().check(connection, parse_table_list("a,b,c"), deadline)

    assert len(connection.lookups) == 2
