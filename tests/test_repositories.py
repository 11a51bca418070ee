import json
from decimal import Decimal

import psycopg2
import pytest

from session_payroll.core.models import Client, Employee
from session_payroll.core.repositories import (
    InMemoryConfirmationStore,
    InMemoryRosterStore,
    PostgresConfirmationStore,
    PostgresRosterStore,
    StoreError,
    load_roster_json,
)


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.rowcount = 0
        self._rows = []

    def execute(self, query, params=()):
        if self.conn.fail_with:
            raise self.conn.fail_with
        self.conn.executed.append((" ".join(query.split()), params))
        self._rows = list(self.conn.results.pop(0)) if self.conn.results else []
        self.rowcount = len(self._rows)

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return self._rows

    def close(self):
        self.conn.closed_cursors += 1


class FakeConnection:
    """Minimal DB-API connection: records queries and replays canned results"""

    def __init__(self, results=None, fail_with=None):
        self.results = list(results or [])
        self.fail_with = fail_with
        self.executed = []
        self.commits = 0
        self.rollbacks = 0
        self.closed_cursors = 0

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


def test_in_memory_confirmations_are_keyed_by_normalized_title():
    store = InMemoryConfirmationStore()
    store.save_confirmation("Μαρία Π.", "Μαρία Παπαδοπούλου", "emp1")
    store.save_confirmation("ΜΑΡΙΑ Π", "Μαρία Πέτρου", "emp1")

    assert store.get_all_confirmed_matches("emp1") == {"μαρια π": "Μαρία Πέτρου"}
    assert store.delete_confirmations("emp1") == 1
    assert store.get_confirmed_match("Μαρία Π.", "emp1") is None


def test_postgres_save_confirmation_upserts_normalized_title():
    conn = FakeConnection()
    PostgresConfirmationStore(conn).save_confirmation("Jóhn!", "John Doe", "emp1")

    query, params = conn.executed[0]
    assert "ON CONFLICT (event_title, employee_id)" in query
    assert params == ("john", "John Doe", "emp1")
    assert conn.commits == 1
    assert conn.closed_cursors == 1


def test_postgres_get_all_confirmed_matches_is_one_query():
    conn = FakeConnection(results=[[("john", "John Doe"), ("gym", "__REJECTED__")]])

    decisions = PostgresConfirmationStore(conn).get_all_confirmed_matches("emp1")

    assert decisions == {"john": "John Doe", "gym": "__REJECTED__"}
    assert len(conn.executed) == 1


def test_postgres_get_confirmed_match_missing():
    assert PostgresConfirmationStore(FakeConnection()).get_confirmed_match("x", "emp1") is None


def test_postgres_errors_roll_back_and_raise_store_error():
    conn = FakeConnection(fail_with=psycopg2.OperationalError("connection lost"))

    with pytest.raises(StoreError):
        PostgresConfirmationStore(conn).save_confirmation("John", "John Doe", "emp1")

    assert conn.rollbacks == 1
    assert conn.closed_cursors == 1


def test_postgres_roster_reads_clients_in_id_order():
    conn = FakeConnection(results=[[
        (1, "John Doe", Decimal("50.00"), Decimal("30.00"), Decimal("20.00"), "emp1", False),
        (2, "Νίκος", Decimal("45.00"), Decimal("27.00"), Decimal("18.00"), "emp1", True),
    ]])

    clients = PostgresRosterStore(conn).get_clients("emp1")

    assert [c.name for c in clients] == ["John Doe", "Νίκος"]
    assert clients[1].pending_payment
    assert "ORDER BY id" in conn.executed[0][0]


def test_postgres_roster_employee_lookup():
    conn = FakeConnection(results=[[("emp1", "Ελένη", "e@example.com", "cal", "Sheet", Decimal("60"), None)]])

    employee = PostgresRosterStore(conn).get_employee("emp1")

    assert employee.supervision_price == Decimal("60.00")
    assert employee.color == "#2196F3"


def test_postgres_create_client_returns_new_id():
    conn = FakeConnection(results=[[(7,)]])
    client = Client(name="New", price=50, employee_price=30, company_price=20, employee_id="emp1")

    created = PostgresRosterStore(conn).create_client(client)

    assert created.id == 7
    assert created.name == "New"
    assert conn.commits == 1


def test_in_memory_roster_assigns_ids_in_order():
    store = InMemoryRosterStore(employees=[Employee(id="emp1", name="B"), Employee(id="emp2", name="A")])
    first = store.create_client(Client(name="One", price=1, employee_price=1, company_price=0, employee_id="emp1"))
    second = store.create_client(Client(name="Two", price=1, employee_price=1, company_price=0, employee_id="emp2"))

    assert (first.id, second.id) == (1, 2)
    assert [e.id for e in store.get_all_employees()] == ["emp2", "emp1"]
    assert store.get_clients("emp1") == [first]


def test_load_roster_json(tmp_path):
    roster_file = tmp_path / "roster.json"
    roster_file.write_text(json.dumps({
        "employees": [{
            "id": "emp1",
            "name": "Ελένη",
            "supervision_price": 60,
            "clients": [
                {"name": "John Doe", "price": 50, "employee_price": 30, "company_price": 20},
                {"name": "Νίκος", "price": "45.00", "employee_price": "27.00", "company_price": "18.00"},
            ],
        }],
    }), encoding="utf-8")

    store = load_roster_json(roster_file)

    assert store.get_employee("emp1").supervision_price == Decimal("60.00")
    assert [c.name for c in store.get_clients("emp1")] == ["John Doe", "Νίκος"]
    assert store.get_clients("emp1")[1].price == Decimal("45.00")


def _write_roster(tmp_path, employee):
    roster_file = tmp_path / "roster.json"
    roster_file.write_text(json.dumps({"employees": [employee]}), encoding="utf-8")
    return roster_file


def test_load_roster_json_rejects_decimal_comma(tmp_path):
    roster_file = _write_roster(tmp_path, {
        "id": "emp1",
        "name": "Ελένη",
        "clients": [{"name": "Νίκος", "price": "12,50", "employee_price": "7,50", "company_price": "5,00"}],
    })

    with pytest.raises(ValueError, match="Νίκος"):
        load_roster_json(roster_file)


def test_load_roster_json_rejects_bad_supervision_price(tmp_path):
    roster_file = _write_roster(tmp_path, {"id": "emp1", "name": "Ελένη", "supervision_price": "60,00"})

    with pytest.raises(ValueError, match="supervision_price"):
        load_roster_json(roster_file)


def test_load_roster_json_rejects_duplicate_client(tmp_path):
    client = {"name": "John Doe", "price": 50, "employee_price": 30, "company_price": 20}
    roster_file = _write_roster(tmp_path, {"id": "emp1", "name": "Ελένη", "clients": [client, dict(client, name="JOHN DOE")]})

    with pytest.raises(ValueError, match="already exists"):
        load_roster_json(roster_file)
