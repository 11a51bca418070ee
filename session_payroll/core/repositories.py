"""
Storage for the roster (employees, clients) and for match decisions.

Two interchangeable implementations of each store:
- InMemory*:  dict-backed, used by tests and one-off runs from files
- Postgres*:  psycopg2 connection, schema in session_payroll/db/schema.sql

Match decisions are keyed by (normalized event title, employee id), so
"Μαρία Π." and "ΜΑΡΙΑ Π." share one decision.
"""
import json
from dataclasses import replace
from typing import Dict, List, Optional

import psycopg2

from session_payroll.core.client_validator import (
    MAX_SUPERVISION_PRICE,
    validate_amount,
    validate_client_fields,
    validate_employee,
)
from session_payroll.core.models import Client, Employee
from session_payroll.core.text_normalizer import normalize


class StoreError(Exception):
    """Raised when a store cannot read or write"""


# =============================================================================
# MATCH CONFIRMATIONS
# =============================================================================


class InMemoryConfirmationStore:
    def __init__(self):
        self._decisions: Dict[tuple, str] = {}

    def save_confirmation(self, event_title: str, matched_client_name: str, employee_id: str):
        self._decisions[(normalize(event_title), employee_id)] = matched_client_name

    def get_confirmed_match(self, event_title: str, employee_id: str) -> Optional[str]:
        return self._decisions.get((normalize(event_title), employee_id))

    def get_all_confirmed_matches(self, employee_id: str) -> Dict[str, str]:
        return {
            title: client_name
            for (title, emp_id), client_name in self._decisions.items()
            if emp_id == employee_id
        }

    def delete_confirmations(self, employee_id: str) -> int:
        keys = [key for key in self._decisions if key[1] == employee_id]
        for key in keys:
            del self._decisions[key]
        return len(keys)


class PostgresConfirmationStore:
    """match_confirmations table; every write is committed (or rolled back) immediately"""

    def __init__(self, conn):
        self.conn = conn

    def save_confirmation(self, event_title: str, matched_client_name: str, employee_id: str):
        cursor = self.conn.cursor()
        try:
            cursor.execute("""
                INSERT INTO match_confirmations (event_title, matched_client_name, employee_id)
                VALUES (%s, %s, %s)
                ON CONFLICT (event_title, employee_id)
                DO UPDATE SET matched_client_name = EXCLUDED.matched_client_name,
                              confirmed_at = NOW()
            """, (normalize(event_title), matched_client_name, employee_id))
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Could not save confirmation: {e}") from e
        finally:
            cursor.close()

    def get_confirmed_match(self, event_title: str, employee_id: str) -> Optional[str]:
        cursor = self.conn.cursor()
        try:
            cursor.execute("""
                SELECT matched_client_name
                FROM match_confirmations
                WHERE event_title = %s AND employee_id = %s
            """, (normalize(event_title), employee_id))
            row = cursor.fetchone()
        except psycopg2.Error as e:
            raise StoreError(f"Could not read confirmation: {e}") from e
        finally:
            cursor.close()

        return row[0] if row else None

    def get_all_confirmed_matches(self, employee_id: str) -> Dict[str, str]:
        """All decisions for an employee in one query (title -> client name or marker)"""
        cursor = self.conn.cursor()
        try:
            cursor.execute("""
                SELECT event_title, matched_client_name
                FROM match_confirmations
                WHERE employee_id = %s
            """, (employee_id,))
            rows = cursor.fetchall()
        except psycopg2.Error as e:
            raise StoreError(f"Could not read confirmations: {e}") from e
        finally:
            cursor.close()

        return {title: client_name for title, client_name in rows}

    def delete_confirmations(self, employee_id: str) -> int:
        cursor = self.conn.cursor()
        try:
            cursor.execute("DELETE FROM match_confirmations WHERE employee_id = %s", (employee_id,))
            deleted = cursor.rowcount
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Could not delete confirmations: {e}") from e
        finally:
            cursor.close()

        return deleted


# =============================================================================
# ROSTER
# =============================================================================


class InMemoryRosterStore:
    def __init__(self, employees: Optional[List[Employee]] = None, clients: Optional[List[Client]] = None):
        self._employees: Dict[str, Employee] = {}
        self._clients: List[Client] = []
        for employee in employees or []:
            self.create_employee(employee)
        for client in clients or []:
            self.create_client(client)

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        return self._employees.get(employee_id)

    def get_all_employees(self) -> List[Employee]:
        return sorted(self._employees.values(), key=lambda e: e.name)

    def get_clients(self, employee_id: str) -> List[Client]:
        return [client for client in self._clients if client.employee_id == employee_id]

    def create_employee(self, employee: Employee) -> Employee:
        self._employees[employee.id] = employee
        return employee

    def create_client(self, client: Client) -> Client:
        if client.id is None:
            client = replace(client, id=len(self._clients) + 1)
        self._clients.append(client)
        return client


class PostgresRosterStore:
    """employees and clients tables; clients come back in insertion order"""

    EMPLOYEE_COLUMNS = "id, name, email, calendar_id, sheet_name, supervision_price, color"
    CLIENT_COLUMNS = "id, name, price, employee_price, company_price, employee_id, pending_payment"

    def __init__(self, conn):
        self.conn = conn

    @staticmethod
    def _employee_from_row(row) -> Employee:
        return Employee(
            id=row[0],
            name=row[1],
            email=row[2] or '',
            calendar_id=row[3] or '',
            sheet_name=row[4] or '',
            supervision_price=row[5],
            color=row[6] or '#2196F3',
        )

    @staticmethod
    def _client_from_row(row) -> Client:
        return Client(
            id=row[0],
            name=row[1],
            price=row[2],
            employee_price=row[3],
            company_price=row[4],
            employee_id=row[5],
            pending_payment=bool(row[6]),
        )

    def _fetch(self, query: str, params: tuple = ()) -> list:
        cursor = self.conn.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        except psycopg2.Error as e:
            raise StoreError(f"Query failed: {e}") from e
        finally:
            cursor.close()

    def get_employee(self, employee_id: str) -> Optional[Employee]:
        rows = self._fetch(
            f"SELECT {self.EMPLOYEE_COLUMNS} FROM employees WHERE id = %s", (employee_id,)
        )
        return self._employee_from_row(rows[0]) if rows else None

    def get_all_employees(self) -> List[Employee]:
        rows = self._fetch(f"SELECT {self.EMPLOYEE_COLUMNS} FROM employees ORDER BY name")
        return [self._employee_from_row(row) for row in rows]

    def get_clients(self, employee_id: str) -> List[Client]:
        rows = self._fetch(
            f"SELECT {self.CLIENT_COLUMNS} FROM clients WHERE employee_id = %s ORDER BY id",
            (employee_id,),
        )
        return [self._client_from_row(row) for row in rows]

    def create_employee(self, employee: Employee) -> Employee:
        cursor = self.conn.cursor()
        try:
            cursor.execute("""
                INSERT INTO employees (id, name, email, calendar_id, sheet_name, supervision_price, color)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO UPDATE SET
                    name = EXCLUDED.name,
                    email = EXCLUDED.email,
                    calendar_id = EXCLUDED.calendar_id,
                    sheet_name = EXCLUDED.sheet_name,
                    supervision_price = EXCLUDED.supervision_price,
                    color = EXCLUDED.color
            """, (employee.id, employee.name, employee.email, employee.calendar_id,
                  employee.sheet_name, employee.supervision_price, employee.color))
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Could not save employee {employee.id}: {e}") from e
        finally:
            cursor.close()

        return employee

    def create_client(self, client: Client) -> Client:
        cursor = self.conn.cursor()
        try:
            cursor.execute("""
                INSERT INTO clients (employee_id, name, price, employee_price, company_price, pending_payment)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING id
            """, (client.employee_id, client.name, client.price, client.employee_price,
                  client.company_price, client.pending_payment))
            client_id = cursor.fetchone()[0]
            self.conn.commit()
        except psycopg2.Error as e:
            self.conn.rollback()
            raise StoreError(f"Could not create client {client.name}: {e}") from e
        finally:
            cursor.close()

        return replace(client, id=client_id)


def load_roster_json(json_path) -> InMemoryRosterStore:
    """
    Load employees and their clients from a roster file:

        {"employees": [{"id": "emp1", "name": "...", "supervision_price": 60,
                        "clients": [{"name": "...", "price": 50,
                                     "employee_price": 30, "company_price": 20}]}]}

    Every employee and client is validated before it is added.

    Raises:
        ValueError: listing the problems of the first invalid entry
    """
    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    store = InMemoryRosterStore()
    for emp in data.get('employees', []):
        employee = Employee(
            id=str(emp['id']),
            name=emp['name'],
            email=emp.get('email', ''),
            calendar_id=emp.get('calendar_id', ''),
            sheet_name=emp.get('sheet_name', ''),
            supervision_price=emp.get('supervision_price', 0),
            color=emp.get('color', '#2196F3'),
        )
        label = f"employee '{employee.name}'"
        _raise_if_invalid(label, validate_amount(
            'supervision_price', emp.get('supervision_price', 0), MAX_SUPERVISION_PRICE
        ))
        _raise_if_invalid(label, validate_employee(employee, store.get_all_employees()))
        store.create_employee(employee)

        for client in emp.get('clients', []):
            _raise_if_invalid(f"client '{client.get('name')}' of {employee.id}", validate_client_fields(
                client.get('name'), client.get('price'), client.get('employee_price'),
                client.get('company_price'), employee_id=employee.id,
                existing_clients=store.get_clients(employee.id),
            ))
            store.create_client(Client(
                name=client['name'],
                price=client['price'],
                employee_price=client['employee_price'],
                company_price=client['company_price'],
                employee_id=employee.id,
                pending_payment=bool(client.get('pending_payment', False)),
            ))
    return store


def _raise_if_invalid(label: str, result) -> None:
    if not result.is_valid:
        raise ValueError(f"Invalid {label} in roster: {'; '.join(result.messages())}")
