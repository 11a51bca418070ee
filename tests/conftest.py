"""
Pytest configuration and shared fixtures.
"""

import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from session_payroll.core.models import CalendarEvent, Client, Employee, SupervisionConfig


@pytest.fixture
def make_event():
    """Factory for CalendarEvents; end time defaults to a 50 minute session"""
    def _make(title: str, start: datetime, event_id: str = None, minutes: int = 50, **kwargs) -> CalendarEvent:
        return CalendarEvent(
            id=event_id or f"evt-{start:%Y%m%d%H%M}",
            title=title,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            **kwargs,
        )
    return _make


@pytest.fixture
def employee():
    return Employee(id="emp1", name="Ελένη Παπαδάκη", email="eleni@example.com", supervision_price=Decimal("60.00"))


@pytest.fixture
def john_doe():
    return Client(name="John Doe", price="50.00", employee_price="30.00", company_price="20.00", employee_id="emp1")


@pytest.fixture
def clients(john_doe):
    return [
        john_doe,
        Client(name="Μαρία Παπαδοπούλου", price="40.00", employee_price="25.00", company_price="15.00",
               employee_id="emp1"),
        Client(name="Νίκος", price="45.00", employee_price="27.00", company_price="18.00", employee_id="emp1"),
    ]


@pytest.fixture
def supervision():
    return SupervisionConfig(
        enabled=True,
        price=Decimal("60.00"),
        employee_price=Decimal("24.00"),
        company_price=Decimal("36.00"),
        keywords=("supervision", "εποπτεία"),
    )


@pytest.fixture
def january():
    return datetime(2025, 1, 1), datetime(2025, 1, 31, 23, 59, 59)
