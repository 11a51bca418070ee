from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from session_payroll.config import REJECTED_MATCH_MARKER, SUPERVISION_ENTRY_NAME
from session_payroll.core.models import Client, Employee, MatchConfidence, SupervisionConfig
from session_payroll.core.payroll_calculator import (
    PayrollCalculator,
    calculate_payroll,
    parse_period_boundary,
)
from session_payroll.core.text_normalizer import normalize


@pytest.fixture
def calculator():
    return PayrollCalculator()


@pytest.fixture
def athens(monkeypatch):
    monkeypatch.setattr("session_payroll.config.CALENDAR_TIMEZONE", "Europe/Athens")


def _at(day, hour=10):
    return datetime(2025, 1, day, hour, 0)


def test_end_to_end_three_sessions(calculator, employee, john_doe, make_event, january):
    events = [make_event("John Doe", _at(day), event_id=f"e{day}") for day in (6, 13, 20)]

    report = calculator.calculate_payroll(employee, [john_doe], events, *january)

    entry = report.get_entry("John Doe")
    assert entry.sessions_count == 3
    assert entry.total_revenue == Decimal("150.00")
    assert entry.employee_earnings == Decimal("90.00")
    assert entry.company_earnings == Decimal("60.00")
    assert report.total_sessions == 3
    assert report.total_revenue == Decimal("150.00")
    assert report.total_employee_earnings == Decimal("90.00")
    assert report.total_company_earnings == Decimal("60.00")
    assert report.unmatched_events == ()
    assert report.uncertain_matches == ()
    assert [s.event_id for s in entry.sessions] == ["e6", "e13", "e20"]


def test_rounding_is_exact(calculator, employee, make_event, january):
    client = Client(name="Anna Karenina", price=33.33, employee_price=20.20, company_price=13.13,
                    employee_id="emp1")
    events = [make_event("Anna Karenina", _at(day), event_id=f"e{day}") for day in (2, 3, 4)]

    report = calculator.calculate_payroll(employee, [client], events, *january)

    assert report.total_revenue == Decimal("99.99")
    assert report.total_employee_earnings == Decimal("60.60")
    assert report.total_company_earnings == Decimal("39.39")


def test_cancelled_events_are_dropped(calculator, employee, john_doe, make_event, january):
    events = [
        make_event("John Doe", _at(6), event_id="ok"),
        make_event("John Doe", _at(7), event_id="cancelled", is_cancelled=True),
        make_event("John Doe", _at(8), event_id="late", is_cancelled=True, is_pending_payment=True),
    ]

    report = calculator.calculate_payroll(employee, [john_doe], events, *january)

    entry = report.get_entry("John Doe")
    assert [e.id for e in entry.events] == ["ok", "late"]
    assert entry.sessions[1].status == "pending_payment"
    assert report.unmatched_events == ()


def test_period_boundaries_are_inclusive(calculator, employee, john_doe, make_event, january):
    start, end = january
    tick = timedelta(microseconds=1)
    events = [
        make_event("John Doe", start - tick, event_id="before"),
        make_event("John Doe", start, event_id="first"),
        make_event("John Doe", end, event_id="last"),
        make_event("John Doe", end + tick, event_id="after"),
    ]

    report = calculator.calculate_payroll(employee, [john_doe], events, start, end)

    assert [e.id for e in report.get_entry("John Doe").events] == ["first", "last"]


def test_date_end_covers_whole_last_day(calculator, employee, john_doe, make_event):
    events = [
        make_event("John Doe", datetime(2025, 1, 31, 23, 59, 59, 999999), event_id="late-night"),
        make_event("John Doe", datetime(2025, 2, 1), event_id="february"),
    ]

    report = calculator.calculate_payroll(employee, [john_doe], events, date(2025, 1, 1), date(2025, 1, 31))

    assert [e.id for e in report.get_entry("John Doe").events] == ["late-night"]
    assert report.period_end == datetime(2025, 1, 31, 23, 59, 59, 999999)


def test_iso_string_boundaries(calculator, employee, john_doe, make_event):
    events = [make_event("John Doe", _at(15))]
    report = calculator.calculate_payroll(employee, [john_doe], events, "2025-01-01", "2025-01-31")
    assert report.total_sessions == 1


def test_offset_boundaries_with_local_events(athens, calculator, employee, john_doe, make_event):
    events = [
        make_event("John Doe", _at(15), event_id="mid"),
        make_event("John Doe", datetime(2025, 1, 31, 23, 30), event_id="late"),
        make_event("John Doe", datetime(2025, 2, 1, 0, 30), event_id="february"),
    ]

    report = calculator.calculate_payroll(
        employee, [john_doe], events, "2025-01-01T00:00:00+02:00", "2025-01-31T23:59:59+02:00"
    )

    assert [e.id for e in report.get_entry("John Doe").events] == ["mid", "late"]
    assert report.period_start == datetime(2025, 1, 1)
    assert report.period_end == datetime(2025, 1, 31, 23, 59, 59)


def test_offset_events_with_date_boundaries(athens, calculator, employee, john_doe, make_event, january):
    events = [
        make_event("John Doe", datetime(2025, 1, 31, 21, 30, tzinfo=timezone.utc), event_id="athens-23-30"),
        make_event("John Doe", datetime(2025, 1, 31, 22, 30, tzinfo=timezone.utc), event_id="athens-00-30"),
    ]

    report = calculator.calculate_payroll(employee, [john_doe], events, *january)

    assert [e.id for e in report.get_entry("John Doe").events] == ["athens-23-30"]


def test_utc_boundary_is_converted_to_calendar_time(athens):
    assert parse_period_boundary(datetime(2025, 1, 1, 10, 0, tzinfo=timezone.utc)) == datetime(2025, 1, 1, 12, 0)


def test_unmatched_events_are_tracked(calculator, employee, john_doe, make_event, january):
    events = [
        make_event("John Doe", _at(6), event_id="a"),
        make_event("Dentist", _at(7), event_id="b"),
    ]

    report = calculator.calculate_payroll(employee, [john_doe], events, *january)

    assert [e.id for e in report.unmatched_events] == ["b"]
    assert report.total_sessions == 1
    assert report.total_events == 2


def test_blank_titles_are_ignored(calculator, employee, john_doe, make_event, january):
    report = calculator.calculate_payroll(employee, [john_doe], [make_event("   ", _at(6))], *january)
    assert report.total_events == 0


def test_uncertain_match_is_not_counted(calculator, employee, john_doe, make_event, january):
    events = [make_event("John", _at(6), event_id="u1")]

    report = calculator.calculate_payroll(employee, [john_doe], events, *january)

    assert report.entries == ()
    assert report.total_revenue == Decimal("0.00")
    match = report.uncertain_matches[0]
    assert match.calendar_event_id == "u1"
    assert match.suggested_match.client_name == "John Doe"
    assert match.suggested_match.confidence == MatchConfidence.LOW


def test_uncertain_candidates_tie_goes_to_roster_order(calculator, employee, clients, make_event, january):
    events = [make_event("Μαρία και John", _at(6))]

    report = calculator.calculate_payroll(employee, clients, events, *january)

    match = report.uncertain_matches[0]
    assert match.suggested_match.client_name == "John Doe"
    assert [m.client_name for m in match.possible_matches] == ["John Doe", "Μαρία Παπαδοπούλου"]


def test_single_word_client_is_counted(calculator, employee, clients, make_event, january):
    events = [make_event("Νίκος", _at(6), event_id="n1")]

    report = calculator.calculate_payroll(employee, clients, events, *january)

    entry = report.get_entry("Νίκος")
    assert entry.sessions_count == 1
    assert entry.total_revenue == Decimal("45.00")
    assert report.uncertain_matches == ()


def test_supervision_entry_comes_last(calculator, employee, clients, supervision, make_event, january):
    events = [
        make_event("Supervision", _at(6, 9), event_id="s1"),
        make_event("Μαρία Παπαδοπούλου", _at(6, 11), event_id="m1"),
        make_event("John Doe", _at(6, 12), event_id="j1"),
    ]

    report = calculator.calculate_payroll(employee, clients, events, *january, supervision_config=supervision)

    assert [e.client_name for e in report.entries] == ["John Doe", "Μαρία Παπαδοπούλου", SUPERVISION_ENTRY_NAME]
    sup = report.entries[-1]
    assert sup.is_supervision
    assert sup.total_revenue == Decimal("60.00")
    assert sup.employee_earnings == Decimal("24.00")
    assert sup.company_earnings == Decimal("36.00")
    assert report.total_revenue == Decimal("150.00")


def test_supervision_keyword_wins_over_client_name(calculator, employee, john_doe, supervision, make_event, january):
    events = [make_event("Supervision John Doe", _at(6))]

    report = calculator.calculate_payroll(employee, [john_doe], events, *january, supervision_config=supervision)

    assert [e.client_name for e in report.entries] == [SUPERVISION_ENTRY_NAME]


def test_supervision_disabled(calculator, employee, john_doe, make_event, january):
    events = [make_event("Supervision", _at(6))]
    disabled = SupervisionConfig(enabled=False, price=60, employee_price=24, company_price=36)

    for config in (None, disabled):
        report = calculator.calculate_payroll(employee, [john_doe], events, *january, supervision_config=config)
        assert report.entries == ()
        assert len(report.unmatched_events) == 1


def test_confirmed_decision_counts_event(calculator, employee, john_doe, make_event, january):
    events = [make_event("JOHN", _at(6))]

    report = calculator.calculate_payroll(
        employee, [john_doe], events, *january,
        confirmed_matches={normalize("John"): "John Doe"},
    )

    assert report.get_entry("John Doe").sessions_count == 1
    assert report.uncertain_matches == ()


def test_rejected_decision_leaves_event_unmatched(calculator, employee, john_doe, make_event, january):
    events = [make_event("John", _at(6))]

    report = calculator.calculate_payroll(
        employee, [john_doe], events, *january,
        confirmed_matches={"john": REJECTED_MATCH_MARKER},
    )

    assert report.entries == ()
    assert report.uncertain_matches == ()
    assert len(report.unmatched_events) == 1


def test_decision_for_unknown_client_is_ignored(calculator, employee, john_doe, make_event, january):
    events = [make_event("John", _at(6))]

    report = calculator.calculate_payroll(
        employee, [john_doe], events, *january,
        confirmed_matches={"john": "Someone Removed"},
    )

    assert len(report.uncertain_matches) == 1


def test_ambiguous_match_goes_to_first_client(calculator, employee, make_event, january):
    clients = [
        Client(name="John Doe", price=50, employee_price=30, company_price=20, employee_id="emp1"),
        Client(name="Mary Smith", price=40, employee_price=25, company_price=15, employee_id="emp1"),
    ]
    events = [make_event("Mary Smith & John Doe", _at(6), event_id="both")]

    report = calculator.calculate_payroll(employee, clients, events, *january)

    assert [e.client_name for e in report.entries] == ["John Doe"]
    ambiguous = report.ambiguous_matches[0]
    assert ambiguous.calendar_event_id == "both"
    assert ambiguous.chosen_client == "John Doe"
    assert ambiguous.candidates == ("John Doe", "Mary Smith")


def test_entries_follow_roster_order(calculator, employee, clients, make_event, january):
    events = [
        make_event("Μαρία Παπαδοπούλου", _at(3), event_id="m"),
        make_event("John Doe", _at(4), event_id="j"),
    ]

    report = calculator.calculate_payroll(employee, clients, events, *january)

    assert [e.client_name for e in report.entries] == ["John Doe", "Μαρία Παπαδοπούλου"]


def test_empty_inputs(calculator, employee, january):
    report = calculator.calculate_payroll(employee, [], [], *january)
    assert report.entries == ()
    assert report.total_revenue == Decimal("0.00")
    assert report.total_sessions == 0


def test_same_input_same_report(employee, clients, supervision, make_event, january):
    events = [
        make_event("John Doe", _at(6), event_id="1"),
        make_event("John", _at(7), event_id="2"),
        make_event("Supervision", _at(8), event_id="3"),
        make_event("Gym", _at(9), event_id="4"),
    ]
    first = calculate_payroll(employee, clients, events, *january, supervision_config=supervision)
    second = calculate_payroll(employee, clients, events, *january, supervision_config=supervision)
    assert first == second


def test_missing_employee_raises(calculator, january):
    with pytest.raises(ValueError):
        calculator.calculate_payroll(None, [], [], *january)


def test_start_after_end_raises(calculator, employee):
    with pytest.raises(ValueError):
        calculator.calculate_payroll(employee, [], [], date(2025, 2, 1), date(2025, 1, 1))


@pytest.mark.parametrize("value", ["not a date", "2025-13-01", None, 42])
def test_bad_boundary_raises(value):
    with pytest.raises(ValueError):
        parse_period_boundary(value)


def test_supervision_config_from_employee(employee):
    config = SupervisionConfig.from_employee(employee)
    assert config.price == Decimal("60.00")
    assert config.employee_price == Decimal("24.00")
    assert config.company_price == Decimal("36.00")

    odd = SupervisionConfig.from_employee(Employee(id="x", name="X", supervision_price="33.33"))
    assert odd.employee_price == Decimal("13.33")
    assert odd.employee_price + odd.company_price == Decimal("33.33")

    assert SupervisionConfig.from_employee(Employee(id="y", name="Y")) is None
