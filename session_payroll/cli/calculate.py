#!/usr/bin/env python3
"""
Payroll calculation CLI

Calculates one employee's payroll for a period from a calendar export and
prints the per-client breakdown, uncertain matches and unmatched events.

Usage:
    payroll-calc emp1 events.json --start 2025-01-01 --end 2025-01-31
    payroll-calc emp1 events.csv --start 2025-01-01 --end 2025-01-31 --roster roster.json --xlsx out.xlsx
"""
import argparse
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional

from session_payroll.core.client_validator import validate_date_range
from session_payroll.core.currency import format_currency
from session_payroll.core.event_parser import load_events
from session_payroll.core.match_review import MatchReviewer
from session_payroll.core.models import CalendarEvent, Client, Employee, PayrollReport, SupervisionConfig
from session_payroll.core.payroll_calculator import PayrollCalculator
from session_payroll.core.report_export import format_period, write_csv, write_excel, write_json
from session_payroll.core.repositories import (
    InMemoryConfirmationStore,
    PostgresConfirmationStore,
    PostgresRosterStore,
    load_roster_json,
)
from session_payroll.utils.db_connection import get_db_connection


@dataclass
class PayrollSession:
    """Everything one CLI run needs: stores, roster and events"""
    employee: Employee
    clients: List[Client]
    events: List[CalendarEvent]
    roster_store: object
    confirmation_store: object
    start: date
    end: date
    conn: Optional[object] = None

    def close(self):
        if self.conn is not None:
            self.conn.close()


def add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument('employee_id', help='Employee ID')
    parser.add_argument('events_file', type=Path, help='Calendar export (.json or .csv)')
    parser.add_argument('--start', type=date.fromisoformat, required=True, help='Period start (YYYY-MM-DD)')
    parser.add_argument('--end', type=date.fromisoformat, required=True, help='Period end, inclusive (YYYY-MM-DD)')
    parser.add_argument('--roster', type=Path,
                        help='Roster JSON instead of the database (decisions are not persisted)')


def open_session(args) -> PayrollSession:
    """
    Load roster, decisions store and events for the CLI arguments

    Exits with status 1 on any problem, after printing why.
    """
    validation = validate_date_range(args.start, args.end)
    if not validation.is_valid:
        for message in validation.messages():
            print(f"❌ {message}")
        sys.exit(1)
    for warning in validation.warnings:
        print(f"⚠️  {warning}")

    if not args.events_file.exists():
        print(f"❌ File not found: {args.events_file}")
        sys.exit(1)

    conn = None
    try:
        if args.roster:
            roster_store = load_roster_json(args.roster)
            confirmation_store = InMemoryConfirmationStore()
        else:
            print("🔌 Connecting to database...")
            conn = get_db_connection()
            roster_store = PostgresRosterStore(conn)
            confirmation_store = PostgresConfirmationStore(conn)

        employee = roster_store.get_employee(args.employee_id)
        if employee is None:
            raise ValueError(f"Unknown employee: {args.employee_id}")

        clients = roster_store.get_clients(employee.id)
        events = load_events(args.events_file)
    except Exception as e:
        print(f"❌ Could not load payroll data: {e}")
        if conn is not None:
            conn.close()
        sys.exit(1)

    return PayrollSession(
        employee=employee,
        clients=clients,
        events=events,
        roster_store=roster_store,
        confirmation_store=confirmation_store,
        start=args.start,
        end=args.end,
        conn=conn,
    )


def calculate(session: PayrollSession, use_decisions: bool = True) -> PayrollReport:
    """Run the calculation with the stored decisions fed back in"""
    decisions = {}
    if use_decisions:
        decisions = MatchReviewer(session.confirmation_store).load_decisions(session.employee.id)

    return PayrollCalculator().calculate_payroll(
        session.employee,
        session.clients,
        session.events,
        session.start,
        session.end,
        supervision_config=SupervisionConfig.from_employee(session.employee),
        confirmed_matches=decisions,
    )


def print_report(report: PayrollReport):
    """Print payroll breakdown"""
    print("\n" + "=" * 80)
    print(f"💰 PAYROLL: {report.employee.name} ({format_period(report)})")
    print("=" * 80)

    if not report.entries:
        print("\nNo billable sessions in this period.")

    for entry in report.entries:
        icon = "👥" if entry.is_supervision else "👤"
        print(f"\n{icon} {entry.client_name}")
        print(f"   Sessions:   {entry.sessions_count} × {format_currency(entry.client_price)}")
        print(f"   Revenue:    {format_currency(entry.total_revenue)}")
        print(f"   Employee:   {format_currency(entry.employee_earnings)}")
        print(f"   Company:    {format_currency(entry.company_earnings)}")

    print("\n" + "-" * 80)
    print(f"Total sessions:     {report.total_sessions}")
    print(f"Total revenue:      {format_currency(report.total_revenue)}")
    print(f"Employee earnings:  {format_currency(report.total_employee_earnings)}")
    print(f"Company earnings:   {format_currency(report.total_company_earnings)}")
    print(f"Events matched:     {report.matched_events}/{report.total_events}")

    if report.ambiguous_matches:
        print(f"\n🔀 Matched several clients ({len(report.ambiguous_matches)}):")
        for match in report.ambiguous_matches:
            print(f"   • {match.event_title} → {match.chosen_client} (also: {', '.join(match.candidates[1:])})")

    if report.uncertain_matches:
        print(f"\n❓ Need confirmation ({len(report.uncertain_matches)}):")
        for match in report.uncertain_matches:
            suggestion = match.suggested_match
            print(f"   • {match.event_title} → {suggestion.client_name} [{suggestion.confidence.name}]")

    if report.unmatched_events:
        print(f"\n⚠️  Unmatched events ({len(report.unmatched_events)}):")
        for event in report.unmatched_events:
            print(f"   • {event.start_time:%d/%m %H:%M}  {event.title}")

    print("=" * 80)


def export_report(report: PayrollReport, args):
    if args.csv:
        print(f"📄 CSV written: {write_csv(report, args.csv)}")
    if args.xlsx:
        print(f"📊 Excel written: {write_excel(report, args.xlsx)}")
    if args.json:
        print(f"🗂️  JSON written: {write_json(report, args.json)}")


def main():
    """Main calculation function"""
    parser = argparse.ArgumentParser(description='Calculate payroll from calendar events')
    add_common_arguments(parser)
    parser.add_argument('--ignore-decisions', action='store_true',
                        help='Ignore stored confirm/reject decisions')
    parser.add_argument('--csv', type=Path, help='Write summary CSV')
    parser.add_argument('--xlsx', type=Path, help='Write Excel report')
    parser.add_argument('--json', type=Path, help='Write JSON report')
    args = parser.parse_args()

    session = open_session(args)
    try:
        report = calculate(session, use_decisions=not args.ignore_decisions)
        print_report(report)
        export_report(report, args)

        if report.uncertain_matches:
            print("\n💡 Run payroll-review to confirm or reject uncertain matches")

    except Exception as e:
        print(f"\n❌ Calculation failed: {e}")
        sys.exit(1)
    finally:
        session.close()


if __name__ == "__main__":
    main()
