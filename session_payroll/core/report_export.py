"""
Payroll report export (dict/JSON, CSV and Excel).

Money stays Decimal inside the report and is converted to float only here,
at the output boundary.
"""
import csv
import json
from pathlib import Path
from typing import Dict, List

from openpyxl import Workbook
from openpyxl.styles import Font

from session_payroll.core.currency import to_float
from session_payroll.core.models import PayrollReport, PayrollReportEntry

SUMMARY_HEADERS = [
    'Client', 'Price', 'Employee Price', 'Company Price', 'Sessions',
    'Total Revenue', 'Employee Earnings', 'Company Earnings',
]
SESSION_HEADERS = ['Client', 'Date', 'Time', 'Duration (min)', 'Status', 'Event ID']


def format_period(report: PayrollReport) -> str:
    return f"{report.period_start:%d/%m/%Y} - {report.period_end:%d/%m/%Y}"


def _entry_row(entry: PayrollReportEntry) -> list:
    return [
        entry.client_name,
        to_float(entry.client_price),
        to_float(entry.employee_price),
        to_float(entry.company_price),
        entry.sessions_count,
        to_float(entry.total_revenue),
        to_float(entry.employee_earnings),
        to_float(entry.company_earnings),
    ]


def _totals_row(report: PayrollReport) -> list:
    return [
        'TOTAL', '', '', '',
        report.total_sessions,
        to_float(report.total_revenue),
        to_float(report.total_employee_earnings),
        to_float(report.total_company_earnings),
    ]


def report_to_dict(report: PayrollReport) -> Dict:
    """
    Serializable view of a report

    Sections: employee, period, summary, client_breakdown (with
    event_details) and event_tracking (unmatched/uncertain/ambiguous).
    """
    client_breakdown: List[Dict] = []
    for entry in report.entries:
        client_breakdown.append({
            'client_name': entry.client_name,
            'client_price': to_float(entry.client_price),
            'employee_price': to_float(entry.employee_price),
            'company_price': to_float(entry.company_price),
            'sessions': entry.sessions_count,
            'total_revenue': to_float(entry.total_revenue),
            'employee_earnings': to_float(entry.employee_earnings),
            'company_earnings': to_float(entry.company_earnings),
            'is_supervision': entry.is_supervision,
            'event_details': [
                {
                    'event_id': session.event_id,
                    'date': session.date.isoformat(),
                    'time': session.time,
                    'duration_minutes': session.duration_minutes,
                    'status': session.status,
                    'color_id': session.color_id,
                }
                for session in entry.sessions
            ],
        })

    return {
        'employee': {
            'id': report.employee.id,
            'name': report.employee.name,
            'email': report.employee.email,
        },
        'period': {
            'start': report.period_start.isoformat(),
            'end': report.period_end.isoformat(),
            'formatted': format_period(report),
        },
        'summary': {
            'total_sessions': report.total_sessions,
            'total_revenue': to_float(report.total_revenue),
            'employee_earnings': to_float(report.total_employee_earnings),
            'company_earnings': to_float(report.total_company_earnings),
            'matched_events': report.matched_events,
            'total_events': report.total_events,
        },
        'client_breakdown': client_breakdown,
        'event_tracking': {
            'unmatched_events': [
                {'id': event.id, 'title': event.title, 'start': event.start_time.isoformat()}
                for event in report.unmatched_events
            ],
            'uncertain_matches': [
                {
                    'event_id': match.calendar_event_id,
                    'title': match.event_title,
                    'suggested_client': match.suggested_match.client_name if match.suggested_match else None,
                    'confidence': match.suggested_match.confidence.name if match.suggested_match else None,
                    'candidates': [candidate.client_name for candidate in match.possible_matches],
                }
                for match in report.uncertain_matches
            ],
            'ambiguous_matches': [
                {
                    'event_id': match.calendar_event_id,
                    'title': match.event_title,
                    'chosen_client': match.chosen_client,
                    'candidates': list(match.candidates),
                }
                for match in report.ambiguous_matches
            ],
        },
    }


def write_json(report: PayrollReport, output_path: Path) -> Path:
    output_path = Path(output_path)
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(report_to_dict(report), f, ensure_ascii=False, indent=2)
    return output_path


def write_csv(report: PayrollReport, output_path: Path) -> Path:
    """One row per client plus a TOTAL row"""
    output_path = Path(output_path)
    with open(output_path, 'w', encoding='utf-8', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(SUMMARY_HEADERS)
        for entry in report.entries:
            writer.writerow(_entry_row(entry))
        writer.writerow(_totals_row(report))
    return output_path


def write_excel_summary_sheet(ws, report: PayrollReport):
    """
    Summary sheet: title rows, per-client breakdown and totals.

    Row 1: employee and period
    Row 3: headers
    Row 4+: one row per entry, then TOTAL
    """
    ws.cell(row=1, column=1, value=f"{report.employee.name} ({format_period(report)})").font = Font(bold=True)

    for col_idx, header in enumerate(SUMMARY_HEADERS, start=1):
        cell = ws.cell(row=3, column=col_idx, value=header)
        cell.font = Font(bold=True)

    row_idx = 4
    for entry in report.entries:
        for col_idx, value in enumerate(_entry_row(entry), start=1):
            ws.cell(row=row_idx, column=col_idx, value=value)
        row_idx += 1

    for col_idx, value in enumerate(_totals_row(report), start=1):
        ws.cell(row=row_idx, column=col_idx, value=value).font = Font(bold=True)


def write_excel_sessions_sheet(ws, report: PayrollReport):
    """Sessions sheet: every counted session, grouped by client"""
    for col_idx, header in enumerate(SESSION_HEADERS, start=1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)

    row_idx = 2
    for entry in report.entries:
        for session in entry.sessions:
            row_data = [
                entry.client_name,
                session.date.strftime('%d/%m/%Y'),
                session.time,
                session.duration_minutes,
                session.status,
                session.event_id,
            ]
            for col_idx, value in enumerate(row_data, start=1):
                ws.cell(row=row_idx, column=col_idx, value=value)
            row_idx += 1


def write_excel(report: PayrollReport, output_path: Path) -> Path:
    output_path = Path(output_path)

    wb = Workbook()

    ws_summary = wb.active
    ws_summary.title = "Summary"
    write_excel_summary_sheet(ws_summary, report)

    ws_sessions = wb.create_sheet(title="Sessions")
    write_excel_sessions_sheet(ws_sessions, report)

    wb.save(str(output_path))
    return output_path
