"""
Payroll Calculation Engine

Turns an employee's calendar events and client price list into a payroll
report for a period:

1. Keep events that start inside [period_start, period_end] (inclusive)
2. Drop cancelled events unless they are pending payment
3. Classify each event: supervision, client session, stored decision,
   uncertain match (needs confirmation) or unmatched
4. Fold the classifications into per-client entries with exact cents

Pure function of its inputs: no I/O, no clock, no shared state.
"""
from dataclasses import dataclass, replace
from datetime import date, datetime, time
from functools import reduce
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from session_payroll import config
from session_payroll.core.client_matcher import ClientMatcher
from session_payroll.core.currency import ZERO, add_and_round, multiply_and_round
from session_payroll.core.event_parser import to_local_naive
from session_payroll.core.models import (
    AmbiguousMatch,
    CalendarEvent,
    Client,
    ClientMatchResult,
    Employee,
    PayrollReport,
    PayrollReportEntry,
    SessionDetail,
    SupervisionConfig,
    UncertainMatch,
)
from session_payroll.core.text_normalizer import normalize

PeriodBoundary = Union[datetime, date, str]

# Classification kinds
SESSION = 'session'
SUPERVISION = 'supervision'
UNCERTAIN = 'uncertain'
UNMATCHED = 'unmatched'


@dataclass(frozen=True)
class EventClassification:
    """Outcome of classifying one billable event"""
    kind: str
    event: CalendarEvent
    client_name: Optional[str] = None
    uncertain: Optional[UncertainMatch] = None
    ambiguous: Optional[AmbiguousMatch] = None


@dataclass(frozen=True)
class _Tally:
    """Immutable accumulator for the fold over classified events"""
    sessions: Tuple[Tuple[str, CalendarEvent], ...] = ()
    supervision: Tuple[CalendarEvent, ...] = ()
    uncertain: Tuple[UncertainMatch, ...] = ()
    unmatched: Tuple[CalendarEvent, ...] = ()
    ambiguous: Tuple[AmbiguousMatch, ...] = ()


def _fold_classification(tally: _Tally, item: EventClassification) -> _Tally:
    if item.kind == SUPERVISION:
        tally = replace(tally, supervision=tally.supervision + (item.event,))
    elif item.kind == SESSION:
        tally = replace(tally, sessions=tally.sessions + ((item.client_name, item.event),))
    elif item.kind == UNCERTAIN:
        tally = replace(tally, uncertain=tally.uncertain + (item.uncertain,))
    else:
        tally = replace(tally, unmatched=tally.unmatched + (item.event,))

    if item.ambiguous:
        tally = replace(tally, ambiguous=tally.ambiguous + (item.ambiguous,))
    return tally


def parse_period_boundary(value: PeriodBoundary, end_of_day: bool = False) -> datetime:
    """
    Parse a period boundary.

    Dates (or date-only strings) expand to the start of the day, or to the
    last microsecond of the day when end_of_day is set. Datetimes with an
    offset are converted to naive CALENDAR_TIMEZONE wall-clock time, the
    same form the event parsers produce.

    Raises:
        ValueError: if the value is missing or cannot be parsed
    """
    if value is None:
        raise ValueError("Period boundary is required")

    if isinstance(value, datetime):
        return to_local_naive(value)

    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                value = date.fromisoformat(text)
            else:
                return to_local_naive(datetime.fromisoformat(text))
        except ValueError:
            raise ValueError(f"Could not parse period boundary: {text!r}")

    if isinstance(value, date):
        return datetime.combine(value, time.max if end_of_day else time.min)

    raise ValueError(f"Unsupported period boundary: {value!r}")


def _best_candidate(candidates: Sequence[ClientMatchResult]) -> ClientMatchResult:
    # max() keeps the first of equals, so roster order breaks ties
    return max(candidates, key=lambda result: result.confidence)


class PayrollCalculator:
    """
    Calculates payroll for one employee and period.

    Uncertain matches are reported instead of counted. Previously stored
    decisions (normalized title -> client name or REJECTED_MATCH_MARKER) can
    be passed in so confirmed events count and rejected ones stay unmatched.
    """

    def __init__(self, matcher: Optional[ClientMatcher] = None):
        self.matcher = matcher or ClientMatcher()

    def calculate_payroll(self,
                          employee: Employee,
                          clients: Sequence[Client],
                          events: Iterable[CalendarEvent],
                          period_start: PeriodBoundary,
                          period_end: PeriodBoundary,
                          supervision_config: Optional[SupervisionConfig] = None,
                          confirmed_matches: Optional[Mapping[str, str]] = None) -> PayrollReport:
        """
        Calculate payroll for an employee based on calendar events

        Args:
            employee: Employee the report is for
            clients: The employee's clients, in roster order
            events: Calendar events (may include events outside the period)
            period_start: Start of period (inclusive)
            period_end: End of period (inclusive)
            supervision_config: Supervision pricing, None to disable
            confirmed_matches: Stored decisions keyed by normalized title

        Returns:
            Immutable PayrollReport

        Raises:
            ValueError: missing employee or invalid period
        """
        if employee is None:
            raise ValueError("Employee is required to calculate payroll")

        start = parse_period_boundary(period_start)
        end = parse_period_boundary(period_end, end_of_day=True)
        if start > end:
            raise ValueError(f"Period start {start} is after period end {end}")

        clients = list(clients or [])
        client_names = [client.name for client in clients]
        decisions = dict(confirmed_matches or {})

        keywords: Tuple[str, ...] = ()
        if supervision_config is not None and supervision_config.enabled:
            keywords = supervision_config.keywords

        billable = [
            event for event in events
            if start <= to_local_naive(event.start_time) <= end
            and event.is_billable
            and event.title.strip()
        ]

        classifications = [
            self.classify_event(event, client_names, keywords, decisions)
            for event in billable
        ]
        tally = reduce(_fold_classification, classifications, _Tally())

        return self._build_report(employee, clients, start, end, supervision_config, tally)

    def classify_event(self,
                       event: CalendarEvent,
                       client_names: Sequence[str],
                       special_keywords: Sequence[str] = (),
                       decisions: Optional[Mapping[str, str]] = None) -> EventClassification:
        """Decide where a single billable event goes"""
        results = self.matcher.find_client_matches_with_confidence(
            event.title, client_names, special_keywords
        )

        if results and results[0].is_special_keyword:
            return EventClassification(SUPERVISION, event)

        auto_accepted = []
        for result in results:
            if result.confidence.auto_accepted and result.client_name not in auto_accepted:
                auto_accepted.append(result.client_name)

        if auto_accepted:
            ambiguous = None
            if len(auto_accepted) > 1:
                ambiguous = AmbiguousMatch(
                    event_title=event.title,
                    calendar_event_id=event.id,
                    chosen_client=auto_accepted[0],
                    candidates=tuple(auto_accepted),
                )
            return EventClassification(SESSION, event, client_name=auto_accepted[0], ambiguous=ambiguous)

        decision = (decisions or {}).get(normalize(event.title))
        if decision == config.REJECTED_MATCH_MARKER:
            return EventClassification(UNMATCHED, event)
        if decision and decision in client_names:
            return EventClassification(SESSION, event, client_name=decision)

        candidates = [result for result in results if result.confidence.requires_confirmation]
        if candidates:
            uncertain = UncertainMatch(
                event_title=event.title,
                calendar_event_id=event.id,
                suggested_match=_best_candidate(candidates),
                possible_matches=tuple(candidates),
            )
            return EventClassification(UNCERTAIN, event, uncertain=uncertain)

        return EventClassification(UNMATCHED, event)

    def _build_report(self,
                      employee: Employee,
                      clients: List[Client],
                      start: datetime,
                      end: datetime,
                      supervision_config: Optional[SupervisionConfig],
                      tally: _Tally) -> PayrollReport:
        events_by_client: Dict[str, List[CalendarEvent]] = {}
        for client_name, event in tally.sessions:
            events_by_client.setdefault(client_name, []).append(event)

        entries = []
        seen = set()
        for client in clients:
            # Duplicate roster names collapse onto the first row
            if client.name in seen or client.name not in events_by_client:
                continue
            seen.add(client.name)
            entries.append(_make_entry(
                client.name, client.price, client.employee_price, client.company_price,
                events_by_client[client.name],
            ))

        if tally.supervision:
            entries.append(_make_entry(
                config.SUPERVISION_ENTRY_NAME,
                supervision_config.price,
                supervision_config.employee_price,
                supervision_config.company_price,
                tally.supervision,
                is_supervision=True,
            ))

        return PayrollReport(
            employee=employee,
            period_start=start,
            period_end=end,
            entries=tuple(entries),
            total_sessions=sum(entry.sessions_count for entry in entries),
            total_revenue=reduce(add_and_round, (e.total_revenue for e in entries), ZERO),
            total_employee_earnings=reduce(add_and_round, (e.employee_earnings for e in entries), ZERO),
            total_company_earnings=reduce(add_and_round, (e.company_earnings for e in entries), ZERO),
            unmatched_events=tally.unmatched,
            uncertain_matches=tally.uncertain,
            ambiguous_matches=tally.ambiguous,
        )


def _make_entry(name, price, employee_price, company_price,
                events: Sequence[CalendarEvent], is_supervision: bool = False) -> PayrollReportEntry:
    count = len(events)
    return PayrollReportEntry(
        client_name=name,
        client_price=price,
        employee_price=employee_price,
        company_price=company_price,
        sessions_count=count,
        total_revenue=multiply_and_round(price, count),
        employee_earnings=multiply_and_round(employee_price, count),
        company_earnings=multiply_and_round(company_price, count),
        events=tuple(events),
        sessions=tuple(SessionDetail.from_event(event) for event in events),
        is_supervision=is_supervision,
    )


def calculate_payroll(employee: Employee,
                      clients: Sequence[Client],
                      events: Iterable[CalendarEvent],
                      period_start: PeriodBoundary,
                      period_end: PeriodBoundary,
                      supervision_config: Optional[SupervisionConfig] = None,
                      confirmed_matches: Optional[Mapping[str, str]] = None) -> PayrollReport:
    """Module-level shortcut for PayrollCalculator().calculate_payroll"""
    return PayrollCalculator().calculate_payroll(
        employee, clients, events, period_start, period_end,
        supervision_config=supervision_config,
        confirmed_matches=confirmed_matches,
    )
