"""
Data models for calendar events, clients, matches and payroll reports.

All models are frozen dataclasses. Money fields are Decimal; floats and
strings are accepted and converted on construction.
"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import IntEnum
from typing import Optional, Sequence, Tuple

from session_payroll import config
from session_payroll.core.currency import ZERO, round_to_cents, to_decimal


def _set_money(obj, *names: str):
    for name in names:
        object.__setattr__(obj, name, round_to_cents(getattr(obj, name)))


# =============================================================================
# CALENDAR / ROSTER
# =============================================================================


@dataclass(frozen=True)
class CalendarEvent:
    """Calendar event (one therapy session or supervision meeting)"""
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    color_id: Optional[str] = None
    is_cancelled: bool = False
    is_pending_payment: bool = False
    attendees: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'attendees', tuple(self.attendees))

    @property
    def is_billable(self) -> bool:
        # Pending payment overrides cancellation
        return not self.is_cancelled or self.is_pending_payment

    @property
    def status(self) -> str:
        if self.is_pending_payment:
            return 'pending_payment'
        if self.is_cancelled:
            return 'cancelled'
        return 'completed'

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)


@dataclass(frozen=True)
class Client:
    """Client with per-session price split between employee and company"""
    name: str
    price: Decimal
    employee_price: Decimal
    company_price: Decimal
    employee_id: str
    id: Optional[int] = None
    pending_payment: bool = False

    def __post_init__(self):
        _set_money(self, 'price', 'employee_price', 'company_price')


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    email: str = ''
    calendar_id: str = ''
    sheet_name: str = ''
    supervision_price: Decimal = ZERO
    color: str = '#2196F3'

    def __post_init__(self):
        _set_money(self, 'supervision_price')


@dataclass(frozen=True)
class SupervisionConfig:
    """Pricing and keywords for supervision sessions"""
    enabled: bool = True
    price: Decimal = ZERO
    employee_price: Decimal = ZERO
    company_price: Decimal = ZERO
    keywords: Tuple[str, ...] = tuple(config.SUPERVISION_KEYWORDS)

    def __post_init__(self):
        _set_money(self, 'price', 'employee_price', 'company_price')
        object.__setattr__(self, 'keywords', tuple(self.keywords))

    @classmethod
    def from_employee(cls,
                      employee: Employee,
                      keywords: Optional[Sequence[str]] = None,
                      employee_share=config.SUPERVISION_EMPLOYEE_SHARE) -> Optional['SupervisionConfig']:
        """
        Derive supervision pricing from the employee's supervision price.

        Returns None when the employee has no supervision price. The company
        share is the remainder, so employee + company always equals price.
        """
        if employee.supervision_price <= 0:
            return None

        price = employee.supervision_price
        employee_price = round_to_cents(price * to_decimal(employee_share))
        return cls(
            enabled=True,
            price=price,
            employee_price=employee_price,
            company_price=price - employee_price,
            keywords=tuple(keywords) if keywords is not None else tuple(config.SUPERVISION_KEYWORDS),
        )


# =============================================================================
# MATCHING
# =============================================================================


class MatchConfidence(IntEnum):
    """Ordered confidence tiers: EXACT > HIGH > MEDIUM > LOW > NONE"""
    NONE = 0
    LOW = 1      # first name only
    MEDIUM = 2   # needs confirmation, like LOW
    HIGH = 3     # reversed or hyphenated alternate name
    EXACT = 4    # full (or one-word) name, or special keyword

    @property
    def auto_accepted(self) -> bool:
        return self >= MatchConfidence.HIGH

    @property
    def requires_confirmation(self) -> bool:
        return self in (MatchConfidence.MEDIUM, MatchConfidence.LOW)


@dataclass(frozen=True)
class ClientMatchResult:
    client_name: str
    confidence: MatchConfidence
    matched_text: str    # normalized part of the title that matched
    reason: str          # human-readable explanation
    is_special_keyword: bool = False


@dataclass(frozen=True)
class UncertainMatch:
    """Event held back from the totals until a human confirms or rejects it"""
    event_title: str
    calendar_event_id: str
    suggested_match: Optional[ClientMatchResult]
    possible_matches: Tuple[ClientMatchResult, ...] = ()


@dataclass(frozen=True)
class AmbiguousMatch:
    """Event that matched several clients with high confidence"""
    event_title: str
    calendar_event_id: str
    chosen_client: str
    candidates: Tuple[str, ...]


# =============================================================================
# REPORT
# =============================================================================


@dataclass(frozen=True)
class SessionDetail:
    event_id: str
    date: date
    time: str
    duration_minutes: int
    status: str
    color_id: Optional[str] = None

    @classmethod
    def from_event(cls, event: CalendarEvent) -> 'SessionDetail':
        return cls(
            event_id=event.id,
            date=event.start_time.date(),
            time=event.start_time.strftime('%H:%M'),
            duration_minutes=event.duration_minutes,
            status=event.status,
            color_id=event.color_id,
        )


@dataclass(frozen=True)
class PayrollReportEntry:
    """One client's (or the supervision pseudo-client's) sessions for the period"""
    client_name: str
    client_price: Decimal
    employee_price: Decimal
    company_price: Decimal
    sessions_count: int
    total_revenue: Decimal
    employee_earnings: Decimal
    company_earnings: Decimal
    events: Tuple[CalendarEvent, ...] = ()
    sessions: Tuple[SessionDetail, ...] = ()
    is_supervision: bool = False


@dataclass(frozen=True)
class PayrollReport:
    employee: Employee
    period_start: datetime
    period_end: datetime
    entries: Tuple[PayrollReportEntry, ...]
    total_sessions: int
    total_revenue: Decimal
    total_employee_earnings: Decimal
    total_company_earnings: Decimal
    unmatched_events: Tuple[CalendarEvent, ...] = ()
    uncertain_matches: Tuple[UncertainMatch, ...] = ()
    ambiguous_matches: Tuple[AmbiguousMatch, ...] = ()

    @property
    def matched_events(self) -> int:
        return sum(len(entry.events) for entry in self.entries)

    @property
    def total_events(self) -> int:
        return self.matched_events + len(self.unmatched_events) + len(self.uncertain_matches)

    def get_entry(self, client_name: str) -> Optional[PayrollReportEntry]:
        for entry in self.entries:
            if entry.client_name == client_name:
                return entry
        return None
