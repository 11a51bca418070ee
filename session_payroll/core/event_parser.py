"""
Calendar Event Parser

Loads calendar exports into CalendarEvent objects:
- Google Calendar API JSON (events.list response or a bare list of items)
- Flat CSV exports with id,title,start,end,color_id,status columns

Colour conventions used by the practice:
- Red (11):  cancelled, not billed (unless it is a supervision meeting)
- Grey (8):  cancelled late, client still pays
"""
import csv
import json
from datetime import datetime, time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from session_payroll import config
from session_payroll.core.models import CalendarEvent
from session_payroll.core.text_normalizer import normalize


def is_supervision_title(title: str, supervision_keywords: Iterable[str]) -> bool:
    """True if the whole title is a supervision keyword (case/accent-insensitive)"""
    title_normalized = normalize(title)
    return any(title_normalized == normalize(keyword) for keyword in supervision_keywords)


def to_local_naive(value: datetime, tz: Optional[ZoneInfo] = None) -> datetime:
    """Aware datetimes become naive wall-clock time in tz (CALENDAR_TIMEZONE by default)"""
    if value.tzinfo is None:
        return value
    tz = tz or ZoneInfo(config.CALENDAR_TIMEZONE)
    return value.astimezone(tz).replace(tzinfo=None)


def _parse_timestamp(value: Dict, tz: ZoneInfo, end_of_day: bool = False) -> datetime:
    if value.get('dateTime'):
        return to_local_naive(datetime.fromisoformat(value['dateTime'].replace('Z', '+00:00')), tz)

    if value.get('date'):
        day = datetime.strptime(value['date'], '%Y-%m-%d').date()
        # All-day events cover the whole day
        return datetime.combine(day, time(23, 59, 59) if end_of_day else time.min)

    raise ValueError(f"Event time has neither dateTime nor date: {value}")


def parse_google_event(item: Dict,
                       supervision_keywords: Optional[Sequence[str]] = None,
                       tz: Optional[ZoneInfo] = None) -> CalendarEvent:
    """
    Convert a Google Calendar API event resource to a CalendarEvent

    Args:
        item: Event resource (dict with id, summary, start, end, colorId, ...)
        supervision_keywords: Titles that stay billable even when coloured red
        tz: Timezone that naive local times are expressed in

    Returns:
        CalendarEvent with naive local datetimes

    Raises:
        ValueError/KeyError: if the item has no usable start or end time
    """
    if supervision_keywords is None:
        supervision_keywords = config.SUPERVISION_KEYWORDS
    tz = tz or ZoneInfo(config.CALENDAR_TIMEZONE)

    title = item.get('summary') or config.UNTITLED_EVENT
    color_id = item.get('colorId')

    is_red = color_id == config.RED_CANCELLED_COLOR
    is_cancelled = item.get('status') == 'cancelled' or (
        is_red and not is_supervision_title(title, supervision_keywords)
    )

    attendees = tuple(
        attendee['email']
        for attendee in item.get('attendees', [])
        if attendee.get('email')
    )

    return CalendarEvent(
        id=str(item['id']),
        title=title,
        start_time=_parse_timestamp(item['start'], tz),
        end_time=_parse_timestamp(item['end'], tz, end_of_day=True),
        color_id=color_id,
        is_cancelled=is_cancelled,
        is_pending_payment=color_id == config.GREY_PENDING_COLOR,
        attendees=attendees,
    )


def parse_google_events(items: Iterable[Dict],
                        supervision_keywords: Optional[Sequence[str]] = None,
                        tz: Optional[ZoneInfo] = None) -> List[CalendarEvent]:
    """Parse many items, skipping (and reporting) the ones that cannot be parsed"""
    events = []
    for item in items:
        try:
            events.append(parse_google_event(item, supervision_keywords, tz))
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            print(f"⚠️  Skipping event {item.get('id', '?') if isinstance(item, dict) else '?'}: {e}")
    return events


def load_events_json(json_path: Path,
                     supervision_keywords: Optional[Sequence[str]] = None,
                     tz: Optional[ZoneInfo] = None) -> List[CalendarEvent]:
    """Load a Google Calendar JSON export ({"items": [...]} or a bare list)"""
    with open(json_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    items = data.get('items', []) if isinstance(data, dict) else data
    events = parse_google_events(items, supervision_keywords, tz)

    print(f"✅ Parsed {len(events)} events from {Path(json_path).name}")
    return events


def _parse_csv_datetime(value: str) -> datetime:
    value = (value or '').strip()
    if not value:
        raise ValueError("Missing date")

    # Try multiple formats
    formats = [
        '%Y-%m-%dT%H:%M:%S',   # 2025-01-15T10:00:00
        '%Y-%m-%d %H:%M:%S',   # 2025-01-15 10:00:00
        '%Y-%m-%d %H:%M',      # 2025-01-15 10:00
        '%d/%m/%Y %H:%M',      # 15/01/2025 10:00
    ]
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue

    raise ValueError(f"Could not parse date: {value}")


def load_events_csv(csv_path: Path,
                    supervision_keywords: Optional[Sequence[str]] = None) -> List[CalendarEvent]:
    """
    Load events from a flat CSV export

    Expected columns: id,title,start,end,color_id,status
    The colour rules are the same as for Google events.
    """
    if supervision_keywords is None:
        supervision_keywords = config.SUPERVISION_KEYWORDS

    events = []
    with open(csv_path, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)

        for i, row in enumerate(reader, start=2):
            title = (row.get('title') or '').strip() or config.UNTITLED_EVENT
            color_id = (row.get('color_id') or '').strip() or None
            status = (row.get('status') or '').strip().lower()

            try:
                start_time = _parse_csv_datetime(row.get('start'))
                end_time = _parse_csv_datetime(row.get('end'))
            except ValueError as e:
                print(f"⚠️  Skipping line {i}: {e}")
                continue

            is_red = color_id == config.RED_CANCELLED_COLOR
            events.append(CalendarEvent(
                id=(row.get('id') or '').strip() or f"row-{i}",
                title=title,
                start_time=start_time,
                end_time=end_time,
                color_id=color_id,
                is_cancelled=status == 'cancelled' or (
                    is_red and not is_supervision_title(title, supervision_keywords)
                ),
                is_pending_payment=color_id == config.GREY_PENDING_COLOR,
            ))

    print(f"✅ Parsed {len(events)} events from {Path(csv_path).name}")
    return events


def load_events(path: Path,
                supervision_keywords: Optional[Sequence[str]] = None) -> List[CalendarEvent]:
    """Load events from a .json or .csv export"""
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == '.json':
        return load_events_json(path, supervision_keywords)
    if suffix == '.csv':
        return load_events_csv(path, supervision_keywords)

    raise ValueError(f"Unsupported events file type: {path.suffix} (expected .json or .csv)")
