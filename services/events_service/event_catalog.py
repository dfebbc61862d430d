"""
Catalog helpers shared by the browse, dashboard and management views.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from services.events_service.models import Event, Registration


class TimeFilter(str, Enum):
    ALL = "all"
    UPCOMING = "upcoming"
    PAST = "past"


class SortKey(str, Enum):
    DATE = "date"
    ATTENDEES = "attendees"


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def matches_query(event: Event, query: str) -> bool:
    """Case-insensitive substring match on title or location"""
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return needle in event.title.lower() or needle in event.location.lower()


def matches_time_filter(event: Event, time_filter: TimeFilter, now: Optional[datetime] = None) -> bool:
    if time_filter == TimeFilter.ALL:
        return True
    starts_at = event.starts_at
    if starts_at is None:
        return False
    if time_filter == TimeFilter.UPCOMING:
        return starts_at > _now(now)
    return starts_at <= _now(now)


def filter_events(events: Iterable[Event], query: str = "", time_filter: TimeFilter = TimeFilter.ALL,
                  now: Optional[datetime] = None) -> List[Event]:
    now = _now(now)
    return [
        event for event in events
        if matches_query(event, query) and matches_time_filter(event, TimeFilter(time_filter), now)
    ]


def sort_events(events: Iterable[Event], key: SortKey = SortKey.DATE, descending: bool = False) -> List[Event]:
    """
    Sort for the management table. Events without a parseable date always
    sort last, whichever direction is chosen.
    """
    events = list(events)
    if SortKey(key) == SortKey.ATTENDEES:
        return sorted(events, key=lambda event: event.current_attendees, reverse=descending)

    dated = [event for event in events if event.starts_at is not None]
    undated = [event for event in events if event.starts_at is None]
    dated.sort(key=lambda event: event.starts_at, reverse=descending)
    return dated + undated


def is_registered(registrations: Iterable[Registration], event_id: str) -> bool:
    return any(registration.refers_to(event_id) for registration in registrations)


def upcoming_events(events: Iterable[Event], now: Optional[datetime] = None) -> List[Event]:
    return filter_events(events, time_filter=TimeFilter.UPCOMING, now=now)


def filter_registrations(registrations: Iterable[Registration], query: str = "",
                         time_filter: TimeFilter = TimeFilter.ALL,
                         now: Optional[datetime] = None) -> List[Registration]:
    """Registrations whose embedded event matches; ones without an event are hidden"""
    now = _now(now)
    return [
        registration for registration in registrations
        if registration.event is not None
        and registration.event.starts_at is not None
        and matches_query(registration.event, query)
        and matches_time_filter(registration.event, TimeFilter(time_filter), now)
    ]


def count_registrations(registrations: Sequence[Registration], time_filter: TimeFilter,
                        now: Optional[datetime] = None) -> int:
    return len(filter_registrations(registrations, time_filter=time_filter, now=now))


def find_event(events: Iterable[Event], event_id: Optional[str]) -> Optional[Event]:
    if not event_id:
        return None
    for event in events:
        if event.id == event_id:
            return event
    return None
