"""
Events service - event records, catalog queries and registration exports.

Modules that call the backend (drafts, search, broadcasts) are imported by
their full path.
"""

from .models import Event, CreatedEvent, Registration, RegistrationField, AdminStats
from .event_catalog import TimeFilter, SortKey, filter_events, sort_events, is_registered
from .exports import registrations_to_csv, export_filename

__all__ = [
    'Event',
    'CreatedEvent',
    'Registration',
    'RegistrationField',
    'AdminStats',
    'TimeFilter',
    'SortKey',
    'filter_events',
    'sort_events',
    'is_registered',
    'registrations_to_csv',
    'export_filename'
]
