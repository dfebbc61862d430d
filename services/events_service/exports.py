"""
CSV export of an event's registrations for organizers.
"""

import csv
import io
from typing import Any, List, Sequence

from services.events_service.models import Event, Registration, parse_event_date


MISSING = "N/A"

STANDARD_HEADERS = [
    "Full Name",
    "Email",
    "Status",
    "Registered At",
    "Transaction ID",
    "Payment Screenshot",
]


def _cell(value: Any) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return MISSING
    return str(value)


def _registered_on(value: str) -> str:
    parsed = parse_event_date(value)
    return parsed.date().isoformat() if parsed else _cell(value)


def export_headers(event: Event) -> List[str]:
    return STANDARD_HEADERS + [f.label for f in event.registration_fields]


def export_row(event: Event, registration: Registration) -> List[str]:
    payment = registration.effective_payment_details
    row = [
        _cell(registration.full_name),
        _cell(registration.email),
        registration.status.value,
        _registered_on(registration.registered_at),
        _cell(payment.transaction_id if payment else None),
        _cell(payment.screenshot_url if payment else None),
    ]
    row.extend(_cell(registration.registration_data.get(f.key)) for f in event.registration_fields)
    return row


def registrations_to_csv(event: Event, registrations: Sequence[Registration]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(export_headers(event))
    for registration in registrations:
        writer.writerow(export_row(event, registration))
    return buffer.getvalue()


def export_filename(event: Event) -> str:
    return f"{event.title}-registrations.csv"
