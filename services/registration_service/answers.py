"""
Editing the answers of an existing registration.
"""

from typing import Any, Dict

from infrastructure.external.backend_client import BackendClient
from services.events_service.models import Event, Registration
from services.registration_service.field_validation import coerce_value, collect_answers, validate_answers


def merge_answers(event: Event, registration: Registration, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    New ``registration_data`` with ``changes`` applied to the event's fields

    Keys the form does not own (payment details and the like) are kept.
    """
    values = dict(registration.registration_data)
    for key, raw in changes.items():
        registration_field = event.field_by_key(key)
        if registration_field is None:
            continue
        values[key] = coerce_value(registration_field, raw)
    return values


def answer_text(registration: Registration, key: str) -> str:
    """Stored answer as shown in a text input; missing and null answers are blank"""
    current = registration.registration_data.get(key)
    return "" if current is None else str(current)


def update_answers(client: BackendClient, event: Event, registration: Registration,
                   changes: Dict[str, Any]) -> Registration:
    """
    Validate and save edited answers

    Raises:
        ValueError: an answer is missing or invalid
        ApiError: the backend refused the update
    """
    values = merge_answers(event, registration, changes)
    errors = validate_answers(event.registration_fields, values)
    if errors:
        raise ValueError("; ".join(errors))

    owned = {f.key for f in event.registration_fields}
    payload = {key: value for key, value in values.items() if key not in owned}
    payload.update(collect_answers(event.registration_fields, values))
    return client.update_registration(registration.id, payload)
