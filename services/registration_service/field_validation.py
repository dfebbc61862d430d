"""
Validation of attendee answers against an event's custom registration fields.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

from services.events_service.models import FieldType, RegistrationField


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def coerce_value(field: RegistrationField, raw: Any) -> Any:
    """
    Normalize raw widget input for a field.

    Number fields become int or float when the text parses; anything that
    does not parse is kept as-is so validation can report it.
    """
    if field.type != FieldType.NUMBER or _is_number(raw) or not isinstance(raw, str):
        return raw
    text = raw.strip()
    if not text:
        return ""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return raw
    return number if math.isfinite(number) else raw


def validate_field(field: RegistrationField, value: Any) -> Optional[str]:
    """Error message for one answer, or None when it is acceptable"""
    if is_blank(value):
        return f"{field.label} is required" if field.required else None

    if field.type == FieldType.NUMBER:
        if not _is_number(value):
            return f"{field.label} must be a number"
        return None

    if field.type == FieldType.SELECT:
        if value not in field.options:
            return f"{field.label} must be one of: {', '.join(field.options)}"
        return None

    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        return f"{field.label} has an invalid value"
    return None


def validate_answers(fields: Sequence[RegistrationField], values: Dict[str, Any]) -> List[str]:
    """All problems with a set of answers, in field order"""
    errors = []
    for field in fields:
        error = validate_field(field, values.get(field.key))
        if error:
            errors.append(error)
    return errors


def collect_answers(fields: Sequence[RegistrationField], values: Dict[str, Any]) -> Dict[str, Any]:
    """Answers for the declared fields only, blanks dropped"""
    return {
        field.key: values[field.key]
        for field in fields
        if field.key in values and not is_blank(values[field.key])
    }
