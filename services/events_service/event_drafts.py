"""
Organizer-side event form state: the editable draft behind create/edit.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from infrastructure.external.backend_client import BackendClient, FilePart, MultipartBody
from services.events_service.models import CreatedEvent, Event, FieldType, RegistrationField


DEFAULT_MAX_ATTENDEES = 50

BANK_DETAIL_KEYS = ("account_holder", "account_number", "ifsc_code", "upi_id", "bank_name")

# Set by the registration payload itself, so a custom field may not use them
RESERVED_FIELD_KEYS = ("event_id", "payment_verified", "payment_details")


class DraftError(ValueError):
    """A draft edit was refused; the message is shown to the organizer"""
    pass


def parse_options(text: str) -> List[str]:
    """Comma-separated option list as typed into the form"""
    return [option.strip() for option in (text or "").split(",") if option.strip()]


@dataclass
class EventDraft:
    title: str = ""
    description: str = ""
    date: str = ""
    time: str = ""
    location: str = ""
    meet_link: str = ""
    max_attendees: int = DEFAULT_MAX_ATTENDEES
    registration_fee: Optional[float] = None
    requires_checkin: bool = True
    registration_fields: List[RegistrationField] = field(default_factory=list)
    has_payment_details: bool = False
    bank_details: Dict[str, str] = field(default_factory=lambda: {key: "" for key in BANK_DETAIL_KEYS})
    qr_code: Optional[FilePart] = None
    qr_code_preview_url: Optional[str] = None

    @classmethod
    def from_event(cls, event: Event, file_url=None) -> 'EventDraft':
        """
        Prefill the form from an existing event

        Args:
            event: Event being edited
            file_url: Optional callable mapping a stored file id to a URL for the QR preview
        """
        bank = event.bank_details
        bank_values = {key: "" for key in BANK_DETAIL_KEYS}
        preview = None
        if bank is not None:
            bank_values.update({key: getattr(bank, key) or "" for key in BANK_DETAIL_KEYS})
            if bank.qr_code_file_id and file_url:
                preview = file_url(bank.qr_code_file_id)
            elif bank.qr_code_url:
                preview = bank.qr_code_url

        return cls(
            title=event.title,
            description=event.description,
            date=event.date,
            time=event.time,
            location=event.location,
            meet_link=event.meet_link or "",
            max_attendees=event.max_attendees or DEFAULT_MAX_ATTENDEES,
            registration_fee=event.registration_fee or None,
            requires_checkin=event.requires_checkin,
            registration_fields=list(event.registration_fields),
            has_payment_details=bank is not None and bank.has_account,
            bank_details=bank_values,
            qr_code_preview_url=preview,
        )

    # Custom registration fields

    def add_field(self, key: str, label: str, field_type: FieldType = FieldType.TEXT,
                  required: bool = False, options: Optional[List[str]] = None) -> RegistrationField:
        key = (key or "").strip()
        label = (label or "").strip()
        if not key or not label:
            raise DraftError("Field key and label are required")
        if key in RESERVED_FIELD_KEYS:
            raise DraftError(f"Field key '{key}' is reserved")
        if any(existing.key == key for existing in self.registration_fields):
            raise DraftError("Field key must be unique")
        try:
            new_field = RegistrationField(
                key=key, label=label, type=FieldType(field_type),
                required=required, options=options or [],
            )
        except ValidationError as e:
            raise DraftError("Select fields need at least one option") from e
        self.registration_fields.append(new_field)
        return new_field

    def remove_field(self, key: str):
        self.registration_fields = [f for f in self.registration_fields if f.key != key]

    # Payment details

    def set_payment_enabled(self, enabled: bool):
        self.has_payment_details = enabled

    def set_bank_detail(self, name: str, value: str):
        if name not in BANK_DETAIL_KEYS:
            raise DraftError(f"Unknown bank detail: {name}")
        self.bank_details[name] = value or ""

    def set_qr_code(self, file: FilePart):
        if not file.is_image:
            raise DraftError("Please upload an image file")
        self.qr_code = file

    # Saving

    def validate(self) -> List[str]:
        errors = []
        for name in ("title", "description", "date", "time", "location"):
            if not getattr(self, name).strip():
                errors.append(f"{name.capitalize()} is required")
        if self.max_attendees < 1:
            errors.append("Max attendees must be at least 1")
        if self.registration_fee is not None and self.registration_fee < 0:
            errors.append("Registration fee cannot be negative")
        return errors

    def to_event_data(self) -> Dict[str, Any]:
        """Event document as sent to the backend; form-only state is dropped"""
        return {
            "title": self.title,
            "description": self.description,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "meet_link": self.meet_link,
            "max_attendees": self.max_attendees,
            "registration_fee": self.registration_fee,
            "requires_checkin": self.requires_checkin,
            "registration_fields": [
                f.model_dump(mode="json") for f in self.registration_fields
            ],
            "bank_details": dict(self.bank_details) if self.has_payment_details else None,
        }

    def to_multipart(self) -> MultipartBody:
        files = {"qr_code": self.qr_code} if self.qr_code is not None else {}
        return MultipartBody(fields={"data": json.dumps(self.to_event_data())}, files=files)

    def save(self, client: BackendClient, event_id: Optional[str] = None) -> CreatedEvent:
        """
        Create the event, or update ``event_id`` when editing

        Raises:
            DraftError: the draft is incomplete
            ApiError: the backend refused the save
        """
        errors = self.validate()
        if errors:
            raise DraftError("; ".join(errors))
        body = self.to_multipart()
        if event_id:
            return client.update_event(event_id, body)
        return client.create_event(body)
