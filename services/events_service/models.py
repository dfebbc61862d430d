"""
Event and registration records exchanged with the backend.

Responses are validated into these models at the gateway boundary so the
views never see half-populated dictionaries.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator, model_validator


_RECORD_CONFIG = ConfigDict(extra="ignore", populate_by_name=True, coerce_numbers_to_str=True)


class FieldType(str, Enum):
    """Input types an organizer can choose for a custom registration field"""
    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    TEL = "tel"
    DATE = "date"
    SELECT = "select"


class RegistrationStatus(str, Enum):
    REGISTERED = "registered"
    CHECKED_IN = "checked_in"
    CANCELLED = "cancelled"


def parse_event_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an event date as sent by the backend.

    Accepts plain dates ("2025-03-01") and ISO timestamps, with or without a
    trailing "Z". Naive values are taken as UTC. Returns None for blanks or
    unparseable input.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RegistrationField(BaseModel):
    """One organizer-defined question on the registration form"""
    model_config = _RECORD_CONFIG

    key: str = Field(min_length=1)
    label: str = Field(min_length=1)
    type: FieldType = FieldType.TEXT
    required: bool = False
    options: List[str] = Field(default_factory=list)

    @field_validator("options", mode="before")
    @classmethod
    def _none_options(cls, value):
        return value or []

    @model_validator(mode="after")
    def _select_needs_options(self):
        if self.type == FieldType.SELECT and not self.options:
            raise ValueError(f"select field '{self.key}' declares no options")
        return self


class BankDetails(BaseModel):
    """Manual bank-transfer instructions attached to a paid event"""
    model_config = _RECORD_CONFIG

    account_holder: str = ""
    bank_name: str = ""
    account_number: str = ""
    ifsc_code: str = ""
    upi_id: str = ""
    qr_code_url: Optional[str] = None
    qr_code_file_id: Optional[str] = None

    @property
    def has_account(self) -> bool:
        return bool(self.account_number)

    @property
    def has_qr_code(self) -> bool:
        return bool(self.qr_code_file_id or self.qr_code_url)


class Event(BaseModel):
    model_config = _RECORD_CONFIG

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    title: str
    description: str = ""
    date: str = ""
    time: str = ""
    location: str = ""
    max_attendees: int = 0
    current_attendees: int = 0
    registration_fee: float = 0
    registration_fields: List[RegistrationField] = Field(default_factory=list)
    bank_details: Optional[BankDetails] = None
    image_url: Optional[str] = None
    share_id: Optional[str] = None
    meet_link: Optional[str] = None
    requires_checkin: bool = True

    @field_validator("registration_fee", "max_attendees", "current_attendees", mode="before")
    @classmethod
    def _none_is_zero(cls, value):
        return 0 if value is None or value == "" else value

    @field_validator("registration_fields", mode="before")
    @classmethod
    def _none_fields(cls, value):
        return value or []

    @field_validator("description", "date", "time", "location", mode="before")
    @classmethod
    def _none_text(cls, value):
        return "" if value is None else value

    @field_validator("registration_fields")
    @classmethod
    def _unique_keys(cls, fields: List[RegistrationField]):
        keys = [f.key for f in fields]
        duplicates = {k for k in keys if keys.count(k) > 1}
        if duplicates:
            raise ValueError(f"duplicate registration field keys: {sorted(duplicates)}")
        return fields

    @property
    def has_fee(self) -> bool:
        return self.registration_fee > 0

    @property
    def is_full(self) -> bool:
        return self.current_attendees >= self.max_attendees

    @property
    def starts_at(self) -> Optional[datetime]:
        return parse_event_date(self.date)

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        starts_at = self.starts_at
        if starts_at is None:
            return False
        return starts_at > (now or datetime.now(timezone.utc))

    def field_by_key(self, key: str) -> Optional[RegistrationField]:
        for registration_field in self.registration_fields:
            if registration_field.key == key:
                return registration_field
        return None


class CreatedEvent(Event):
    """Create/update response; the backend may add a public share URL"""
    shareable_url: Optional[str] = Field(default=None, validation_alias=AliasChoices("shareableUrl", "shareable_url"))


class PaymentDetails(BaseModel):
    model_config = _RECORD_CONFIG

    transaction_id: str = ""
    amount: float = 0
    screenshot_url: Optional[str] = None


class Registration(BaseModel):
    model_config = _RECORD_CONFIG

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    event_id: Optional[str] = None
    full_name: str = ""
    email: str = ""
    status: RegistrationStatus = RegistrationStatus.REGISTERED
    registered_at: Optional[str] = None
    registration_data: Dict[str, Any] = Field(default_factory=dict)
    payment_verified: Optional[bool] = None
    payment_details: Optional[PaymentDetails] = None
    event: Optional[Event] = Field(default=None, validation_alias=AliasChoices("events", "event"))

    @field_validator("event_id", mode="before")
    @classmethod
    def _populated_event_id(cls, value):
        # Populated references arrive as the whole event document
        if isinstance(value, dict):
            return value.get("_id") or value.get("id")
        return value

    @field_validator("registration_data", mode="before")
    @classmethod
    def _none_data(cls, value):
        return value or {}

    @field_validator("full_name", "email", mode="before")
    @classmethod
    def _none_text(cls, value):
        return "" if value is None else value

    @model_validator(mode="after")
    def _event_id_from_embedded_event(self):
        if self.event_id is None and self.event is not None:
            self.event_id = self.event.id
        return self

    def refers_to(self, event_id: str) -> bool:
        return self.event_id == event_id or (self.event is not None and self.event.id == event_id)

    @property
    def effective_payment_details(self) -> Optional[PaymentDetails]:
        """Payment details, wherever the backend chose to store them"""
        if self.payment_details is not None:
            return self.payment_details
        nested = self.registration_data.get("payment_details")
        if isinstance(nested, dict):
            return PaymentDetails.model_validate(nested)
        return None


class AdminStats(BaseModel):
    model_config = _RECORD_CONFIG

    total_events: int = Field(default=0, validation_alias=AliasChoices("totalEvents", "total_events"))
    total_registrations: int = Field(default=0, validation_alias=AliasChoices("totalRegistrations", "total_registrations"))
    upcoming_events: int = Field(default=0, validation_alias=AliasChoices("upcomingEvents", "upcoming_events"))
    past_events: int = Field(default=0, validation_alias=AliasChoices("pastEvents", "past_events"))
