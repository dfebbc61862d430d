"""
Tests for event and registration records
"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from services.events_service.models import (
    AdminStats, Event, FieldType, Registration, RegistrationField, RegistrationStatus, parse_event_date
)


class TestParseEventDate:
    """Test backend date parsing"""

    def test_plain_date_is_utc_midnight(self):
        assert parse_event_date("2030-05-01") == datetime(2030, 5, 1, tzinfo=timezone.utc)

    def test_zulu_timestamp(self):
        parsed = parse_event_date("2030-05-01T18:30:00Z")

        assert parsed == datetime(2030, 5, 1, 18, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "next tuesday"])
    def test_unparseable(self, value):
        assert parse_event_date(value) is None


class TestRegistrationField:
    """Test custom field declarations"""

    def test_select_requires_options(self):
        with pytest.raises(ValidationError):
            RegistrationField(key="track", label="Track", type=FieldType.SELECT)

    def test_null_options(self):
        field = RegistrationField.model_validate({"key": "k", "label": "K", "options": None})

        assert field.options == []

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            RegistrationField.model_validate({"key": "k", "label": "K", "type": "checkbox"})


class TestEvent:
    """Test event records"""

    def test_mongo_id_alias(self, event_factory):
        assert event_factory(_id="abc").id == "abc"

    def test_nulls_become_defaults(self, event_factory):
        event = event_factory(registration_fee=None, description=None, registration_fields=None)

        assert event.registration_fee == 0
        assert event.description == ""
        assert event.registration_fields == []
        assert event.has_fee is False

    def test_fee(self, event_factory):
        assert event_factory(registration_fee=10).has_fee is True

    def test_is_full(self, event_factory):
        assert event_factory(max_attendees=10, current_attendees=10).is_full is True
        assert event_factory(max_attendees=10, current_attendees=9).is_full is False

    def test_is_upcoming(self, event_factory):
        now = datetime(2030, 1, 1, tzinfo=timezone.utc)

        assert event_factory(date="2030-05-01").is_upcoming(now) is True
        assert event_factory(date="2029-05-01").is_upcoming(now) is False
        assert event_factory(date="").is_upcoming(now) is False

    def test_duplicate_field_keys_rejected(self, event_factory):
        with pytest.raises(ValidationError):
            event_factory(registration_fields=[
                {"key": "a", "label": "A"}, {"key": "a", "label": "Again"},
            ])

    def test_field_by_key(self, free_event):
        assert free_event.field_by_key("age").type == FieldType.NUMBER
        assert free_event.field_by_key("missing") is None


class TestRegistration:
    """Test registration records"""

    def test_defaults(self):
        registration = Registration.model_validate({"_id": "r1"})

        assert registration.status == RegistrationStatus.REGISTERED
        assert registration.registration_data == {}
        assert registration.event_id is None

    def test_embedded_event_supplies_event_id(self):
        registration = Registration.model_validate({"_id": "r1", "events": {"_id": "e1", "title": "One"}})

        assert registration.event_id == "e1"
        assert registration.event.title == "One"
        assert registration.refers_to("e1")
        assert not registration.refers_to("e2")

    def test_payment_details_from_registration_data(self):
        registration = Registration.model_validate({
            "_id": "r1",
            "registration_data": {"payment_details": {"transaction_id": "TXN", "amount": 10}},
        })

        assert registration.effective_payment_details.transaction_id == "TXN"

    def test_top_level_payment_details_win(self):
        registration = Registration.model_validate({
            "_id": "r1",
            "payment_details": {"transaction_id": "TOP"},
            "registration_data": {"payment_details": {"transaction_id": "NESTED"}},
        })

        assert registration.effective_payment_details.transaction_id == "TOP"

    def test_no_payment_details(self):
        assert Registration.model_validate({"_id": "r1"}).effective_payment_details is None


class TestAdminStats:
    """Test the dashboard counters"""

    def test_snake_case_keys(self):
        stats = AdminStats.model_validate({"total_events": 2, "past_events": 1})

        assert stats.total_events == 2
        assert stats.past_events == 1
        assert stats.upcoming_events == 0
