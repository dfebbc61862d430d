"""
Tests for attendee answer validation
"""

import pytest

from services.events_service.models import FieldType, RegistrationField
from services.registration_service.field_validation import (
    coerce_value, collect_answers, is_blank, validate_answers, validate_field
)


AGE = RegistrationField(key="age", label="Age", type=FieldType.NUMBER)
TRACK = RegistrationField(key="track", label="Track", type=FieldType.SELECT,
                          required=True, options=["web", "data"])
COMPANY = RegistrationField(key="company", label="Company", required=True)
PHONE = RegistrationField(key="phone", label="Phone", type=FieldType.TEL)


class TestBlank:
    """Test what counts as an empty answer"""

    @pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
    def test_blank(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", ["x", 0, 0.0, False])
    def test_not_blank(self, value):
        assert not is_blank(value)


class TestCoerceValue:
    """Test widget input normalization"""

    def test_integer_text(self):
        assert coerce_value(AGE, " 42 ") == 42

    def test_float_text(self):
        assert coerce_value(AGE, "4.5") == 4.5

    def test_blank_number_becomes_empty(self):
        assert coerce_value(AGE, "  ") == ""

    def test_unparseable_number_is_kept(self):
        assert coerce_value(AGE, "forty") == "forty"

    def test_non_finite_number_is_kept_raw(self):
        assert coerce_value(AGE, "inf") == "inf"

    def test_numbers_pass_through(self):
        assert coerce_value(AGE, 7) == 7

    def test_text_fields_untouched(self):
        assert coerce_value(COMPANY, " 42 ") == " 42 "


class TestValidateField:
    """Test single-answer checks"""

    def test_required_missing(self):
        assert validate_field(COMPANY, " ") == "Company is required"

    def test_optional_missing(self):
        assert validate_field(AGE, None) is None

    def test_number_must_be_numeric(self):
        assert validate_field(AGE, "forty") == "Age must be a number"
        assert validate_field(AGE, True) == "Age must be a number"
        assert validate_field(AGE, 30) is None

    def test_zero_is_a_valid_answer(self):
        assert validate_field(AGE, 0) is None

    def test_select_must_be_an_option(self):
        assert validate_field(TRACK, "web") is None
        assert validate_field(TRACK, "mobile") == "Track must be one of: web, data"

    def test_text_rejects_structured_values(self):
        assert validate_field(PHONE, ["555"]) == "Phone has an invalid value"
        assert validate_field(PHONE, "555-0100") is None


class TestValidateAnswers:
    """Test whole-form validation"""

    def test_errors_in_field_order(self):
        errors = validate_answers([COMPANY, AGE, TRACK], {"age": "x"})

        assert errors == ["Company is required", "Age must be a number", "Track is required"]

    def test_valid_answers(self):
        assert validate_answers([COMPANY, TRACK], {"company": "ACME", "track": "data"}) == []


class TestCollectAnswers:
    """Test payload assembly"""

    def test_only_declared_non_blank_keys(self):
        values = {"company": "ACME", "age": "", "extra": "ignored", "track": "web"}

        assert collect_answers([COMPANY, AGE, TRACK], values) == {"company": "ACME", "track": "web"}

    def test_zero_is_kept(self):
        assert collect_answers([AGE], {"age": 0}) == {"age": 0}
