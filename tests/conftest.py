"""
Shared fixtures: a gateway wired to a mocked requests session and sample records
"""

import json
from unittest.mock import Mock

import pytest
import requests

from infrastructure.external.backend_client import BackendClient
from services.events_service.models import Event
from services.ui_service.notifications import Notifier


BASE_URL = "http://backend.test/api"


def make_response(status_code=200, payload=None, text=None):
    """Build a real requests.Response with the given status and body"""
    response = requests.Response()
    response.status_code = status_code
    if text is None:
        text = "" if payload is None else json.dumps(payload)
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    response.url = BASE_URL
    return response


@pytest.fixture
def http():
    """Mocked requests.Session; set ``http.request.return_value`` per test"""
    session = Mock(spec=requests.Session)
    session.request.return_value = make_response(200, {})
    return session


@pytest.fixture
def client(http):
    return BackendClient(base_url=BASE_URL, session=http)


@pytest.fixture
def notifier():
    return Notifier()


def event_payload(**overrides):
    payload = {
        "_id": "evt-1",
        "title": "Python Meetup",
        "description": "Monthly talks",
        "date": "2030-05-01",
        "time": "18:00",
        "location": "Berlin",
        "max_attendees": 50,
        "current_attendees": 10,
        "registration_fee": 0,
        "registration_fields": [],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def free_event():
    return Event.model_validate(event_payload(registration_fields=[
        {"key": "company", "label": "Company", "type": "text", "required": True},
        {"key": "age", "label": "Age", "type": "number", "required": False},
        {"key": "track", "label": "Track", "type": "select", "required": True,
         "options": ["web", "data"]},
    ]))


@pytest.fixture
def paid_event():
    return Event.model_validate(event_payload(
        _id="evt-2",
        title="Data Conf",
        registration_fee=499,
        registration_fields=[{"key": "company", "label": "Company", "type": "text", "required": True}],
        bank_details={
            "account_holder": "Data Conf Ltd",
            "bank_name": "Example Bank",
            "account_number": "000123",
            "ifsc_code": "EXMP0001",
            "upi_id": "dataconf@upi",
            "qr_code_file_id": "qr-1",
        },
    ))


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def event_factory():
    """Build Event records from the sample payload plus overrides"""
    return lambda **overrides: Event.model_validate(event_payload(**overrides))
