"""
Tests for the REST backend gateway
"""

import json

import pytest
import requests

from infrastructure.external.backend_client import (
    ApiError, BackendClient, BackendUnavailableError, FilePart, MultipartBody,
    ResponseValidationError, GENERIC_ERROR_MESSAGE, UNREACHABLE_MESSAGE
)
from services.auth_service.models import Role
from services.events_service.models import CreatedEvent, Registration


def sent(http):
    """(method, url, kwargs) of the last request"""
    args, kwargs = http.request.call_args
    return args[0], args[1], kwargs


class TestRequest:
    """Test the generic request path"""

    def test_json_body_and_headers(self, client, http):
        client.request("/things", method="POST", body={"a": 1})

        method, url, kwargs = sent(http)
        assert method == "POST"
        assert url == "http://backend.test/api/things"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert json.loads(kwargs["data"]) == {"a": 1}
        assert "files" not in kwargs

    def test_bearer_header_when_token_attached(self, client, http):
        client.set_token("tok-123")
        client.request("/things")

        _, _, kwargs = sent(http)
        assert kwargs["headers"]["Authorization"] == "Bearer tok-123"

    def test_no_bearer_header_without_token(self, client, http):
        client.request("/things")

        _, _, kwargs = sent(http)
        assert "Authorization" not in kwargs["headers"]

    def test_unauthenticated_request_skips_token(self, client, http):
        client.set_token("tok-123")
        client.request("/public/things", authenticated=False)

        _, _, kwargs = sent(http)
        assert "Authorization" not in kwargs["headers"]

    def test_cleared_token_is_not_sent(self, client, http):
        client.set_token("tok-123")
        client.clear_token()
        client.request("/things")

        _, _, kwargs = sent(http)
        assert "Authorization" not in kwargs["headers"]
        assert client.has_token is False

    def test_multipart_leaves_content_type_to_transport(self, client, http):
        body = MultipartBody(
            fields={"data": "{}"},
            files={"upload": FilePart("a.png", b"png-bytes", "image/png")},
        )
        client.request("/uploads", method="POST", body=body)

        _, _, kwargs = sent(http)
        assert "Content-Type" not in kwargs["headers"]
        assert kwargs["data"] == {"data": "{}"}
        assert kwargs["files"] == {"upload": ("a.png", b"png-bytes", "image/png")}

    def test_custom_headers_are_merged(self, client, http):
        client.request("/things", headers={"X-Trace": "1"})

        _, _, kwargs = sent(http)
        assert kwargs["headers"]["X-Trace"] == "1"
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_empty_body_returns_empty_dict(self, client, http, response_factory):
        http.request.return_value = response_factory(204)

        assert client.request("/things", method="DELETE") == {}

    def test_error_message_from_body(self, client, http, response_factory):
        http.request.return_value = response_factory(400, {"error": "Event is full"})

        with pytest.raises(ApiError) as exc_info:
            client.request("/things")

        assert exc_info.value.message == "Event is full"
        assert exc_info.value.status_code == 400

    def test_error_without_json_body(self, client, http, response_factory):
        http.request.return_value = response_factory(500, text="<html>oops</html>")

        with pytest.raises(ApiError) as exc_info:
            client.request("/things")

        assert exc_info.value.message == GENERIC_ERROR_MESSAGE
        assert exc_info.value.status_code == 500

    def test_unauthorized_flag(self, client, http, response_factory):
        http.request.return_value = response_factory(401, {"error": "Invalid token"})

        with pytest.raises(ApiError) as exc_info:
            client.request("/auth/me")

        assert exc_info.value.is_unauthorized

    def test_transport_failure(self, client, http):
        http.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(BackendUnavailableError) as exc_info:
            client.request("/things")

        assert exc_info.value.message == UNREACHABLE_MESSAGE
        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value, ApiError)

    def test_success_with_non_json_body(self, client, http, response_factory):
        http.request.return_value = response_factory(200, text="not json")

        with pytest.raises(ResponseValidationError):
            client.request("/things")

    def test_single_attempt(self, client, http, response_factory):
        http.request.return_value = response_factory(503, {"error": "busy"})

        with pytest.raises(ApiError):
            client.request("/things")

        assert http.request.call_count == 1


class TestAuthEndpoints:
    """Test login/register/me"""

    def test_login(self, client, http, response_factory):
        http.request.return_value = response_factory(200, {
            "token": "tok-1",
            "user": {"_id": 7, "email": "a@example.com", "full_name": "Ada", "role": "admin"},
        })

        result = client.login("a@example.com", "secret")

        method, url, kwargs = sent(http)
        assert (method, url) == ("POST", "http://backend.test/api/auth/login")
        assert json.loads(kwargs["data"]) == {"email": "a@example.com", "password": "secret"}
        assert result.token == "tok-1"
        assert result.user.id == "7"
        assert result.user.role == Role.ADMIN

    def test_register_sends_camel_case_name(self, client, http, response_factory):
        http.request.return_value = response_factory(201, {
            "token": "tok-2",
            "user": {"id": "u2", "email": "b@example.com", "fullName": "Bo", "role": "user"},
        })

        result = client.register("b@example.com", "pw", "Bo", "user")

        _, url, kwargs = sent(http)
        assert url.endswith("/auth/register")
        assert json.loads(kwargs["data"]) == {
            "email": "b@example.com", "password": "pw", "fullName": "Bo", "role": "user",
        }
        assert result.user.full_name == "Bo"

    def test_malformed_login_response(self, client, http, response_factory):
        http.request.return_value = response_factory(200, {"token": "", "user": {}})

        with pytest.raises(ResponseValidationError):
            client.login("a@example.com", "secret")

    def test_unknown_role_is_rejected(self, client, http, response_factory):
        http.request.return_value = response_factory(200, {
            "_id": "u1", "email": "a@example.com", "role": "superuser",
        })

        with pytest.raises(ResponseValidationError):
            client.get_current_user()


class TestEventEndpoints:
    """Test event endpoints"""

    def test_get_events_with_query(self, client, http, response_factory):
        http.request.return_value = response_factory(200, [
            {"_id": "e1", "title": "One"}, {"_id": "e2", "title": "Two"},
        ])

        events = client.get_events("py")

        _, url, kwargs = sent(http)
        assert url.endswith("/events")
        assert kwargs["params"] == {"q": "py"}
        assert [e.id for e in events] == ["e1", "e2"]

    def test_get_events_without_query_sends_no_params(self, client, http, response_factory):
        http.request.return_value = response_factory(200, [])

        client.get_events()

        _, _, kwargs = sent(http)
        assert "params" not in kwargs

    def test_get_events_wrapped_collection(self, client, http, response_factory):
        http.request.return_value = response_factory(200, {"events": [{"_id": "e1", "title": "One"}]})

        assert [e.id for e in client.get_events()] == ["e1"]

    def test_get_event_by_share_id_is_public(self, client, http, response_factory):
        client.set_token("tok")
        http.request.return_value = response_factory(200, {"_id": "e1", "title": "One", "share_id": "abc"})

        event = client.get_event_by_share_id("abc")

        _, url, kwargs = sent(http)
        assert url.endswith("/public/events/abc")
        assert "Authorization" not in kwargs["headers"]
        assert event.share_id == "abc"

    def test_create_event_returns_shareable_url(self, client, http, response_factory):
        http.request.return_value = response_factory(201, {
            "_id": "e9", "title": "New", "shareableUrl": "https://app.example.com/share/xyz",
        })

        created = client.create_event({"title": "New"})

        assert isinstance(created, CreatedEvent)
        assert created.shareable_url == "https://app.example.com/share/xyz"

    def test_update_and_delete_paths(self, client, http, response_factory):
        http.request.return_value = response_factory(200, {"_id": "e1", "title": "Renamed"})
        client.update_event("e1", {"title": "Renamed"})
        assert sent(http)[:2] == ("PUT", "http://backend.test/api/events/e1")

        http.request.return_value = response_factory(204)
        client.delete_event("e1")
        assert sent(http)[:2] == ("DELETE", "http://backend.test/api/events/e1")


class TestRegistrationEndpoints:
    """Test registration endpoints"""

    def test_register_for_event_json(self, client, http, response_factory):
        http.request.return_value = response_factory(201, {"_id": "r1", "event_id": "e1"})

        registration = client.register_for_event({"event_id": "e1", "payment_verified": True})

        _, url, kwargs = sent(http)
        assert url.endswith("/registrations")
        assert json.loads(kwargs["data"]) == {"event_id": "e1", "payment_verified": True}
        assert isinstance(registration, Registration)

    def test_register_for_event_multipart(self, client, http, response_factory):
        http.request.return_value = response_factory(201, {"_id": "r1", "event_id": "e1"})
        screenshot = FilePart("pay.png", b"\x89PNG", "image/png")

        client.register_for_event({"event_id": "e1", "payment_verified": False}, screenshot)

        _, _, kwargs = sent(http)
        assert json.loads(kwargs["data"]["data"]) == {"event_id": "e1", "payment_verified": False}
        assert kwargs["files"] == {"payment_screenshot": ("pay.png", b"\x89PNG", "image/png")}
        assert "Content-Type" not in kwargs["headers"]

    def test_registrations_normalise_event_reference(self, client, http, response_factory):
        http.request.return_value = response_factory(200, [
            {"_id": "r1", "event_id": {"_id": "e1", "title": "One"}},
            {"_id": "r2", "events": {"_id": "e2", "title": "Two"}},
        ])

        registrations = client.get_registrations()

        assert [r.event_id for r in registrations] == ["e1", "e2"]

    def test_update_registration_wraps_data(self, client, http, response_factory):
        http.request.return_value = response_factory(200, {"_id": "r1"})

        client.update_registration("r1", {"company": "ACME"})

        method, url, kwargs = sent(http)
        assert (method, url) == ("PUT", "http://backend.test/api/registrations/r1")
        assert json.loads(kwargs["data"]) == {"registration_data": {"company": "ACME"}}


class TestAdminEndpoints:
    """Test admin endpoints"""

    def test_admin_stats(self, client, http, response_factory):
        http.request.return_value = response_factory(200, {
            "totalEvents": 4, "totalRegistrations": 30, "upcomingEvents": 3, "pastEvents": 1,
        })

        stats = client.get_admin_stats()

        assert stats.total_events == 4
        assert stats.total_registrations == 30
        assert stats.upcoming_events == 3
        assert stats.past_events == 1

    def test_broadcast_email(self, client, http, response_factory):
        http.request.return_value = response_factory(200, {"sent": 12})

        result = client.broadcast_email("e1", "Hello", "See you", include_event_details=True)

        _, url, kwargs = sent(http)
        assert url.endswith("/events/e1/broadcast")
        assert json.loads(kwargs["data"]) == {
            "subject": "Hello", "message": "See you", "includeEventDetails": True,
        }
        assert result == {"sent": 12}


class TestFilePart:
    """Test upload helpers"""

    def test_is_image(self):
        assert FilePart("a.png", b"", "image/png").is_image
        assert not FilePart("a.pdf", b"", "application/pdf").is_image
        assert not FilePart("a", b"", "").is_image

    def test_from_upload(self):
        class Uploaded:
            name = "shot.jpg"
            type = "image/jpeg"

            def getvalue(self):
                return b"jpeg"

        part = FilePart.from_upload(Uploaded())

        assert part == FilePart("shot.jpg", b"jpeg", "image/jpeg")
        assert part.size == 4


class TestClientConfiguration:
    """Test gateway construction"""

    def test_default_base_url_from_config(self, monkeypatch):
        monkeypatch.setenv("EVENT_API_BASE_URL", "https://api.example.com/api/")
        from config.app_config import reload_config
        reload_config()
        try:
            assert BackendClient().base_url == "https://api.example.com/api"
        finally:
            monkeypatch.delenv("EVENT_API_BASE_URL")
            reload_config()
