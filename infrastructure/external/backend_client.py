"""
REST backend adapter for the application.
Every call to the event backend goes through BackendClient.request, which
attaches the bearer credential, encodes the body and normalizes failures.
"""

import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from config.app_config import get_config
from services.auth_service.models import AuthResult, Identity
from services.events_service.models import AdminStats, CreatedEvent, Event, Registration
from utils.logging_config import get_logger, log_api_call

ModelT = TypeVar("ModelT", bound=BaseModel)

GENERIC_ERROR_MESSAGE = "Request failed"
UNREACHABLE_MESSAGE = "Unable to reach the server. Check your connection and try again."
MALFORMED_MESSAGE = "The server sent an unexpected response"


class ApiError(Exception):
    """Backend call failed; ``message`` is safe to show to the user"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401


class BackendUnavailableError(ApiError):
    """The request never got an HTTP response (DNS, refused connection, reset)"""
    pass


class ResponseValidationError(ApiError):
    """The backend answered 2xx but the body did not match the expected record"""
    pass


@dataclass
class FilePart:
    """A file attached to a multipart request"""
    name: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_image(self) -> bool:
        return (self.content_type or "").startswith("image/")

    @classmethod
    def from_upload(cls, uploaded) -> 'FilePart':
        """Build from a Streamlit ``UploadedFile``"""
        return cls(name=uploaded.name, content=uploaded.getvalue(), content_type=uploaded.type or "")


@dataclass
class MultipartBody:
    """Form fields plus file parts; the transport sets the boundary header"""
    fields: Dict[str, str] = field(default_factory=dict)
    files: Dict[str, FilePart] = field(default_factory=dict)

    def to_requests_files(self) -> Dict[str, tuple]:
        return {
            part_name: (part.name, part.content, part.content_type)
            for part_name, part in self.files.items()
        }


Body = Union[Dict[str, Any], List[Any], MultipartBody]


class BackendClient:
    """
    Thin HTTP client for the event backend.
    One attempt per call: no retries, no backoff.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or get_config().api.base_url).rstrip("/")
        self.token = token
        self._session = session or requests.Session()
        self.logger = get_logger(__name__)

    # Credential attachment (persistence belongs to the session store)

    def set_token(self, token: str):
        self.token = token

    def clear_token(self):
        self.token = None

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    def _build_headers(self, body: Optional[Body], headers: Optional[Dict[str, str]],
                       authenticated: bool) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        if not isinstance(body, MultipartBody):
            merged["Content-Type"] = "application/json"
        if authenticated and self.token:
            merged["Authorization"] = f"Bearer {self.token}"
        if headers:
            merged.update(headers)
        return merged

    def request(self, endpoint: str, method: str = "GET", body: Optional[Body] = None,
                headers: Optional[Dict[str, str]] = None, params: Optional[Dict[str, str]] = None,
                authenticated: bool = True) -> Any:
        """
        Issue one request and return the parsed JSON body ({} when empty)

        Raises:
            BackendUnavailableError: no HTTP response was received
            ApiError: non-2xx status; message taken from the body's ``error`` field
            ResponseValidationError: 2xx with a body that is not JSON
        """
        url = f"{self.base_url}{endpoint}"
        request_kwargs: Dict[str, Any] = {
            "headers": self._build_headers(body, headers, authenticated),
        }
        if params:
            request_kwargs["params"] = params
        if isinstance(body, MultipartBody):
            request_kwargs["data"] = body.fields
            request_kwargs["files"] = body.to_requests_files()
        elif body is not None:
            request_kwargs["data"] = json.dumps(body)

        started = time.monotonic()
        try:
            response = self._session.request(method, url, **request_kwargs)
        except requests.RequestException as e:
            log_api_call(self.logger, method, endpoint, None, error=str(e))
            raise BackendUnavailableError(UNREACHABLE_MESSAGE) from e

        log_api_call(self.logger, method, endpoint, response.status_code,
                     duration_seconds=round(time.monotonic() - started, 3))

        if not response.ok:
            raise ApiError(self._error_message(response), response.status_code)

        text = response.text
        if not text:
            return {}
        try:
            return json.loads(text)
        except ValueError as e:
            raise ResponseValidationError(MALFORMED_MESSAGE, response.status_code) from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return GENERIC_ERROR_MESSAGE
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return GENERIC_ERROR_MESSAGE

    def _parse(self, model: Type[ModelT], payload: Any, endpoint: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            self.logger.error(f"Malformed {model.__name__} from {endpoint}: {e}")
            raise ResponseValidationError(MALFORMED_MESSAGE) from e

    def _parse_list(self, model: Type[ModelT], payload: Any, endpoint: str, wrapper_key: str) -> List[ModelT]:
        # Some backend versions wrap collections: {"events": [...]}
        if isinstance(payload, dict) and wrapper_key in payload:
            payload = payload[wrapper_key]
        try:
            return TypeAdapter(List[model]).validate_python(payload)
        except ValidationError as e:
            self.logger.error(f"Malformed {model.__name__} list from {endpoint}: {e}")
            raise ResponseValidationError(MALFORMED_MESSAGE) from e

    # Auth

    def register(self, email: str, password: str, full_name: str, role: str) -> AuthResult:
        payload = self.request("/auth/register", method="POST", body={
            "email": email, "password": password, "fullName": full_name, "role": role,
        })
        return self._parse(AuthResult, payload, "/auth/register")

    def login(self, email: str, password: str) -> AuthResult:
        payload = self.request("/auth/login", method="POST", body={"email": email, "password": password})
        return self._parse(AuthResult, payload, "/auth/login")

    def get_current_user(self) -> Identity:
        return self._parse(Identity, self.request("/auth/me"), "/auth/me")

    # Events

    def get_events(self, search_query: str = "") -> List[Event]:
        params = {"q": search_query} if search_query else None
        return self._parse_list(Event, self.request("/events", params=params), "/events", "events")

    def get_event(self, event_id: str) -> Event:
        endpoint = f"/events/{event_id}"
        return self._parse(Event, self.request(endpoint), endpoint)

    def get_event_by_share_id(self, share_id: str) -> Event:
        endpoint = f"/public/events/{share_id}"
        return self._parse(Event, self.request(endpoint, authenticated=False), endpoint)

    def create_event(self, body: Body) -> CreatedEvent:
        return self._parse(CreatedEvent, self.request("/events", method="POST", body=body), "/events")

    def update_event(self, event_id: str, body: Body) -> CreatedEvent:
        endpoint = f"/events/{event_id}"
        return self._parse(CreatedEvent, self.request(endpoint, method="PUT", body=body), endpoint)

    def delete_event(self, event_id: str):
        self.request(f"/events/{event_id}", method="DELETE")

    # Registrations

    def get_registrations(self) -> List[Registration]:
        return self._parse_list(Registration, self.request("/registrations"), "/registrations", "registrations")

    def get_event_registrations(self, event_id: str) -> List[Registration]:
        endpoint = f"/events/{event_id}/registrations"
        return self._parse_list(Registration, self.request(endpoint), endpoint, "registrations")

    def register_for_event(self, registration_data: Dict[str, Any],
                           payment_screenshot: Optional[FilePart] = None) -> Registration:
        """JSON body, or multipart (``data`` + ``payment_screenshot``) when a screenshot is attached"""
        if payment_screenshot is not None:
            body: Body = MultipartBody(
                fields={"data": json.dumps(registration_data)},
                files={"payment_screenshot": payment_screenshot},
            )
        else:
            body = registration_data
        payload = self.request("/registrations", method="POST", body=body)
        return self._parse(Registration, payload, "/registrations")

    def update_registration(self, registration_id: str, registration_data: Dict[str, Any]) -> Registration:
        endpoint = f"/registrations/{registration_id}"
        payload = self.request(endpoint, method="PUT", body={"registration_data": registration_data})
        return self._parse(Registration, payload, endpoint)

    # Admin

    def get_admin_stats(self) -> AdminStats:
        return self._parse(AdminStats, self.request("/admin/stats"), "/admin/stats")

    def broadcast_email(self, event_id: str, subject: str, message: str,
                        include_event_details: bool = False) -> Dict[str, Any]:
        return self.request(f"/events/{event_id}/broadcast", method="POST", body={
            "subject": subject,
            "message": message,
            "includeEventDetails": include_event_details,
        })
