"""
Session store: the single source of truth for who is signed in.

The store owns the persisted credential and the identity fetched with it.
It is created once per browser session by the app context provider and
read everywhere else through ``use_session()``.
"""

from enum import Enum
from typing import Callable, List, Optional, Union

from infrastructure.external.backend_client import ApiError, BackendClient
from infrastructure.storage.token_store import TokenStore
from services.auth_service.models import AuthResult, Identity, Role
from services.ui_service.notifications import Notifier
from utils.logging_config import get_logger, log_session_event


class SessionState(Enum):
    LOADING = "loading"
    ANONYMOUS = "anonymous"
    AUTHENTICATED_USER = "authenticated-user"
    AUTHENTICATED_ADMIN = "authenticated-admin"


SessionListener = Callable[[Optional[Identity]], None]


class SessionStore:
    """
    Holds the current identity and the loading flag.

    ``loading`` is true only until ``initialize()`` finishes; sign-in and
    sign-out never touch it (callers keep their own pending flags).
    """

    def __init__(self, client: BackendClient, token_store: TokenStore, notifier: Notifier):
        self.client = client
        self.token_store = token_store
        self.notifier = notifier
        self.logger = get_logger(__name__)
        self.identity: Optional[Identity] = None
        self.loading = True
        self._initialized = False
        self._listeners: List[SessionListener] = []

    @property
    def state(self) -> SessionState:
        if self.loading:
            return SessionState.LOADING
        if self.identity is None:
            return SessionState.ANONYMOUS
        if self.identity.role == Role.ADMIN:
            return SessionState.AUTHENTICATED_ADMIN
        return SessionState.AUTHENTICATED_USER

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    def subscribe(self, listener: SessionListener):
        """Register a callback invoked with the new identity whenever it changes"""
        self._listeners.append(listener)

    def _set_identity(self, identity: Optional[Identity]):
        self.identity = identity
        for listener in list(self._listeners):
            listener(identity)

    def initialize(self):
        """Restore the session from the persisted credential; runs once"""
        if self._initialized:
            return
        try:
            token = self.token_store.load()
            if not token:
                return
            self.client.set_token(token)
            try:
                identity = self.client.get_current_user()
            except ApiError as e:
                self.logger.warning(f"Stored credential rejected: {e.message}", extra={
                    "status_code": e.status_code,
                })
                self.token_store.clear()
                self.client.clear_token()
                return
            self._set_identity(identity)
            log_session_event(self.logger, "restored", identity.id, role=identity.role.value)
        finally:
            self.loading = False
            self._initialized = True

    def _establish(self, result: AuthResult):
        self.token_store.save(result.token)
        self.client.set_token(result.token)
        self._set_identity(result.user)

    def sign_in(self, email: str, password: str) -> Identity:
        """
        Sign in with e-mail and password

        Raises:
            ApiError: after notifying the user; any prior session is kept
        """
        try:
            result = self.client.login(email, password)
        except ApiError as e:
            self.notifier.error(e.message or "Failed to sign in")
            raise
        self._establish(result)
        log_session_event(self.logger, "signed_in", result.user.id, role=result.user.role.value)
        self.notifier.success("Successfully signed in!")
        return result.user

    def sign_up(self, email: str, password: str, full_name: str, role: Union[Role, str]) -> Identity:
        """
        Create an account and sign in with it

        Raises:
            ValueError: role is neither admin nor user
            ApiError: after notifying the user; any prior session is kept
        """
        role = Role(role)
        try:
            result = self.client.register(email, password, full_name, role.value)
        except ApiError as e:
            self.notifier.error(e.message or "Failed to create account")
            raise
        self._establish(result)
        log_session_event(self.logger, "signed_up", result.user.id, role=result.user.role.value)
        self.notifier.success("Account created successfully!")
        return result.user

    def sign_out(self):
        previous = self.identity
        self.token_store.clear()
        self.client.clear_token()
        self._set_identity(None)
        log_session_event(self.logger, "signed_out", previous.id if previous else None)
        self.notifier.success("Successfully signed out!")
