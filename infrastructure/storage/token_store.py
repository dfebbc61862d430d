"""
Durable storage for the session credential.

The credential is a single string kept under a fixed key. The cookie store
keeps it in the visitor's browser so it survives page reloads; the file-backed
store survives restarts of the app for single-user local runs; the in-memory
store is used when no durable location is wanted (tests).
"""

import json
import os
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import streamlit as st

from utils.logging_config import get_logger


class TokenStore:
    """Key/value storage for the bearer credential"""

    def __init__(self, storage_key: str = "token"):
        self.storage_key = storage_key

    def load(self) -> Optional[str]:
        raise NotImplementedError

    def save(self, token: str):
        raise NotImplementedError

    def clear(self):
        raise NotImplementedError

    def sync(self):
        """Push pending changes to where the credential lives (called once per run)"""


class MemoryTokenStore(TokenStore):
    """Credential kept for the lifetime of the process only"""

    def __init__(self, storage_key: str = "token", initial: Optional[str] = None):
        super().__init__(storage_key)
        self._values: Dict[str, str] = {}
        if initial:
            self._values[storage_key] = initial

    def load(self) -> Optional[str]:
        return self._values.get(self.storage_key)

    def save(self, token: str):
        self._values[self.storage_key] = token

    def clear(self):
        self._values.pop(self.storage_key, None)


class FileTokenStore(TokenStore):
    """
    Credential persisted in a small JSON document.

    Other keys in the same document are preserved, so several stores (e.g.
    one per backend) can share a file.
    """

    def __init__(self, path: str, storage_key: str = "token"):
        super().__init__(storage_key)
        self.path = Path(path)
        self.logger = get_logger(__name__)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning(f"Ignoring unreadable credential file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle)
        os.replace(tmp_path, self.path)
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            # Not supported on every filesystem
            pass

    def load(self) -> Optional[str]:
        with self._lock:
            value = self._read().get(self.storage_key)
        return value if isinstance(value, str) and value else None

    def save(self, token: str):
        with self._lock:
            data = self._read()
            data[self.storage_key] = token
            self._write(data)
        self.logger.debug(f"Credential stored under '{self.storage_key}'")

    def clear(self):
        with self._lock:
            data = self._read()
            if self.storage_key not in data:
                return
            del data[self.storage_key]
            self._write(data)
        self.logger.debug(f"Credential '{self.storage_key}' cleared")


COOKIE_COMPONENT_KEY = "event_portal_cookies"


def _request_cookies() -> Mapping[str, str]:
    return st.context.cookies


def _cookie_controller() -> Any:
    from streamlit_cookies_controller import CookieController
    return CookieController(key=COOKIE_COMPONENT_KEY)


class CookieTokenStore(TokenStore):
    """
    Credential kept in a browser cookie.

    Reads use the cookies the browser sent when the session was opened, so a
    reload restores the credential on the very first run. Writes go through a
    cookie component and are queued until sync(), which the app calls at the
    end of a run that is not cut short by st.rerun().
    """

    def __init__(self, storage_key: str = "token", max_age_days: int = 7,
                 request_cookies: Callable[[], Mapping[str, str]] = _request_cookies,
                 controller_factory: Callable[[], Any] = _cookie_controller):
        super().__init__(storage_key)
        self.max_age_seconds = max_age_days * 24 * 60 * 60
        self._request_cookies = request_cookies
        self._controller_factory = controller_factory
        self._value: Optional[str] = None
        self._known = False
        self._pending: Optional[Tuple[str, Optional[str]]] = None
        self.logger = get_logger(__name__)

    def load(self) -> Optional[str]:
        if not self._known:
            value = self._request_cookies().get(self.storage_key)
            self._value = value if isinstance(value, str) and value else None
            self._known = True
        return self._value

    def save(self, token: str):
        self._value = token
        self._known = True
        self._pending = ("set", token)

    def clear(self):
        self._value = None
        self._known = True
        self._pending = ("remove", None)

    def sync(self):
        controller = self._controller_factory()
        if self._pending is None:
            return
        action, token = self._pending
        if action == "set":
            controller.set(self.storage_key, token, max_age=self.max_age_seconds)
            self.logger.debug(f"Credential cookie '{self.storage_key}' set")
        else:
            controller.remove(self.storage_key)
            self.logger.debug(f"Credential cookie '{self.storage_key}' removed")
        self._pending = None
