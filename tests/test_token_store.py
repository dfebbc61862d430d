"""
Tests for credential storage
"""

import json
from unittest.mock import Mock

import pytest

from auth.session_store import SessionStore
from infrastructure.storage.token_store import CookieTokenStore, FileTokenStore, MemoryTokenStore
from services.auth_service.models import AuthResult, Identity, Role


class TestMemoryTokenStore:
    """Test the in-process store"""

    def test_empty(self):
        assert MemoryTokenStore().load() is None

    def test_initial_value(self):
        assert MemoryTokenStore("token", initial="tok").load() == "tok"

    def test_save_and_clear(self):
        store = MemoryTokenStore()

        store.save("tok")
        assert store.load() == "tok"

        store.clear()
        assert store.load() is None


class TestFileTokenStore:
    """Test the file-backed store"""

    def test_missing_file(self, tmp_path):
        assert FileTokenStore(str(tmp_path / "creds.json")).load() is None

    def test_survives_new_instance(self, tmp_path):
        path = str(tmp_path / "nested" / "creds.json")

        FileTokenStore(path).save("tok-1")

        assert FileTokenStore(path).load() == "tok-1"

    def test_clear(self, tmp_path):
        path = str(tmp_path / "creds.json")
        store = FileTokenStore(path)
        store.save("tok-1")

        store.clear()

        assert store.load() is None
        assert json.loads((tmp_path / "creds.json").read_text()) == {}

    def test_clear_without_file_creates_nothing(self, tmp_path):
        FileTokenStore(str(tmp_path / "creds.json")).clear()

        assert not (tmp_path / "creds.json").exists()

    def test_other_keys_are_preserved(self, tmp_path):
        path = str(tmp_path / "creds.json")
        FileTokenStore(path, storage_key="other").save("keep-me")
        store = FileTokenStore(path)

        store.save("tok-1")
        store.clear()

        assert FileTokenStore(path, storage_key="other").load() == "keep-me"

    def test_unreadable_file_is_ignored(self, tmp_path):
        path = tmp_path / "creds.json"
        path.write_text("{not json")
        store = FileTokenStore(str(path))

        assert store.load() is None

        store.save("tok-1")
        assert store.load() == "tok-1"

    def test_non_string_value_is_ignored(self, tmp_path):
        path = tmp_path / "creds.json"
        path.write_text(json.dumps({"token": 123}))

        assert FileTokenStore(str(path)).load() is None


class FakeCookieController:
    """Browser cookie jar behind the cookie component"""

    def __init__(self, jar):
        self.jar = jar
        self.set_calls = []

    def set(self, name, value, max_age=None):
        self.set_calls.append((name, value, max_age))
        self.jar[name] = value

    def remove(self, name):
        self.jar.pop(name, None)


@pytest.fixture
def jar():
    return {}


def cookie_store(jar):
    # Each new store sees the cookies as a freshly opened browser session sends them
    sent = dict(jar)
    return CookieTokenStore("token", max_age_days=2, request_cookies=lambda: sent,
                            controller_factory=lambda: FakeCookieController(jar))


class TestCookieTokenStore:
    """Test the browser cookie store"""

    def test_reads_request_cookie(self, jar):
        jar["token"] = "tok-1"

        assert cookie_store(jar).load() == "tok-1"

    def test_missing_or_empty_cookie(self, jar):
        assert cookie_store(jar).load() is None

        jar["token"] = ""
        assert cookie_store(jar).load() is None

    def test_request_cookies_read_once(self):
        request_cookies = Mock(return_value={"token": "tok-1"})
        store = CookieTokenStore(request_cookies=request_cookies, controller_factory=Mock())

        store.load()
        store.load()

        request_cookies.assert_called_once()

    def test_save_is_written_on_sync(self, jar):
        store = cookie_store(jar)

        store.save("tok-1")
        assert store.load() == "tok-1"
        assert jar == {}

        store.sync()
        assert jar == {"token": "tok-1"}

    def test_cookie_max_age(self, jar):
        controller = FakeCookieController(jar)
        store = CookieTokenStore("token", max_age_days=2, request_cookies=dict,
                                 controller_factory=lambda: controller)

        store.save("tok-1")
        store.sync()

        assert controller.set_calls == [("token", "tok-1", 2 * 24 * 60 * 60)]

    def test_clear_removes_cookie_on_sync(self, jar):
        jar["token"] = "tok-1"
        store = cookie_store(jar)

        store.clear()
        assert store.load() is None

        store.sync()
        assert "token" not in jar

    def test_sync_writes_only_once(self, jar):
        controller = FakeCookieController(jar)
        store = CookieTokenStore(request_cookies=dict, controller_factory=lambda: controller)
        store.save("tok-1")

        store.sync()
        store.sync()

        assert len(controller.set_calls) == 1

    def test_sync_mounts_component_without_pending_change(self):
        controller_factory = Mock()
        store = CookieTokenStore(request_cookies=dict, controller_factory=controller_factory)

        store.sync()

        controller_factory.assert_called_once()
        controller_factory.return_value.set.assert_not_called()
        controller_factory.return_value.remove.assert_not_called()


class TestCookieSessionRestore:
    """Test that a signed-in browser keeps its identity across reloads"""

    USER = Identity(id="u1", email="user@example.com", full_name="Uma", role=Role.USER)

    def gateway(self):
        gateway = Mock()
        gateway.login.return_value = AuthResult(token="tok-9", user=self.USER)
        gateway.get_current_user.return_value = self.USER
        return gateway

    def test_reload_restores_identity(self, jar, notifier):
        first = SessionStore(self.gateway(), cookie_store(jar), notifier)
        first.initialize()
        first.sign_in("user@example.com", "secret")
        first.token_store.sync()

        gateway = self.gateway()
        reloaded = SessionStore(gateway, cookie_store(jar), notifier)
        reloaded.initialize()

        gateway.set_token.assert_called_once_with("tok-9")
        assert reloaded.identity == self.USER

    def test_reload_after_sign_out_is_anonymous(self, jar, notifier):
        first = SessionStore(self.gateway(), cookie_store(jar), notifier)
        first.initialize()
        first.sign_in("user@example.com", "secret")
        first.token_store.sync()
        first.sign_out()
        first.token_store.sync()

        gateway = self.gateway()
        reloaded = SessionStore(gateway, cookie_store(jar), notifier)
        reloaded.initialize()

        assert reloaded.identity is None
        gateway.get_current_user.assert_not_called()
