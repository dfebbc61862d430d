"""
Application context: the objects one browser session shares across views.

The entry script calls ``provide_app_context()`` once per run; views read
what they need with ``use_app_context()`` / ``use_session()`` instead of
reaching for module-level globals.
"""

from dataclasses import dataclass
from typing import Optional

import streamlit as st

from auth.session_store import SessionStore
from config.app_config import AppConfig, get_config
from infrastructure.external.backend_client import BackendClient
from infrastructure.storage.token_store import (
    CookieTokenStore, FileTokenStore, MemoryTokenStore, TokenStore
)
from services.ui_service.notifications import Notifier, StreamlitNotifier
from utils.logging_config import ErrorTracker, get_error_tracker, get_logger


APP_CONTEXT_KEY = "app_context"

# Session-state keys starting with this prefix hold per-user view state
VIEW_STATE_PREFIX = "view."

logger = get_logger(__name__)


@dataclass
class AppContext:
    config: AppConfig
    client: BackendClient
    session: SessionStore
    notifier: Notifier
    error_tracker: ErrorTracker


def create_token_store(config: AppConfig) -> TokenStore:
    if config.auth.token_storage == "cookie":
        return CookieTokenStore(config.auth.token_storage_key, config.auth.cookie_max_age_days)
    if config.auth.token_storage == "file":
        return FileTokenStore(config.auth.token_store_path, config.auth.token_storage_key)
    return MemoryTokenStore(config.auth.token_storage_key)


def build_app_context(config: Optional[AppConfig] = None, notifier: Optional[Notifier] = None,
                      token_store: Optional[TokenStore] = None,
                      client: Optional[BackendClient] = None) -> AppContext:
    """Wire the gateway, credential store and session store together"""
    config = config or get_config()
    notifier = notifier or Notifier()
    client = client or BackendClient(base_url=config.api.base_url)
    token_store = token_store or create_token_store(config)
    session = SessionStore(client, token_store, notifier)
    return AppContext(
        config=config,
        client=client,
        session=session,
        notifier=notifier,
        error_tracker=get_error_tracker(),
    )


def clear_view_state():
    """Drop per-user view state, e.g. after the signed-in identity changed"""
    for key in [k for k in st.session_state.keys() if str(k).startswith(VIEW_STATE_PREFIX)]:
        del st.session_state[key]


def provide_app_context() -> AppContext:
    """Create the context for this browser session on first use, then reuse it"""
    if APP_CONTEXT_KEY not in st.session_state:
        context = build_app_context(notifier=StreamlitNotifier())
        context.session.subscribe(lambda identity: clear_view_state())
        st.session_state[APP_CONTEXT_KEY] = context
        logger.info("Application context created", extra={
            "environment": context.config.environment,
            "token_storage": context.config.auth.token_storage,
        })
    return st.session_state[APP_CONTEXT_KEY]


def use_app_context() -> AppContext:
    context = st.session_state.get(APP_CONTEXT_KEY)
    if context is None:
        raise RuntimeError("Application context is not available; call provide_app_context() first")
    return context


def use_session() -> SessionStore:
    return use_app_context().session
