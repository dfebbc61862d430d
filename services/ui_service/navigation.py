"""
Query-parameter routing and the signed-in chrome (header and sidebar).

The current view is ``?page=<path>``; extra parameters (``id``, ``event``)
travel alongside it.
"""

from typing import Dict, List, Optional

import streamlit as st

from auth.route_guard import LANDING_PATH
from services.auth_service.models import Identity, Role
from services.ui_service.app_context import use_app_context
from utils.logging_config import get_logger, log_user_interaction


PAGE_PARAM = "page"
PENDING_SHARE_KEY = "pending_share_id"

logger = get_logger(__name__)


def current_path() -> str:
    return st.query_params.get(PAGE_PARAM, LANDING_PATH) or LANDING_PATH


def query_param(name: str) -> Optional[str]:
    return st.query_params.get(name)


def navigate(path: str, **params: str):
    """Switch view and rerun; parameters of the previous view are dropped"""
    st.query_params.clear()
    st.query_params[PAGE_PARAM] = path
    for name, value in params.items():
        if value is not None:
            st.query_params[name] = value
    st.rerun()


def remember_share_redirect(share_id: str):
    st.session_state[PENDING_SHARE_KEY] = share_id


def take_share_redirect() -> Optional[str]:
    return st.session_state.pop(PENDING_SHARE_KEY, None)


def navigation_items(role: Role, admin_items: List[Dict[str, str]],
                     user_items: List[Dict[str, str]]) -> List[Dict[str, str]]:
    return admin_items if role == Role.ADMIN else user_items


def render_chrome(identity: Identity, path: str, on_sign_out):
    """Header plus role-appropriate sidebar navigation"""
    config = use_app_context().config
    st.title(config.ui.app_title)

    with st.sidebar:
        st.markdown(f"### {'🛠️ Organizer' if identity.is_admin else '🎫 Attendee'}")
        items = navigation_items(identity.role, config.ui.admin_navigation, config.ui.user_navigation)
        for item in items:
            is_current = item["path"] == path
            if st.button(item["label"], key=f"nav_{item['path']}", use_container_width=True,
                         type="primary" if is_current else "secondary"):
                log_user_interaction(logger, "navigate", target=item["path"])
                navigate(item["path"])

        st.divider()
        st.write(f"**{identity.display_name}**")
        st.caption(identity.email)
        if st.button("🚪 Sign out", key="nav_sign_out", use_container_width=True):
            on_sign_out()
