import streamlit as st

from auth.route_guard import RouteAction, decide, match_route, share_id_from_path
from auth.streamlit_auth import get_auth
from config.app_config import get_config
from services.ui_service import admin_views, event_views
from services.ui_service.app_context import provide_app_context
from services.ui_service.navigation import current_path, navigate, render_chrome
from services.ui_service.registration_dialog import flush_notifications
from utils.logging_config import get_logger, initialize_logging, log_execution_time

# Initialize logging and error tracking
error_tracker = initialize_logging()
logger = get_logger(__name__)

# Get configuration
config = get_config()

st.set_page_config(page_title=config.ui.app_title, page_icon="🎟️", layout="wide")

VIEWS = {
    "landing": event_views.render_landing,
    "user_dashboard": event_views.render_user_dashboard,
    "user_registrations": event_views.render_user_registrations,
    "browse_events": event_views.render_browse_events,
    "admin_dashboard": admin_views.render_admin_dashboard,
    "manage_events": admin_views.render_manage_events,
    "event_form": admin_views.render_event_form,
    "send_messages": admin_views.render_send_messages,
}


def render_page(path: str):
    """Resolve the requested path through the route guard and draw it"""
    context = provide_app_context()
    session = context.session

    if session.loading:
        with st.spinner("Loading..."):
            with log_execution_time(logger, "session_restore"):
                session.initialize()

    decision = decide(path, session.identity, session.loading)
    if decision.action == RouteAction.WAIT:
        return
    if decision.action == RouteAction.REDIRECT:
        logger.debug(f"Redirecting {path} -> {decision.target}")
        navigate(decision.target)

    route = match_route(path)
    auth = get_auth()

    if decision.with_chrome:
        render_chrome(session.identity, path, auth.sign_out)

    if route.view == "auth":
        auth.render_auth_page()
    elif route.view == "shared_event":
        event_views.render_shared_event(share_id_from_path(path))
    else:
        VIEWS[route.view]()


render_page(current_path())

# Toasts and credential writes queued before an st.rerun() stay queued until a run completes
context = provide_app_context()
flush_notifications(context)
context.session.token_store.sync()
