"""
Public and attendee views: landing page, shared event, dashboard, browse
and registrations.
"""

from typing import Callable, List, Optional, TypeVar

import streamlit as st

from auth.route_guard import BROWSE_EVENTS_PATH, LOGIN_PATH, role_home
from infrastructure.external.backend_client import ApiError
from services.events_service.event_catalog import (
    TimeFilter,
    count_registrations,
    filter_events,
    filter_registrations,
    find_event,
    is_registered,
    upcoming_events,
)
from services.events_service.event_search import EventSearch
from services.events_service.models import Event, Registration
from services.registration_service.answers import answer_text, update_answers
from services.ui_service.app_context import VIEW_STATE_PREFIX, AppContext, use_app_context
from services.ui_service.navigation import navigate, query_param, remember_share_redirect
from services.ui_service.registration_dialog import REGISTERED_FLAG_KEY, open_registration_dialog
from utils.logging_config import get_logger, log_user_interaction


SEARCH_KEY = VIEW_STATE_PREFIX + "browse.search"
TIME_FILTER_LABELS = {
    TimeFilter.ALL: "All events",
    TimeFilter.UPCOMING: "Upcoming",
    TimeFilter.PAST: "Past",
}

logger = get_logger(__name__)

T = TypeVar("T")


def fetch(context: AppContext, what: str, func: Callable[..., T], *args) -> Optional[T]:
    """Run a backend read, showing and tracking failures instead of raising"""
    try:
        return func(*args)
    except ApiError as e:
        context.error_tracker.track_error(e, f"load_{what}", status_code=e.status_code)
        st.error(f"Failed to load {what}: {e.message}")
        return None


def format_money(context: AppContext, amount: float) -> str:
    return f"{context.config.ui.currency_symbol}{amount:g}"


def render_event_summary(context: AppContext, event: Event):
    starts_at = event.starts_at
    when = starts_at.strftime("%d %b %Y") if starts_at else (event.date or "Date to be announced")
    details = [f"📅 {when}"]
    if event.time:
        details.append(f"🕒 {event.time}")
    if event.location:
        details.append(f"📍 {event.location}")
    details.append(f"👥 {event.current_attendees} / {event.max_attendees} spots")
    if event.has_fee:
        details.append(f"💳 {format_money(context, event.registration_fee)}")
    st.caption("  ·  ".join(details))


# Public

def render_landing():
    context = use_app_context()
    identity = context.session.identity

    st.title(context.config.ui.app_title)
    st.subheader(context.config.ui.tagline)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.markdown("**📅 Event management**  \nCreate events, set dates and locations, track attendance.")
    with col2:
        st.markdown("**📝 Simple registration**  \nCustom questions and bank-transfer payments.")
    with col3:
        st.markdown("**🔗 Share links**  \nSend one link and let attendees sign up directly.")

    st.divider()
    if identity is not None:
        if st.button("➡️ Go to dashboard", type="primary"):
            navigate(role_home(identity.role))
    elif st.button("🔑 Sign in or create an account", type="primary"):
        navigate(LOGIN_PATH)


def render_shared_event(share_id: str):
    """Public event page reached through a share link"""
    context = use_app_context()
    event = fetch(context, "event", context.client.get_event_by_share_id, share_id)
    if event is None:
        st.warning("This event could not be found. The link may have expired.")
        if st.button("Go to homepage"):
            navigate("/")
        return

    identity = context.session.identity
    if identity is not None:
        log_user_interaction(logger, "shared_event_redirect", share_id=share_id, event_id=event.id)
        context.notifier.info("You're being redirected to register for this event")
        navigate(BROWSE_EVENTS_PATH, event=event.id)

    st.title(event.title)
    render_event_summary(context, event)
    if event.image_url:
        st.image(event.image_url, use_container_width=True)
    st.write(event.description)

    st.info("Please sign in to register for this event.")
    if st.button("🔑 Sign in to register", type="primary"):
        remember_share_redirect(share_id)
        navigate(LOGIN_PATH)


# Attendee

def render_user_dashboard():
    context = use_app_context()
    identity = context.session.identity
    st.header(f"Welcome back, {identity.display_name}!")

    events = fetch(context, "events", context.client.get_events) or []
    registrations = fetch(context, "registrations", context.client.get_registrations) or []

    col1, col2, col3 = st.columns(3)
    col1.metric("My registrations", len(registrations))
    col2.metric("Upcoming registrations", count_registrations(registrations, TimeFilter.UPCOMING))
    col3.metric("Available events", len(upcoming_events(events)))

    st.subheader("Recent events")
    for event in upcoming_events(events)[:3]:
        with st.container(border=True):
            st.markdown(f"**{event.title}**")
            render_event_summary(context, event)

    st.subheader("My recent registrations")
    recent = filter_registrations(registrations)[:3]
    if not recent:
        st.caption("You have not registered for any events yet.")
    for registration in recent:
        with st.container(border=True):
            st.markdown(f"**{registration.event.title}**")
            render_event_summary(context, registration.event)

    if st.button("🔍 Browse events"):
        navigate(BROWSE_EVENTS_PATH)


def _event_search(context: AppContext) -> EventSearch:
    if SEARCH_KEY not in st.session_state:
        st.session_state[SEARCH_KEY] = EventSearch(context.client, context.config.search.debounce_seconds)
    return st.session_state[SEARCH_KEY]


def _register_button(event: Event, registered: bool):
    if registered:
        st.button("✅ Registered", key=f"register_{event.id}", disabled=True)
    elif event.is_full:
        st.button("Event full", key=f"register_{event.id}", disabled=True)
    elif st.button("📝 Register", key=f"register_{event.id}", type="primary"):
        log_user_interaction(logger, "open_registration", event_id=event.id)
        open_registration_dialog(event)


def render_browse_events():
    context = use_app_context()
    st.header("Browse events")

    search = _event_search(context)
    if st.session_state.pop(REGISTERED_FLAG_KEY, None):
        search.refresh(context.config.search.wait_timeout_seconds)

    col1, col2 = st.columns([3, 1])
    with col1:
        query = st.text_input("🔍 Search", placeholder="Search by title or location",
                              key=VIEW_STATE_PREFIX + "browse.query")
    with col2:
        time_filter = st.selectbox("When", list(TIME_FILTER_LABELS), format_func=TIME_FILTER_LABELS.get,
                                   key=VIEW_STATE_PREFIX + "browse.filter")

    with st.spinner("Loading events..."):
        search.search(query, context.config.search.wait_timeout_seconds)
    if search.error is not None:
        context.error_tracker.track_error(search.error, "browse_events")
        st.error(f"Failed to load events: {search.error.message}")
    events: List[Event] = search.events or []

    registrations = fetch(context, "registrations", context.client.get_registrations) or []

    preselected = find_event(events, query_param("event"))
    if preselected is not None:
        st.query_params.pop("event", None)
        if not is_registered(registrations, preselected.id) and not preselected.is_full:
            open_registration_dialog(preselected)

    visible = filter_events(events, query, time_filter)
    if not visible:
        st.info("No events found. Try adjusting your search or filter settings.")
        return

    for event in visible:
        with st.container(border=True):
            st.markdown(f"### {event.title}")
            render_event_summary(context, event)
            if event.description:
                st.write(event.description)
            _register_button(event, is_registered(registrations, event.id))


def _render_answers_editor(context: AppContext, registration: Registration):
    event = registration.event
    if event is None or not event.registration_fields:
        return
    with st.expander("✏️ Edit my answers"):
        with st.form(f"answers_{registration.id}"):
            changes: dict = {}
            for registration_field in event.registration_fields:
                if registration_field.options:
                    current = registration.registration_data.get(registration_field.key)
                    options = registration_field.options
                    changes[registration_field.key] = st.selectbox(
                        registration_field.label, options,
                        index=options.index(current) if current in options else None,
                    )
                else:
                    changes[registration_field.key] = st.text_input(
                        registration_field.label, value=answer_text(registration, registration_field.key),
                    )
            if st.form_submit_button("💾 Save answers"):
                try:
                    update_answers(context.client, event, registration, changes)
                except ValueError as e:
                    st.error(str(e))
                    return
                except ApiError as e:
                    context.error_tracker.track_error(e, "update_registration", status_code=e.status_code)
                    context.notifier.error(e.message or "Failed to save registration")
                    return
                context.notifier.success("Registration updated successfully!")
                st.rerun()


def render_user_registrations():
    context = use_app_context()
    st.header("My registrations")

    registrations = fetch(context, "registrations", context.client.get_registrations) or []

    col1, col2, col3 = st.columns(3)
    col1.metric("Total", len(registrations))
    col2.metric("Upcoming", count_registrations(registrations, TimeFilter.UPCOMING))
    col3.metric("Past", count_registrations(registrations, TimeFilter.PAST))

    col1, col2 = st.columns([3, 1])
    with col1:
        query = st.text_input("🔍 Search", placeholder="Search by title or location",
                              key=VIEW_STATE_PREFIX + "registrations.query")
    with col2:
        time_filter = st.selectbox("When", list(TIME_FILTER_LABELS), format_func=TIME_FILTER_LABELS.get,
                                   key=VIEW_STATE_PREFIX + "registrations.filter")

    visible = filter_registrations(registrations, query, time_filter)
    if not visible:
        st.info("No registrations found. Try adjusting your search or filter settings.")
        return

    for registration in visible:
        event = registration.event
        with st.container(border=True):
            st.markdown(f"### {event.title}")
            render_event_summary(context, event)
            st.write(f"Status: **{registration.status.value.replace('_', ' ').title()}**")
            if event.meet_link:
                st.markdown(f"[🔗 Join online]({event.meet_link})")
            payment = registration.effective_payment_details
            if payment is not None:
                verified = "✅ Verified" if registration.payment_verified else "⏳ Pending verification"
                st.caption(f"Payment {format_money(context, payment.amount)} · "
                           f"Transaction {payment.transaction_id or 'N/A'} · {verified}")
            _render_answers_editor(context, registration)
