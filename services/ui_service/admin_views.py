"""
Organizer views: stats dashboard, event management, event form and
broadcast e-mails.
"""

from typing import List, Optional

import streamlit as st

from infrastructure.external.backend_client import ApiError, FilePart
from services.events_service.broadcasts import BroadcastMessage, send_broadcast
from services.events_service.event_catalog import SortKey, TimeFilter, filter_events, sort_events
from services.events_service.event_drafts import BANK_DETAIL_KEYS, DraftError, EventDraft, parse_options
from services.events_service.exports import export_filename, registrations_to_csv
from services.events_service.models import Event, FieldType
from services.ui_service.app_context import VIEW_STATE_PREFIX, AppContext, use_app_context
from services.ui_service.event_views import TIME_FILTER_LABELS, fetch, render_event_summary
from services.ui_service.navigation import navigate, query_param
from utils.logging_config import get_logger, log_user_interaction


MANAGE_EVENTS_PATH = "/admin/events"
EVENT_FORM_PATH = "/admin/create-event"

DRAFT_KEY = VIEW_STATE_PREFIX + "event_draft"
SHAREABLE_URL_KEY = VIEW_STATE_PREFIX + "shareable_url"
PENDING_DELETE_KEY = VIEW_STATE_PREFIX + "pending_delete"
FORM_WIDGET_PREFIXES = (VIEW_STATE_PREFIX + "form.", VIEW_STATE_PREFIX + "bank.", VIEW_STATE_PREFIX + "qr_code")

BANK_DETAIL_LABELS = {
    "account_holder": "Account holder",
    "account_number": "Account number",
    "ifsc_code": "IFSC code",
    "upi_id": "UPI ID",
    "bank_name": "Bank name",
}

logger = get_logger(__name__)


def _delete_event(context: AppContext, event: Event):
    try:
        context.client.delete_event(event.id)
    except ApiError as e:
        context.error_tracker.track_error(e, "delete_event", event_id=event.id)
        context.notifier.error(e.message or "Failed to delete event")
        return
    log_user_interaction(logger, "delete_event", event_id=event.id)
    context.notifier.success("Event deleted successfully")
    st.session_state.pop(PENDING_DELETE_KEY, None)
    st.rerun()


def _render_delete_control(context: AppContext, event: Event, key_prefix: str):
    """Delete button that asks for confirmation first"""
    if st.session_state.get(PENDING_DELETE_KEY) == event.id:
        st.warning("Are you sure you want to delete this event?")
        yes_col, no_col = st.columns(2)
        if yes_col.button("Yes, delete", key=f"{key_prefix}_confirm_{event.id}", type="primary"):
            _delete_event(context, event)
        if no_col.button("Keep it", key=f"{key_prefix}_cancel_{event.id}"):
            st.session_state.pop(PENDING_DELETE_KEY, None)
            st.rerun()
    elif st.button("🗑️ Delete", key=f"{key_prefix}_delete_{event.id}"):
        st.session_state[PENDING_DELETE_KEY] = event.id
        st.rerun()


def render_admin_dashboard():
    context = use_app_context()
    identity = context.session.identity
    st.header(f"Welcome back, {identity.display_name}")
    st.caption("Manage your events and track registrations")

    stats = fetch(context, "stats", context.client.get_admin_stats)
    if stats is not None:
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Total events", stats.total_events)
        col2.metric("Total registrations", stats.total_registrations)
        col3.metric("Upcoming events", stats.upcoming_events)
        col4.metric("Past events", stats.past_events)

    time_filter = st.selectbox("Show", list(TIME_FILTER_LABELS), format_func=TIME_FILTER_LABELS.get,
                               key=VIEW_STATE_PREFIX + "admin.filter")
    events = fetch(context, "events", context.client.get_events) or []
    for event in filter_events(events, time_filter=time_filter):
        with st.container(border=True):
            st.markdown(f"**{event.title}**")
            render_event_summary(context, event)
            _render_delete_control(context, event, "dashboard")

    if st.button("➕ Create event", type="primary"):
        navigate(EVENT_FORM_PATH)


@st.dialog("Registrations", width="large")
def _registrations_dialog(event: Event):
    context = use_app_context()
    st.markdown(f"### {event.title}")
    registrations = fetch(context, "registrations", context.client.get_event_registrations, event.id)
    if registrations is None:
        return
    if not registrations:
        st.info("No registrations yet.")
        return

    rows = []
    for registration in registrations:
        payment = registration.effective_payment_details
        row = {
            "Full Name": registration.full_name,
            "Email": registration.email,
            "Status": registration.status.value,
            "Payment verified": registration.payment_verified,
            "Transaction ID": payment.transaction_id if payment else None,
        }
        for registration_field in event.registration_fields:
            row[registration_field.label] = registration.registration_data.get(registration_field.key)
        rows.append(row)
    st.dataframe(rows, use_container_width=True, hide_index=True)

    st.download_button(
        "⬇️ Export CSV",
        data=registrations_to_csv(event, registrations),
        file_name=export_filename(event),
        mime="text/csv",
    )


def render_manage_events():
    context = use_app_context()
    st.header("Manage events")

    col1, col2 = st.columns([3, 1])
    with col1:
        sort_key = st.selectbox("Sort by", list(SortKey), format_func=lambda key: key.value.title(),
                                key=VIEW_STATE_PREFIX + "manage.sort")
    with col2:
        descending = st.toggle("Descending", key=VIEW_STATE_PREFIX + "manage.descending")

    events = fetch(context, "events", context.client.get_events)
    if events is None:
        return
    if not events:
        st.info("No events yet.")
    for event in sort_events(events, sort_key, descending):
        with st.container(border=True):
            st.markdown(f"### {event.title}")
            render_event_summary(context, event)
            if event.share_id:
                st.caption(f"🔗 Share link: `?page=/share/{event.share_id}`")
            view_col, edit_col, delete_col = st.columns(3)
            with view_col:
                if st.button("👥 Registrations", key=f"manage_view_{event.id}"):
                    _registrations_dialog(event)
            with edit_col:
                if st.button("✏️ Edit", key=f"manage_edit_{event.id}"):
                    st.session_state.pop(DRAFT_KEY, None)
                    navigate(EVENT_FORM_PATH, id=event.id)
            with delete_col:
                _render_delete_control(context, event, "manage")


def _clear_form_widgets():
    for key in [k for k in st.session_state.keys() if str(k).startswith(FORM_WIDGET_PREFIXES)]:
        del st.session_state[key]


def _load_draft(context: AppContext, event_id: Optional[str]) -> Optional[EventDraft]:
    draft: Optional[EventDraft] = st.session_state.get(DRAFT_KEY)
    draft_for = st.session_state.get(DRAFT_KEY + ".event_id")
    if draft is not None and draft_for == event_id:
        return draft

    if event_id:
        event = fetch(context, "event", context.client.get_event, event_id)
        if event is None:
            return None
        draft = EventDraft.from_event(event, file_url=context.config.api.file_url)
    else:
        draft = EventDraft()
    _clear_form_widgets()
    st.session_state[DRAFT_KEY] = draft
    st.session_state[DRAFT_KEY + ".event_id"] = event_id
    return draft


def _render_fields_editor(context: AppContext, draft: EventDraft):
    st.markdown("#### Registration fields")
    for registration_field in list(draft.registration_fields):
        col1, col2 = st.columns([4, 1])
        required = " (required)" if registration_field.required else ""
        col1.write(f"**{registration_field.label}** · `{registration_field.key}` · "
                   f"{registration_field.type.value}{required}")
        if col2.button("Remove", key=f"remove_field_{registration_field.key}"):
            draft.remove_field(registration_field.key)
            st.rerun()

    with st.form("new_field_form", clear_on_submit=True):
        col1, col2 = st.columns(2)
        key = col1.text_input("Field key", placeholder="e.g. company")
        label = col2.text_input("Field label", placeholder="e.g. Company name")
        col1, col2 = st.columns(2)
        field_type = col1.selectbox("Type", list(FieldType), format_func=lambda t: t.value)
        options = col2.text_input("Options (select only, comma separated)")
        required = st.checkbox("Required")
        if st.form_submit_button("➕ Add field"):
            try:
                draft.add_field(key, label, field_type, required, parse_options(options))
            except DraftError as e:
                context.notifier.error(str(e))
            st.rerun()


def _render_payment_editor(context: AppContext, draft: EventDraft):
    enabled = st.checkbox("Collect payment by bank transfer", value=draft.has_payment_details)
    draft.set_payment_enabled(enabled)
    if not enabled:
        return

    col1, col2 = st.columns(2)
    for index, name in enumerate(BANK_DETAIL_KEYS):
        column = col1 if index % 2 == 0 else col2
        draft.set_bank_detail(name, column.text_input(BANK_DETAIL_LABELS[name], value=draft.bank_details[name],
                                                      key=f"{VIEW_STATE_PREFIX}bank.{name}"))

    uploaded = st.file_uploader("Payment QR code", type=context.config.uploads.image_types,
                                key=VIEW_STATE_PREFIX + "qr_code")
    if uploaded is not None and (draft.qr_code is None or draft.qr_code.name != uploaded.name):
        try:
            draft.set_qr_code(FilePart.from_upload(uploaded))
        except DraftError as e:
            context.notifier.error(str(e))
    if draft.qr_code is not None:
        st.image(draft.qr_code.content, width=180)
    elif draft.qr_code_preview_url:
        st.image(draft.qr_code_preview_url, width=180)


def _render_shareable_url():
    shareable_url = st.session_state.get(SHAREABLE_URL_KEY)
    if not shareable_url:
        return False
    st.success("Shareable event URL")
    st.code(shareable_url, language=None)
    st.caption("Share this URL with users to let them register for this event directly.")
    if st.button("Done", type="primary"):
        st.session_state.pop(SHAREABLE_URL_KEY, None)
        navigate(MANAGE_EVENTS_PATH)
    return True


def render_event_form():
    context = use_app_context()
    event_id = query_param("id")
    st.header("Edit event" if event_id else "Create new event")

    if _render_shareable_url():
        return

    draft = _load_draft(context, event_id)
    if draft is None:
        context.notifier.error("Failed to load event")
        navigate(MANAGE_EVENTS_PATH)

    draft.title = st.text_input("Title *", value=draft.title, key=VIEW_STATE_PREFIX + "form.title")
    draft.description = st.text_area("Description *", value=draft.description,
                                     key=VIEW_STATE_PREFIX + "form.description")
    col1, col2 = st.columns(2)
    draft.date = col1.text_input("Date * (YYYY-MM-DD)", value=draft.date, key=VIEW_STATE_PREFIX + "form.date")
    draft.time = col2.text_input("Time *", value=draft.time, key=VIEW_STATE_PREFIX + "form.time")
    draft.location = st.text_input("Location *", value=draft.location, key=VIEW_STATE_PREFIX + "form.location")
    draft.meet_link = st.text_input("Online meeting link", value=draft.meet_link,
                                    key=VIEW_STATE_PREFIX + "form.meet_link")
    col1, col2 = st.columns(2)
    draft.max_attendees = int(col1.number_input("Max attendees *", min_value=1, step=1,
                                                value=draft.max_attendees,
                                                key=VIEW_STATE_PREFIX + "form.max_attendees"))
    fee = col2.number_input("Registration fee", min_value=0.0, value=float(draft.registration_fee or 0),
                            key=VIEW_STATE_PREFIX + "form.fee")
    draft.registration_fee = fee or None
    draft.requires_checkin = st.checkbox("Requires check-in", value=draft.requires_checkin,
                                         key=VIEW_STATE_PREFIX + "form.requires_checkin")

    _render_payment_editor(context, draft)
    _render_fields_editor(context, draft)

    st.divider()
    save_col, cancel_col = st.columns(2)
    if cancel_col.button("Cancel", use_container_width=True):
        st.session_state.pop(DRAFT_KEY, None)
        navigate(MANAGE_EVENTS_PATH)
    if save_col.button("💾 Save event", type="primary", use_container_width=True):
        try:
            with st.spinner("Saving event..."):
                saved = draft.save(context.client, event_id)
        except DraftError as e:
            context.notifier.error(str(e))
            return
        except ApiError as e:
            context.error_tracker.track_error(e, "save_event", event_id=event_id)
            context.notifier.error("Failed to save event")
            return

        context.notifier.success("Event updated successfully" if event_id else "Event created successfully")
        log_user_interaction(logger, "save_event", event_id=saved.id, created=not event_id)
        st.session_state.pop(DRAFT_KEY, None)
        if saved.shareable_url:
            st.session_state[SHAREABLE_URL_KEY] = saved.shareable_url
            st.rerun()
        navigate(MANAGE_EVENTS_PATH)


def _event_label(events: List[Event], event_id: str) -> str:
    for event in events:
        if event.id == event_id:
            return event.title
    return event_id


def render_send_messages():
    context = use_app_context()
    st.header("Send messages")
    st.caption("Send broadcast e-mails to everyone registered for an event.")

    events = fetch(context, "events", context.client.get_events)
    if events is None:
        return
    if not events:
        st.info("Create an event first.")
        return

    with st.form("broadcast_form", clear_on_submit=False):
        event_ids = [event.id for event in events]
        event_id = st.selectbox("Event", event_ids, index=None, placeholder="Select an event",
                                format_func=lambda value: _event_label(events, value))
        subject = st.text_input("Subject", placeholder="Enter email subject")
        message = st.text_area("Message", placeholder="Enter your message here...", height=200)
        include_details = st.checkbox("Include event details")

        if st.form_submit_button("✉️ Send", type="primary"):
            broadcast = BroadcastMessage(event_id, subject, message, include_details)
            try:
                with st.spinner("Sending..."):
                    send_broadcast(context.client, broadcast)
            except ValueError as e:
                context.notifier.error(str(e))
                return
            except ApiError as e:
                context.error_tracker.track_error(e, "broadcast_email", event_id=event_id)
                context.notifier.error("Failed to send broadcast email")
                return
            context.notifier.success("Broadcast email sent successfully")
