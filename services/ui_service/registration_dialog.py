"""
Streamlit rendering of the registration wizard.
"""

from datetime import date
from typing import Any, Optional

import streamlit as st

from infrastructure.external.backend_client import FilePart
from services.events_service.models import Event, FieldType, RegistrationField
from services.registration_service.wizard import RegistrationWizard, WizardStep
from services.ui_service.app_context import VIEW_STATE_PREFIX, AppContext, use_app_context
from services.ui_service.notifications import StreamlitNotifier


WIZARD_KEY = VIEW_STATE_PREFIX + "wizard"
REGISTERED_FLAG_KEY = VIEW_STATE_PREFIX + "registered"

STEP_TITLES = {
    WizardStep.DETAILS: "Your details",
    WizardStep.PAYMENT: "Payment",
    WizardStep.VERIFICATION: "Payment verification",
}


def flush_notifications(context: AppContext):
    if isinstance(context.notifier, StreamlitNotifier):
        context.notifier.render()


def get_wizard(context: AppContext, event: Event) -> RegistrationWizard:
    """Wizard for ``event``; a wizard for another event is discarded"""
    wizard: Optional[RegistrationWizard] = st.session_state.get(WIZARD_KEY)
    if wizard is None or wizard.event.id != event.id:
        wizard = RegistrationWizard(
            event,
            context.client,
            context.notifier,
            on_complete=lambda registration: st.session_state.update({REGISTERED_FLAG_KEY: event.id}),
            max_screenshot_bytes=context.config.uploads.max_screenshot_bytes,
        )
        st.session_state[WIZARD_KEY] = wizard
    return wizard


def close_wizard():
    st.session_state.pop(WIZARD_KEY, None)


def _field_widget(registration_field: RegistrationField, current: Any, widget_key: str) -> Any:
    label = f"{registration_field.label}{' *' if registration_field.required else ''}"

    if registration_field.type == FieldType.SELECT:
        options = registration_field.options
        index = options.index(current) if current in options else None
        return st.selectbox(label, options, index=index, key=widget_key, placeholder="Select an option")

    if registration_field.type == FieldType.NUMBER:
        value = current if isinstance(current, (int, float)) else None
        return st.number_input(label, value=value, key=widget_key)

    if registration_field.type == FieldType.DATE:
        try:
            value = date.fromisoformat(current) if current else None
        except ValueError:
            value = None
        picked = st.date_input(label, value=value, key=widget_key)
        return picked.isoformat() if picked else ""

    return st.text_input(label, value=current or "", key=widget_key)


def _render_details(wizard: RegistrationWizard):
    for registration_field in wizard.event.registration_fields:
        value = _field_widget(
            registration_field,
            wizard.values.get(registration_field.key),
            f"{VIEW_STATE_PREFIX}field.{wizard.event.id}.{registration_field.key}",
        )
        wizard.set_value(registration_field.key, value)
    if not wizard.event.registration_fields:
        st.info("No additional information is needed for this event.")


def _render_payment(context: AppContext, wizard: RegistrationWizard):
    event = wizard.event
    st.metric("Registration fee", f"{context.config.ui.currency_symbol}{event.registration_fee:g}")

    bank = event.bank_details
    if bank is None:
        st.warning("The organizer has not published payment details yet.")
        return

    if bank.has_account:
        st.markdown(
            f"**Account holder:** {bank.account_holder}  \n"
            f"**Bank:** {bank.bank_name}  \n"
            f"**Account number:** {bank.account_number}  \n"
            f"**IFSC:** {bank.ifsc_code}"
        )
    if bank.upi_id:
        st.markdown(f"**UPI ID:** {bank.upi_id}")
    if bank.qr_code_file_id:
        st.image(context.config.api.file_url(bank.qr_code_file_id), caption="Scan to pay", width=220)
    elif bank.qr_code_url:
        st.image(bank.qr_code_url, caption="Scan to pay", width=220)


def _render_verification(context: AppContext, wizard: RegistrationWizard):
    transaction_id = st.text_input("Transaction ID *", value=wizard.transaction_id,
                                   key=f"{VIEW_STATE_PREFIX}transaction.{wizard.event.id}")
    wizard.set_transaction_id(transaction_id)

    uploaded = st.file_uploader(
        f"Payment screenshot * (max {context.config.uploads.max_screenshot_mb}MB)",
        type=context.config.uploads.image_types,
        key=f"{VIEW_STATE_PREFIX}screenshot.{wizard.event.id}",
    )
    if uploaded is not None:
        wizard.offer_screenshot(FilePart.from_upload(uploaded))

    if wizard.screenshot is not None:
        st.caption(f"📎 {wizard.screenshot.name}")


def render_wizard(event: Event):
    """Body of the registration dialog"""
    context = use_app_context()
    wizard = get_wizard(context, event)

    if wizard.step == WizardStep.COMPLETED:
        close_wizard()
        st.rerun()

    steps = wizard.steps
    position = steps.index(wizard.step)
    if len(steps) > 1:
        st.progress((position + 1) / len(steps), text=f"Step {position + 1} of {len(steps)}")
    st.subheader(STEP_TITLES[wizard.step])

    if wizard.step == WizardStep.DETAILS:
        _render_details(wizard)
    elif wizard.step == WizardStep.PAYMENT:
        _render_payment(context, wizard)
    else:
        _render_verification(context, wizard)

    back_col, next_col = st.columns(2)
    with back_col:
        if wizard.step == WizardStep.DETAILS:
            if st.button("Cancel", use_container_width=True):
                close_wizard()
                st.rerun()
        elif st.button("⬅️ Back", use_container_width=True):
            wizard.back()
            st.rerun(scope="fragment")

    with next_col:
        if wizard.is_submit_step:
            submit_label = "✅ Submit registration" if wizard.is_paid else "✅ Register"
            disabled = not wizard.can_submit
        else:
            submit_label = "Next ➡️"
            disabled = wizard.in_flight
        if st.button(submit_label, type="primary", disabled=disabled, use_container_width=True):
            with st.spinner("Submitting registration..."):
                moved = wizard.next()
            if moved and wizard.step == WizardStep.COMPLETED:
                close_wizard()
                st.rerun()
            elif moved:
                st.rerun(scope="fragment")

    flush_notifications(context)


@st.dialog("Register for event", width="large")
def open_registration_dialog(event: Event):
    st.markdown(f"### {event.title}")
    render_wizard(event)
