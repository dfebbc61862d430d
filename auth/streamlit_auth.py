"""
Streamlit authentication components: sign-in / sign-up page and sign-out
"""

import streamlit as st

from auth.route_guard import LOGIN_PATH, post_auth_destination
from infrastructure.external.backend_client import ApiError
from services.auth_service.models import Identity, Role
from services.ui_service.app_context import AppContext, use_app_context
from services.ui_service.navigation import navigate, take_share_redirect
from utils.logging_config import get_logger


ROLE_LABELS = {
    Role.USER: "🎫 Attendee",
    Role.ADMIN: "🛠️ Organizer",
}


class StreamlitAuth:
    """
    Streamlit authentication handler bound to one browser session's context
    """

    def __init__(self, context: AppContext):
        self.context = context
        self.session = context.session
        self.config = context.config
        self.logger = get_logger(__name__)

    def render_auth_page(self):
        """Render sign-in / sign-up tabs"""
        st.title(self.config.ui.app_title)
        st.caption(self.config.ui.tagline)

        login_tab, register_tab = st.tabs(["🔑 Sign In", "📝 Create Account"])

        with login_tab:
            self._render_login_tab()

        with register_tab:
            self._render_register_tab()

    def _render_login_tab(self):
        with st.form("login_form"):
            st.subheader("Sign In")

            email = st.text_input("📧 Email", placeholder="you@example.com")
            password = st.text_input("🔒 Password", type="password", placeholder="Enter your password")

            login_clicked = st.form_submit_button("🔑 Sign In", type="primary", use_container_width=True)

            if login_clicked:
                if not email or not password:
                    st.error("Please enter both email and password")
                    return
                with st.spinner("Signing in..."):
                    try:
                        identity = self.session.sign_in(email.strip(), password)
                    except ApiError as e:
                        self.context.error_tracker.track_error(e, "sign_in", status_code=e.status_code)
                        return
                self._complete(identity)

    def _render_register_tab(self):
        with st.form("register_form"):
            st.subheader("Create Account")

            col1, col2 = st.columns(2)

            with col1:
                full_name = st.text_input("👤 Full Name", placeholder="Your full name")

            with col2:
                email = st.text_input("📧 Email", placeholder="you@example.com", key="register_email")

            password = st.text_input("🔒 Password", type="password", placeholder="Choose a password",
                                     key="register_password")
            default_role = Role(self.config.auth.default_signup_role)
            roles = list(ROLE_LABELS)
            role = st.selectbox("Account type", roles, index=roles.index(default_role),
                                format_func=lambda r: ROLE_LABELS[r])

            register_clicked = st.form_submit_button("📝 Create Account", type="primary",
                                                     use_container_width=True)

            if register_clicked:
                if not all([full_name.strip(), email.strip(), password]):
                    st.error("All fields are required")
                    return
                with st.spinner("Creating account..."):
                    try:
                        identity = self.session.sign_up(email.strip(), password, full_name.strip(), role)
                    except ApiError as e:
                        self.context.error_tracker.track_error(e, "sign_up", status_code=e.status_code)
                        return
                self._complete(identity)

    def _complete(self, identity: Identity):
        destination = post_auth_destination(identity, take_share_redirect())
        self.logger.info(f"Authenticated, continuing to {destination}")
        navigate(destination)

    def sign_out(self):
        self.session.sign_out()
        navigate(LOGIN_PATH)


def get_auth() -> StreamlitAuth:
    """Authentication handler for the current browser session"""
    return StreamlitAuth(use_app_context())
