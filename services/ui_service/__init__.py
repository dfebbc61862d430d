"""
UI service - Streamlit views, navigation, notifications and the app context.
"""

from .notifications import Notifier, StreamlitNotifier, Notification

# Lazy import to avoid circular dependency with auth.session_store
def use_app_context():
    from .app_context import use_app_context as _use_app_context
    return _use_app_context()

def use_session():
    from .app_context import use_session as _use_session
    return _use_session()

__all__ = [
    'Notifier',
    'StreamlitNotifier',
    'Notification',
    'use_app_context',
    'use_session'
]
