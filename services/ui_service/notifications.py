"""
Transient user notifications (toasts).

Notifications are queued rather than drawn immediately so that a message
raised just before ``st.rerun()`` is still shown on the next run.
"""

from dataclasses import dataclass
from typing import List

import streamlit as st

from utils.logging_config import get_logger


SUCCESS = "success"
ERROR = "error"
INFO = "info"

_ICONS = {SUCCESS: "✅", ERROR: "❌", INFO: "ℹ️"}


@dataclass(frozen=True)
class Notification:
    level: str
    message: str


class Notifier:
    """Collects notifications in memory; the base for UI-specific notifiers"""

    def __init__(self):
        self.logger = get_logger(__name__)
        self._queue: List[Notification] = []

    def _push(self, notification: Notification):
        self._queue.append(notification)

    def success(self, message: str):
        self._push(Notification(SUCCESS, message))

    def error(self, message: str):
        self.logger.debug(f"Error notification: {message}")
        self._push(Notification(ERROR, message))

    def info(self, message: str):
        self._push(Notification(INFO, message))

    def pending(self) -> List[Notification]:
        return list(self._queue)

    def drain(self) -> List[Notification]:
        drained = list(self._queue)
        self._queue.clear()
        return drained


class StreamlitNotifier(Notifier):
    """Notifier whose queue lives in ``st.session_state`` and renders as toasts"""

    QUEUE_KEY = "pending_notifications"

    def __init__(self):
        super().__init__()

    @property
    def _state_queue(self) -> List[Notification]:
        if self.QUEUE_KEY not in st.session_state:
            st.session_state[self.QUEUE_KEY] = []
        return st.session_state[self.QUEUE_KEY]

    def _push(self, notification: Notification):
        self._state_queue.append(notification)

    def pending(self) -> List[Notification]:
        return list(self._state_queue)

    def drain(self) -> List[Notification]:
        queue = self._state_queue
        drained = list(queue)
        queue.clear()
        return drained

    def render(self):
        """Show queued notifications; call once near the top of every run"""
        for notification in self.drain():
            st.toast(notification.message, icon=_ICONS.get(notification.level, "ℹ️"))
