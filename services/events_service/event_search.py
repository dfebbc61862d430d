"""
Search-as-you-type over the backend event list.
"""

from typing import List, Optional

from infrastructure.external.backend_client import ApiError, BackendClient
from infrastructure.scheduling.debounce import DebouncedTask
from services.events_service.models import Event
from utils.logging_config import get_logger


class EventSearch:
    """
    Debounced ``GET /events?q=`` whose latest result is kept on the instance

    Callbacks run on the timer thread and only assign attributes; callers
    read ``events``/``error`` from their own thread after ``search`` returns.
    """

    def __init__(self, client: BackendClient, delay: float = 0.3):
        self.client = client
        self.logger = get_logger(__name__)
        self.query: Optional[str] = None
        self.events: Optional[List[Event]] = None
        self.error: Optional[ApiError] = None
        self._task = DebouncedTask(client.get_events, delay,
                                   on_result=self._publish, on_error=self._fail)

    def _publish(self, events: List[Event]):
        self.events = events
        self.error = None

    def _fail(self, error: BaseException):
        self.error = error

    def search(self, query: str, timeout: Optional[float] = None) -> bool:
        """
        Schedule a fetch for ``query`` and wait for it

        Returns:
            False if the wait timed out or the call was superseded
        """
        query = (query or "").strip()
        if query == self.query and self.events is not None and self.error is None:
            return True
        self.query = query
        call = self._task.schedule(query)
        finished = call.wait(timeout)
        if isinstance(self.error, Exception) and not isinstance(self.error, ApiError):
            raise self.error
        return finished and call.published

    def refresh(self, timeout: Optional[float] = None) -> bool:
        """Fetch again for the current query, e.g. after registering"""
        query = self.query or ""
        self.query = None
        return self.search(query, timeout)

    def cancel(self):
        self._task.cancel()
