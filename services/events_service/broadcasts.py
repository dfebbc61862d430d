"""
Broadcast e-mail to everyone registered for an event.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from infrastructure.external.backend_client import BackendClient
from utils.logging_config import get_logger


logger = get_logger(__name__)


@dataclass
class BroadcastMessage:
    event_id: Optional[str] = None
    subject: str = ""
    message: str = ""
    include_event_details: bool = False

    def validate(self) -> List[str]:
        if not self.event_id:
            return ["Please select an event"]
        if not self.subject.strip() or not self.message.strip():
            return ["Please fill in both subject and message"]
        return []


def send_broadcast(client: BackendClient, broadcast: BroadcastMessage) -> Dict[str, Any]:
    """
    Send a validated broadcast

    Raises:
        ValueError: the message is incomplete
        ApiError: the backend refused it
    """
    errors = broadcast.validate()
    if errors:
        raise ValueError(errors[0])
    result = client.broadcast_email(
        broadcast.event_id,
        broadcast.subject.strip(),
        broadcast.message.strip(),
        include_event_details=broadcast.include_event_details,
    )
    logger.info(f"Broadcast sent for event {broadcast.event_id}")
    return result
