"""
Record of an accepted chat message.

The record is logged as a structured CHAT MESSAGE event once delivery is done.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("communications.chat_message")


class ChatMessage:
    """Represents an accepted chat message with delivery metadata."""

    def __init__(
        self,
        sender_id: uuid.UUID | str,
        sender_name: str,
        channel: str,
        content: str,
        target_id: uuid.UUID | str | None = None,
        target_name: str | None = None,
    ):
        self.id = str(uuid.uuid4())
        self.sender_id = str(sender_id)
        self.sender_name = sender_name
        self.channel = channel
        self.content = content
        self.target_id = str(target_id) if target_id is not None else None
        self.target_name = target_name
        self.timestamp = datetime.now(UTC)
        self.recipient_count = 0
        self.spy_count = 0
        self.cost = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert message to dictionary for serialization."""
        result: dict[str, Any] = {
            "id": self.id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "channel": self.channel,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "recipient_count": self.recipient_count,
            "spy_count": self.spy_count,
        }

        # Private messages carry their target
        if self.target_id:
            result["target_id"] = self.target_id
        if self.target_name:
            result["target_name"] = self.target_name
        if self.cost:
            result["cost"] = self.cost

        return result

    def log_message(self) -> None:
        """Log this chat message to the communications log."""
        log_data = self.to_dict()
        log_data["message_id"] = log_data.pop("id")
        logger.info("CHAT MESSAGE", **log_data)
