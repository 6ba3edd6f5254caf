"""
Exception hierarchy for chatrelay.

ChatRelayError carries structured context for logging and a user-friendly
message. ChatRejection and its subclasses are the expected, user-facing
outcomes of the chat pipeline: each aborts a single message and maps to the
text shown to the sender.
"""

import math
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from .structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Contextual information for error handling."""

    player_id: str | None = None
    channel_id: str | None = None
    command: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert context to dictionary for logging."""
        return {
            "player_id": self.player_id,
            "channel_id": self.channel_id,
            "command": self.command,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }


class ChatRelayError(Exception):
    """
    Base exception for all chatrelay errors.

    Provides structured error handling with context and metadata.
    """

    log_level = "error"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        details: dict[str, Any] | None = None,
        user_friendly: str | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Technical error message
            context: Error context information
            details: Additional error details
            user_friendly: Message shown to the player
        """
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext()
        self.details = details or {}
        self.user_friendly = user_friendly or message
        self.timestamp = datetime.now(UTC)

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with structured context."""
        log_method = getattr(logger, self.log_level, logger.error)
        log_method(
            "chatrelay error occurred",
            error_type=self.__class__.__name__,
            message=self.message,
            context=self.context.to_dict(),
            details=self.details,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "user_friendly": self.user_friendly,
            "context": self.context.to_dict(),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class ChannelConfigurationError(ChatRelayError):
    """A channel or tag definition could not be loaded."""

    log_level = "warning"

    def __init__(self, message: str, source: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.source = source
        if source:
            self.details["source"] = source


class ChatRejection(ChatRelayError):
    """A message was refused at one pipeline stage. Only that message is affected."""

    log_level = "info"


class ChannelNotFound(ChatRejection):
    """No channel with the requested id is registered."""

    def __init__(self, channel_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Channel not found: {channel_id}",
            context,
            details={"channel_id": channel_id},
            user_friendly=f"&cChannel not found: {channel_id}",
        )
        self.channel_id = channel_id


class PermissionDenied(ChatRejection):
    """The sender may not post to the channel."""

    def __init__(self, channel_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"Permission denied for channel {channel_id}",
            context,
            details={"channel_id": channel_id},
            user_friendly=f"&cYou do not have permission to speak in the {channel_id} channel.",
        )
        self.channel_id = channel_id


def format_remaining(remaining_seconds: float) -> str:
    """
    Format a cooldown for display.

    One decimal of seconds at or above one second, otherwise whole milliseconds
    rounded up with a 50ms floor.
    """
    remaining_seconds = max(0.05, remaining_seconds)
    if remaining_seconds >= 1.0:
        return f"{remaining_seconds:.1f}s"
    return f"{max(50, math.ceil(remaining_seconds * 1000))}ms"


class RateLimited(ChatRejection):
    """The sender's cooldown on the channel has not elapsed."""

    def __init__(self, channel_id: str, remaining_seconds: float, context: ErrorContext | None = None):
        self.channel_id = channel_id
        self.remaining_seconds = remaining_seconds
        self.display_remaining = format_remaining(remaining_seconds)
        super().__init__(
            f"Rate limited on channel {channel_id}",
            context,
            details={"channel_id": channel_id, "remaining_seconds": remaining_seconds},
            user_friendly=f"&cWait &e{self.display_remaining} &cto speak in the &e{channel_id}&c channel.",
        )


class FilterRejected(ChatRejection):
    """The message filter pipeline refused the message."""

    def __init__(
        self,
        reason: str,
        context: ErrorContext | None = None,
        user_friendly: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.reason = reason
        super().__init__(
            f"Message rejected: {reason}",
            context,
            details={"reason": reason, **(details or {})},
            user_friendly=user_friendly or f"&cYour message was blocked: {reason}",
        )


class URLBlocked(FilterRejected):
    """The message contains a domain outside the allow-list."""

    def __init__(self, domain: str, context: ErrorContext | None = None):
        self.domain = domain
        super().__init__(
            f"URL blocked: {domain}",
            context,
            user_friendly="&cLinks to other sites are not allowed here.",
            details={"domain": domain},
        )


class InsufficientBalance(ChatRejection):
    """The sender's balance is under the channel minimum."""

    def __init__(self, channel_id: str, balance: float, minimum: float, context: ErrorContext | None = None):
        super().__init__(
            f"Insufficient balance for channel {channel_id}",
            context,
            details={"channel_id": channel_id, "balance": balance, "minimum": minimum},
            user_friendly="&cInsufficient balance to speak in this channel.",
        )
        self.channel_id = channel_id
        self.balance = balance
        self.minimum = minimum


class DebitFailed(ChatRejection):
    """The economy refused to debit the per-message cost."""

    def __init__(self, channel_id: str, amount: float, context: ErrorContext | None = None):
        super().__init__(
            f"Debit of {amount} failed for channel {channel_id}",
            context,
            details={"channel_id": channel_id, "amount": amount},
            user_friendly="&cFailed to charge the message cost.",
        )
        self.channel_id = channel_id
        self.amount = amount


class PrivateMessageRefused(ChatRejection):
    """A private message cannot be delivered to its target."""

    def __init__(self, reason: str, user_friendly: str, context: ErrorContext | None = None):
        self.reason = reason
        super().__init__(
            f"Private message refused: {reason}",
            context,
            details={"reason": reason},
            user_friendly=user_friendly,
        )
