"""
Per-player, per-channel cooldowns for chat channels.

Checking and committing are separate steps: the chat pipeline checks before
filtering and charging, and commits only once the message has been accepted,
so a rejected message never consumes a cooldown slot.
"""

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..exceptions import ErrorContext, RateLimited
from ..models.channel import Channel
from ..models.player import ChatPlayer
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("communications.rate_limiter")


@dataclass(frozen=True)
class Allowed:
    """The sender may post now."""


@dataclass(frozen=True)
class WaitRemaining:
    """The sender must wait remaining_seconds before posting again."""

    remaining_seconds: float


CooldownDecision = Allowed | WaitRemaining

ALLOWED = Allowed()


class ChannelCooldownLimiter:
    """
    Fixed cooldown per channel, tracked per player.

    The ledger maps player id to channel id to the monotonic time at which the
    player may next post. Entries are created lazily and never expire; a stale
    entry is only ever compared against the current time.
    """

    def __init__(self, now_provider: Callable[[], float] | None = None) -> None:
        self._now_provider = now_provider or time.monotonic
        self._next_allowed: dict[str, dict[str, float]] = {}
        self._lock = threading.Lock()

    def _now(self, now: float | None) -> float:
        return self._now_provider() if now is None else now

    def try_consume(
        self, player: ChatPlayer, channel: Channel, bypass: bool = False, now: float | None = None
    ) -> CooldownDecision:
        """
        Check the sender's cooldown without mutating the ledger.

        Args:
            player: The sender
            channel: The target channel
            bypass: True when the sender holds a delay bypass permission
            now: Monotonic time, defaults to the limiter's clock

        Returns:
            ALLOWED, or WaitRemaining with the seconds left
        """
        if channel.delay_seconds <= 0 or bypass:
            return ALLOWED
        current = self._now(now)
        with self._lock:
            next_allowed = self._next_allowed.get(str(player.player_id), {}).get(channel.id, 0.0)
        if current < next_allowed:
            return WaitRemaining(next_allowed - current)
        return ALLOWED

    def check(self, player: ChatPlayer, channel: Channel, bypass: bool = False, now: float | None = None) -> None:
        """
        Raise when the sender is still cooling down on the channel.

        Raises:
            RateLimited: With the remaining wait
        """
        decision = self.try_consume(player, channel, bypass, now)
        if isinstance(decision, WaitRemaining):
            logger.debug(
                "Channel cooldown active",
                player_id=str(player.player_id),
                channel_id=channel.id,
                remaining_seconds=decision.remaining_seconds,
            )
            raise RateLimited(
                channel.id,
                decision.remaining_seconds,
                ErrorContext(player_id=str(player.player_id), channel_id=channel.id),
            )

    def commit(self, player: ChatPlayer, channel: Channel, bypass: bool = False, now: float | None = None) -> None:
        """Start the cooldown for an accepted message. No-op for undelayed channels or bypassing senders."""
        if channel.delay_seconds <= 0 or bypass:
            return
        current = self._now(now)
        with self._lock:
            self._next_allowed.setdefault(str(player.player_id), {})[channel.id] = current + channel.delay_seconds

    def next_allowed_at(self, player: ChatPlayer, channel_id: str) -> float:
        with self._lock:
            return self._next_allowed.get(str(player.player_id), {}).get(channel_id.lower(), 0.0)

    def reset(self, player: ChatPlayer | None = None) -> None:
        """Forget cooldowns for one player, or for everyone."""
        with self._lock:
            if player is None:
                self._next_allowed.clear()
            else:
                self._next_allowed.pop(str(player.player_id), None)
