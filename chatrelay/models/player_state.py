"""
Per-player chat state: muted and spied channels, muted and ignored players.

Channel ids are always stored lowercase.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("communications.player_state")


@dataclass
class PlayerChatState:
    """Mute, spy and ignore relations of one player."""

    muted_channels: set[str] = field(default_factory=set)
    spy_channels: set[str] = field(default_factory=set)
    muted_players: set[uuid.UUID] = field(default_factory=set)
    ignored_players: set[uuid.UUID] = field(default_factory=set)

    def __post_init__(self) -> None:
        self.muted_channels = {c.lower() for c in self.muted_channels}
        self.spy_channels = {c.lower() for c in self.spy_channels}

    def is_empty(self) -> bool:
        return not (self.muted_channels or self.spy_channels or self.muted_players or self.ignored_players)

    def copy(self) -> "PlayerChatState":
        return PlayerChatState(
            muted_channels=set(self.muted_channels),
            spy_channels=set(self.spy_channels),
            muted_players=set(self.muted_players),
            ignored_players=set(self.ignored_players),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible data with sorted lists for stable files."""
        return {
            "muted_channels": sorted(self.muted_channels),
            "spy_channels": sorted(self.spy_channels),
            "muted_players": sorted(str(p) for p in self.muted_players),
            "ignored_players": sorted(str(p) for p in self.ignored_players),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerChatState":
        """Deserialize, skipping blank channel ids and malformed player ids."""
        return cls(
            muted_channels=_channel_set(data.get("muted_channels")),
            spy_channels=_channel_set(data.get("spy_channels")),
            muted_players=_uuid_set(data.get("muted_players")),
            ignored_players=_uuid_set(data.get("ignored_players")),
        )


def _channel_set(values: Any) -> set[str]:
    if not isinstance(values, list):
        return set()
    return {str(v).strip().lower() for v in values if v is not None and str(v).strip()}


def _uuid_set(values: Any) -> set[uuid.UUID]:
    if not isinstance(values, list):
        return set()
    result: set[uuid.UUID] = set()
    for value in values:
        try:
            result.add(uuid.UUID(str(value)))
        except (ValueError, AttributeError, TypeError):
            logger.warning("Skipping malformed player id in chat state", value=value)
    return result
