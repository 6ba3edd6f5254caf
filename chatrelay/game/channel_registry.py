"""
Channel registry.

Readers work on an immutable snapshot. A reload builds a complete new
snapshot and publishes it with a single reference assignment, so a reader
sees either the old set or the new set, never a mix.
"""

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from ..models.channel import Channel, fallback_local_channel
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("communications.channel_registry")


@dataclass(frozen=True)
class RegistrySnapshot:
    """An immutable view of every registered channel."""

    by_id: Mapping[str, Channel]
    aliases: Mapping[str, tuple[str, ...]]

    def all(self) -> tuple[Channel, ...]:
        return tuple(self.by_id.values())


def build_snapshot(channels: Iterable[Channel]) -> RegistrySnapshot:
    """
    Build a snapshot in insertion order.

    A later channel with a duplicate id replaces the earlier definition but
    keeps its position. A fallback local channel is appended when none exists.
    """
    by_id: dict[str, Channel] = {}
    for channel in channels:
        if channel.id in by_id:
            logger.warning("Duplicate channel id, later definition wins", channel_id=channel.id)
        by_id[channel.id] = channel
    if "local" not in by_id:
        logger.info("No local channel defined, injecting fallback local channel")
        by_id["local"] = fallback_local_channel()

    aliases: dict[str, list[str]] = {}
    for channel in by_id.values():
        for alias in channel.commands:
            aliases.setdefault(alias, []).append(channel.id)

    return RegistrySnapshot(
        by_id=MappingProxyType(by_id),
        aliases=MappingProxyType({alias: tuple(ids) for alias, ids in aliases.items()}),
    )


class ChannelRegistry:
    """Holds the channel set, keyed by lowercase id, in registration order."""

    def __init__(self, channels: Iterable[Channel] = ()) -> None:
        self._write_lock = threading.Lock()
        self._snapshot = build_snapshot(channels)

    def snapshot(self) -> RegistrySnapshot:
        """Return the current snapshot; hold on to it for a consistent multi-step read."""
        return self._snapshot

    def resolve(self, channel_id: str | None) -> Channel | None:
        if not channel_id:
            return None
        return self._snapshot.by_id.get(channel_id.lower())

    def require(self, channel_id: str) -> Channel:
        channel = self.resolve(channel_id)
        if channel is None:
            raise KeyError(channel_id)
        return channel

    def all(self) -> tuple[Channel, ...]:
        """Ordered, read-only view of every channel."""
        return self._snapshot.all()

    def ids(self) -> list[str]:
        return list(self._snapshot.by_id.keys())

    def channels_for_alias(self, alias: str) -> list[Channel]:
        """Channels answering to alias, in registry order."""
        snapshot = self._snapshot
        return [snapshot.by_id[cid] for cid in snapshot.aliases.get(alias.lower(), ())]

    def replace(self, channels: Iterable[Channel]) -> None:
        """Swap in a new channel set built off to the side."""
        new_snapshot = build_snapshot(channels)
        with self._write_lock:
            self._snapshot = new_snapshot
        logger.info(
            "Channel registry replaced", channel_count=len(new_snapshot.by_id), channels=list(new_snapshot.by_id)
        )

    def __len__(self) -> int:
        return len(self._snapshot.by_id)

    def __contains__(self, channel_id: object) -> bool:
        return isinstance(channel_id, str) and channel_id.lower() in self._snapshot.by_id
