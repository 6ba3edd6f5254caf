"""
Recipient strategies for chat channels.

One strategy per channel type computes the primary audience of a message.
Mute and ignore overlays are shared by every strategy through the
RecipientResolver, which also picks the spies that get the spy render.
"""

import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterable

from ..config.models import ChannelBehaviourConfig
from ..game.eligibility import EligibilityPolicy
from ..integration.protocols import WorldProvider
from ..models.channel import Channel, ChannelType
from ..models.player import ChatPlayer
from ..services.player_state_store import PlayerStateStore
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def _unique(players: Iterable[ChatPlayer]) -> list[ChatPlayer]:
    seen: dict[uuid.UUID, ChatPlayer] = {}
    for player in players:
        seen.setdefault(player.player_id, player)
    return list(seen.values())


class RecipientStrategy(ABC):
    """Abstract base class for recipient strategies."""

    @abstractmethod
    def resolve(
        self, channel: Channel, sender: ChatPlayer, online: list[ChatPlayer], resolver: "RecipientResolver"
    ) -> list[ChatPlayer]:
        """
        Compute the primary recipients of a message.

        Args:
            channel: The channel the message was posted to
            sender: The sender, always part of the result
            online: Every connected player
            resolver: Supplies the shared exclusion rules

        Returns:
            Recipients in delivery order, sender first
        """


class GlobalRecipientStrategy(RecipientStrategy):
    """Every connected player."""

    def resolve(self, channel, sender, online, resolver):
        recipients = [sender]
        for player in online:
            if player == sender or resolver.is_excluded(player, sender, channel):
                continue
            recipients.append(player)
        return _unique(recipients)


class StaffRecipientStrategy(RecipientStrategy):
    """Players with staff visibility and players spying the channel."""

    def resolve(self, channel, sender, online, resolver):
        recipients = [sender]
        for player in online:
            if player == sender:
                continue
            if not (resolver.eligibility.can_see_staff(player) or resolver.store.has_spy(player.player_id, channel.id)):
                continue
            if resolver.is_excluded(player, sender, channel):
                continue
            recipients.append(player)
        return _unique(recipients)


class LocalRecipientStrategy(RecipientStrategy):
    """
    The sender plus players of the same world within the channel radius.

    The world provider narrows candidates to a bounding volume; the radius
    check itself is inclusive. Spies inside the bounding volume are primary
    recipients even beyond the radius. Spies anywhere else are left to the
    spy render.
    """

    def resolve(self, channel, sender, online, resolver):
        world = resolver.world
        radius = channel.effective_radius
        radius_squared = radius * radius
        recipients = [sender]
        for player in world.players_within(sender, radius):
            if player == sender or player.world != sender.world:
                continue
            in_sphere = world.distance_squared(sender, player) <= radius_squared
            if not (in_sphere or resolver.store.has_spy(player.player_id, channel.id)):
                continue
            if resolver.is_excluded(player, sender, channel):
                continue
            recipients.append(player)
        return _unique(recipients)


class RecipientStrategyFactory:
    """Maps channel types to recipient strategies."""

    def __init__(self) -> None:
        self._strategies: dict[ChannelType, RecipientStrategy] = {
            ChannelType.GLOBAL: GlobalRecipientStrategy(),
            ChannelType.STAFF: StaffRecipientStrategy(),
            ChannelType.LOCAL: LocalRecipientStrategy(),
        }

    def get_strategy(self, channel_type: ChannelType) -> RecipientStrategy:
        return self._strategies[channel_type]

    def register_strategy(self, channel_type: ChannelType, strategy: RecipientStrategy) -> None:
        """Replace the strategy used for a channel type."""
        self._strategies[channel_type] = strategy
        logger.debug("Registered recipient strategy", channel_type=channel_type.value)


class RecipientResolver:
    """Computes primary recipients and spy recipients for a message."""

    def __init__(
        self,
        world: WorldProvider,
        store: PlayerStateStore,
        eligibility: EligibilityPolicy,
        behaviour: ChannelBehaviourConfig | None = None,
        strategies: RecipientStrategyFactory | None = None,
    ) -> None:
        self.world = world
        self.store = store
        self.eligibility = eligibility
        self.behaviour = behaviour or ChannelBehaviourConfig()
        self.strategies = strategies or RecipientStrategyFactory()

    def is_blocked_by_ignore(self, viewer_id: uuid.UUID, sender_id: uuid.UUID, channel_type: ChannelType) -> bool:
        """Ignoring and muting a player both block; GLOBAL honours them only when configured to."""
        if not (self.store.is_ignoring(viewer_id, sender_id) or self.store.has_muted_player(viewer_id, sender_id)):
            return False
        if channel_type == ChannelType.GLOBAL and not self.behaviour.ignore_global_messages:
            return False
        return True

    def is_excluded(self, viewer: ChatPlayer, sender: ChatPlayer, channel: Channel) -> bool:
        if self.store.has_muted_channel(viewer.player_id, channel.id):
            return True
        return self.is_blocked_by_ignore(viewer.player_id, sender.player_id, channel.type)

    def resolve(
        self, channel: Channel, sender: ChatPlayer, online: list[ChatPlayer] | None = None
    ) -> list[ChatPlayer]:
        """Primary recipients of a message, sender first."""
        if online is None:
            online = self.world.online_players()
        return self.strategies.get_strategy(channel.type).resolve(channel, sender, online, self)

    def spy_recipients(
        self,
        channel: Channel,
        sender: ChatPlayer,
        primary: Iterable[ChatPlayer],
        online: list[ChatPlayer] | None = None,
    ) -> list[ChatPlayer]:
        """Connected spies of the channel that are not primary recipients, in any world."""
        if online is None:
            online = self.world.online_players()
        primary_ids = {player.player_id for player in primary}
        spies = []
        for player in online:
            if player.player_id in primary_ids:
                continue
            if not self.store.has_spy(player.player_id, channel.id):
                continue
            if self.is_excluded(player, sender, channel):
                continue
            spies.append(player)
        return _unique(spies)
