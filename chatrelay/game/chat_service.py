"""
Chat service for chatrelay.

ChatService is the per-message state machine: it resolves the channel,
checks permission and cooldown, filters the text, charges the cost, commits
the cooldown and then renders and delivers the message. Every stage that can
refuse a message raises a ChatRejection, which is turned into a system
message for the sender and a rejected ChatOutcome. Nothing here blocks or
awaits; the host calls these entry points from its own event callbacks.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..config import get_config
from ..config.models import AppConfig
from ..exceptions import ChannelNotFound, ChatRejection, ErrorContext, PermissionDenied, PrivateMessageRefused
from ..integration.economy import EconomyService
from ..integration.permissions import PermissionService
from ..integration.protocols import CommandExecutor, DeliverySink, PlayerStateStorage, WorldProvider
from ..models.channel import Channel
from ..models.player import ChatPlayer
from ..models.rendered import RenderedMessage
from ..realtime.recipient_strategies import RecipientResolver
from ..services.message_filter import MessageFilterPipeline
from ..services.player_state_storage import PlayerStateWriter
from ..services.player_state_store import PlayerStateStore
from ..services.rate_limiter import ChannelCooldownLimiter
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.number_format import format_amount
from .channel_loader import load_channels
from .channel_registry import ChannelRegistry
from .chat_message import ChatMessage
from .eligibility import EligibilityPolicy
from .message_parser import parse_incoming
from .placeholders import PlaceholderResolver
from .template_renderer import TemplateRenderer
from .transformations import apply_channel_transformations, find_mentioned_players, highlight_mentions

logger = get_logger("communications.chat_service")

MENTION_CUE = "mention"
NOBODY_HEARD_MESSAGE = "&7Nobody nearby received your message."
MESSAGE_COST_TEMPLATE = "&7Message cost: &e{amount}"


@dataclass
class ChatOutcome:
    """Result of one pass through the chat pipeline."""

    accepted: bool
    channel_id: str | None = None
    message: str = ""
    recipients: list[ChatPlayer] = field(default_factory=list)
    spies: list[ChatPlayer] = field(default_factory=list)
    mentioned: list[ChatPlayer] = field(default_factory=list)
    cost: float = 0.0
    rejection: ChatRejection | None = None

    @classmethod
    def rejected(cls, rejection: ChatRejection, channel_id: str | None = None) -> "ChatOutcome":
        return cls(accepted=False, channel_id=channel_id, rejection=rejection)


class ChatService:
    """
    Orchestrates channel chat for connected players.

    Collaborators are injected; permission and economy lookups go through
    degrading wrappers so a faulty provider never aborts a message.
    """

    def __init__(
        self,
        world: WorldProvider,
        sink: DeliverySink,
        config: AppConfig | None = None,
        *,
        registry: ChannelRegistry | None = None,
        permissions: PermissionService | None = None,
        economy: EconomyService | None = None,
        storage: PlayerStateStorage | None = None,
        command_executor: CommandExecutor | None = None,
        limiter: ChannelCooldownLimiter | None = None,
        background_writes: bool = True,
    ) -> None:
        """
        Initialize the chat service.

        Args:
            world: Connected players and proximity queries
            sink: Delivers rendered messages and notification cues
            config: Application configuration, defaults to get_config()
            registry: Channel registry; starts with the fallback local channel
            permissions: Permission lookups, operator fallback when omitted
            economy: Economy access, "not ready" when omitted
            storage: Player state persistence, in-memory only when omitted
            command_executor: Runs URL punishment commands
            limiter: Channel cooldown tracker
            background_writes: Queue state saves on a writer thread
        """
        self.config = config or get_config()
        self.world = world
        self.sink = sink
        self.registry = registry or ChannelRegistry()
        self.permissions = permissions or PermissionService()
        self.economy = economy or EconomyService()

        self.state_writer: PlayerStateWriter | None = None
        if storage is not None and background_writes:
            self.state_writer = PlayerStateWriter(storage)
            self.store = PlayerStateStore(self.state_writer)
        else:
            self.store = PlayerStateStore(storage)

        self.eligibility = EligibilityPolicy(self.permissions, self.economy, self.config.permissions)
        self.limiter = limiter or ChannelCooldownLimiter()
        self.filters = MessageFilterPipeline(self.config, command_executor)
        self.placeholders = PlaceholderResolver(self.permissions, self.economy)
        self.renderer = TemplateRenderer(self.placeholders, self.permissions)
        self.recipients = RecipientResolver(self.world, self.store, self.eligibility, self.config.channel)

        logger.info("ChatService initialized", channels=self.registry.ids())

    # Message entry points

    def on_chat_submitted(self, sender: ChatPlayer, raw: str | None, *, echo_rejections: bool = True) -> ChatOutcome:
        """Handle passive chat input: route it by shortcut or alias, default to local."""
        parsed = parse_incoming(sender, raw, self.registry, self.eligibility)
        return self._process(sender, parsed.channel, parsed.message, echo_rejections)

    def send_to_channel(
        self, sender: ChatPlayer, channel_id: str, message: str, *, echo_rejections: bool = True
    ) -> ChatOutcome:
        """Send to an explicitly named channel."""
        channel = self.registry.resolve(channel_id)
        if channel is None:
            rejection = ChannelNotFound(channel_id, ErrorContext(player_id=str(sender.player_id)))
            if echo_rejections:
                self._send_system(sender, rejection.user_friendly)
            return ChatOutcome.rejected(rejection, channel_id.lower())
        return self._process(sender, channel, (message or "").strip(), echo_rejections)

    def _process(self, sender: ChatPlayer, channel: Channel, message: str, echo_rejections: bool) -> ChatOutcome:
        try:
            if not self.eligibility.can_use(sender, channel):
                raise PermissionDenied(channel.id, ErrorContext(player_id=str(sender.player_id)))

            bypass = self.eligibility.can_bypass_delay(sender, channel.id)
            self.limiter.check(sender, channel, bypass)
            processed = self.filters.process(sender, channel, message)
            cost = self.eligibility.check_cost(sender, channel)
            self.limiter.commit(sender, channel, bypass)
        except ChatRejection as rejection:
            logger.info(
                "Chat message rejected",
                player_id=str(sender.player_id),
                channel_id=channel.id,
                rejection=type(rejection).__name__,
            )
            if echo_rejections:
                self._send_system(sender, rejection.user_friendly)
            return ChatOutcome.rejected(rejection, channel.id)

        return self._deliver(sender, channel, processed, cost)

    def _deliver(self, sender: ChatPlayer, channel: Channel, processed: str, cost: float) -> ChatOutcome:
        online = self.world.online_players()
        mentioned = find_mentioned_players(processed, online) if channel.mentionable else {}
        transformed = apply_channel_transformations(channel, processed)
        display = highlight_mentions(transformed, mentioned) if channel.mentionable else transformed

        normal = self.renderer.render(
            channel.format, self.placeholders.build_placeholders(channel, sender, display), channel, sender
        )
        recipients = self.recipients.resolve(channel, sender, online)
        for player in recipients:
            self._send(player, normal)

        spies = self.recipients.spy_recipients(channel, sender, recipients, online)
        if spies:
            # Spies see the text before mention highlighting
            spy_message = self.renderer.render(
                channel.spy_format, self.placeholders.build_placeholders(channel, sender, transformed), channel, sender
            )
            for player in spies:
                self._send(player, spy_message)

        recipient_ids = {player.player_id for player in recipients}
        notified = []
        for player in mentioned.values():
            if player.player_id not in recipient_ids:
                continue
            if self.store.is_ignoring(player.player_id, sender.player_id):
                continue
            self._notify(player, MENTION_CUE)
            notified.append(player)

        if self.config.channel.show_message and len(recipients) == 1 and recipients[0] == sender:
            self._send_system(sender, NOBODY_HEARD_MESSAGE)

        if cost > 0 and channel.currency.show_message_cost:
            self._send_system(sender, MESSAGE_COST_TEMPLATE.format(amount=format_amount(cost)))

        record = ChatMessage(sender.player_id, sender.name, channel.id, transformed)
        record.recipient_count = len(recipients)
        record.spy_count = len(spies)
        record.cost = cost
        record.log_message()

        return ChatOutcome(
            accepted=True,
            channel_id=channel.id,
            message=transformed,
            recipients=recipients,
            spies=spies,
            mentioned=notified,
            cost=cost,
        )

    def tell(self, sender: ChatPlayer, target: ChatPlayer, text: str, *, echo_rejections: bool = True) -> ChatOutcome:
        """Send a private message rendered with the configured tell format."""
        message = (text or "").strip()
        context = ErrorContext(player_id=str(sender.player_id), command="tell")
        try:
            if sender == target:
                raise PrivateMessageRefused("self", "&cYou cannot send a message to yourself.", context)
            if not message:
                raise PrivateMessageRefused("empty", "&cUsage: tell <player> <message>", context)
            if self.store.is_ignoring(target.player_id, sender.player_id):
                raise PrivateMessageRefused("target_ignoring", "&cThat player is ignoring you.", context)
            if self.store.is_ignoring(sender.player_id, target.player_id):
                raise PrivateMessageRefused("sender_ignoring", "&cYou are ignoring that player.", context)
        except PrivateMessageRefused as rejection:
            if echo_rejections:
                self._send_system(sender, rejection.user_friendly)
            return ChatOutcome.rejected(rejection)

        text_out = (
            self.config.tell.format.replace("%send%", sender.name)
            .replace("%receiver%", target.name)
            .replace("%message%", message)
        )
        rendered = RenderedMessage.plain(text_out)
        self._send(target, rendered)
        self._send(sender, rendered)

        ChatMessage(sender.player_id, sender.name, "tell", message, target.player_id, target.name).log_message()
        return ChatOutcome(accepted=True, channel_id=None, message=message, recipients=[target, sender])

    # Lifecycle

    def on_player_connected(self, player: ChatPlayer) -> None:
        """Load and attach the player's chat state."""
        self.store.load(player.player_id)
        logger.debug("Player chat state attached", player_id=str(player.player_id), player_name=player.name)

    def on_player_disconnected(self, player: ChatPlayer) -> None:
        """Persist and drop the player's chat state."""
        self.store.detach(player.player_id)
        logger.debug("Player chat state detached", player_id=str(player.player_id), player_name=player.name)

    def flush_all(self) -> None:
        """Persist every connected player's state and wait for queued writes."""
        players = self.world.online_players()
        for player in players:
            self.store.persist(player.player_id)
        if self.state_writer is not None:
            self.state_writer.drain()
        logger.info("Flushed player chat state", player_count=len(players))

    def shutdown(self) -> None:
        """Flush state and stop the background writer."""
        self.flush_all()
        if self.state_writer is not None:
            self.state_writer.shutdown()

    # Player state toggles

    def toggle_mute_channel(self, player: ChatPlayer, channel_id: str) -> bool:
        return self.store.toggle_mute_channel(player.player_id, channel_id)

    def toggle_spy_channel(self, player: ChatPlayer, channel_id: str) -> bool:
        return self.store.toggle_spy_channel(player.player_id, channel_id)

    def toggle_mute_player(self, player: ChatPlayer, target: ChatPlayer) -> bool:
        return self.store.toggle_mute_player(player.player_id, target.player_id)

    def toggle_ignore(self, player: ChatPlayer, target: ChatPlayer) -> bool:
        return self.store.toggle_ignore(player.player_id, target.player_id)

    def is_ignoring(self, who: ChatPlayer, target: ChatPlayer) -> bool:
        return self.store.is_ignoring(who.player_id, target.player_id)

    # Configuration

    def reload(self, channels: Iterable[Channel] | None = None) -> int:
        """
        Replace the channel set and rebuild filter rules.

        Args:
            channels: New channels; loaded from the configured directory when omitted

        Returns:
            Number of registered channels, fallback local included
        """
        if channels is None:
            channels = load_channels(Path(self.config.paths.channels_dir))
        self.registry.replace(channels)
        self.rebuild_filters()
        return len(self.registry)

    def rebuild_filters(self) -> None:
        self.filters.rebuild_from_config()

    # Delivery helpers

    def _send(self, player: ChatPlayer, message: RenderedMessage) -> None:
        try:
            self.sink.send(player, message)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: One failed delivery must not stop the others
            logger.error("Failed to deliver chat message", player_id=str(player.player_id), error=str(e))

    def _send_system(self, player: ChatPlayer, text: str) -> None:
        self._send(player, RenderedMessage.plain(text))

    def _notify(self, player: ChatPlayer, cue: str) -> None:
        try:
            self.sink.notify(player, cue)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Notification cues are best effort
            logger.warning("Failed to play notification cue", player_id=str(player.player_id), cue=cue, error=str(e))
