"""
Chat commands for chatrelay.

ChatCommandHandler parses a command line and returns {"result": str}, the
text to show the invoking player. Channel aliases ("g hello") are looked up
in the registry's alias table and sent through ChatService.send_to_channel.
"""

from ..game.chat_service import ChatService
from ..models.player import ChatPlayer
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

ADMIN_COMMAND = "chat"


class ChatCommandHandler:
    """Dispatches chat-related text commands for a player."""

    def __init__(self, chat_service: ChatService) -> None:
        self.chat = chat_service
        self._handlers = {
            "mute": self.handle_mute,
            "ignore": self.handle_ignore,
            "muteall": self.handle_muteall,
            "spy": self.handle_spy,
            "tell": self.handle_tell,
            "msg": self.handle_tell,
            ADMIN_COMMAND: self.handle_admin,
        }

    def handle(self, player: ChatPlayer, command_line: str) -> dict[str, str]:
        """
        Handle one command line, with or without a leading slash.

        Args:
            player: The invoking player
            command_line: e.g. "mute Steve" or "/g hello"

        Returns:
            dict: Command result
        """
        line = (command_line or "").strip()
        if line.startswith("/"):
            line = line[1:]
        if not line:
            return {"result": "Usage: <command> [arguments]"}

        command, _, args = line.partition(" ")
        command = command.lower()
        args = args.strip()

        handler = self._handlers.get(command)
        if handler is not None:
            return handler(player, args)

        if self.chat.registry.channels_for_alias(command):
            return self.handle_channel_alias(player, command, args)

        logger.debug("Unknown chat command", player_name=player.name, command=command)
        return {"result": f"Unknown command: {command}"}

    def _find_online(self, name: str) -> ChatPlayer | None:
        wanted = name.lower()
        for candidate in self.chat.world.online_players():
            if candidate.name.lower() == wanted:
                return candidate
        return None

    def handle_mute(self, player: ChatPlayer, args: str) -> dict[str, str]:
        if not args:
            return {"result": "Usage: mute <player>"}
        target = self._find_online(args.split()[0])
        if target is None:
            return {"result": f"&cPlayer not found: {args.split()[0]}"}
        muted = self.chat.toggle_mute_player(player, target)
        logger.info("Player mute toggled", player_name=player.name, target_name=target.name, muted=muted)
        return {"result": f"&7You muted &e{target.name}" if muted else f"&7You unmuted &e{target.name}"}

    def handle_ignore(self, player: ChatPlayer, args: str) -> dict[str, str]:
        if not args:
            return {"result": "Usage: ignore <player>"}
        target = self._find_online(args.split()[0])
        if target is None:
            return {"result": f"&cPlayer not found: {args.split()[0]}"}
        ignored = self.chat.toggle_ignore(player, target)
        logger.info("Player ignore toggled", player_name=player.name, target_name=target.name, ignored=ignored)
        return {
            "result": f"&7You are now ignoring &e{target.name}"
            if ignored
            else f"&7You are no longer ignoring &e{target.name}"
        }

    def handle_muteall(self, player: ChatPlayer, args: str) -> dict[str, str]:
        if not args:
            return {"result": "Usage: muteall <channel>"}
        channel_id = args.split()[0].lower()
        if self.chat.registry.resolve(channel_id) is None:
            return {"result": f"&cChannel not found: {channel_id}"}
        muted = self.chat.toggle_mute_channel(player, channel_id)
        return {
            "result": f"&7You muted the &e{channel_id}&7 channel"
            if muted
            else f"&7You unmuted the &e{channel_id}&7 channel"
        }

    def handle_spy(self, player: ChatPlayer, args: str) -> dict[str, str]:
        if not (
            player.is_operator
            or self.chat.permissions.has_permission(player, self.chat.config.permissions.spy_permission)
        ):
            logger.warning("Spy command denied", player_name=player.name)
            return {"result": "&cYou do not have permission to spy on channels."}
        if not args:
            return {"result": "Usage: spy <channel>"}
        channel_id = args.split()[0].lower()
        if self.chat.registry.resolve(channel_id) is None:
            return {"result": f"&cChannel not found: {channel_id}"}
        spying = self.chat.toggle_spy_channel(player, channel_id)
        logger.info("Channel spy toggled", player_name=player.name, channel_id=channel_id, spying=spying)
        return {
            "result": f"&7Spy mode enabled for &e{channel_id}" if spying else f"&7Spy mode disabled for &e{channel_id}"
        }

    def handle_tell(self, player: ChatPlayer, args: str) -> dict[str, str]:
        name, _, message = args.partition(" ")
        if not name or not message.strip():
            return {"result": "Usage: tell <player> <message>"}
        target = self._find_online(name)
        if target is None:
            return {"result": f"&cPlayer not found: {name}"}
        outcome = self.chat.tell(player, target, message, echo_rejections=False)
        if not outcome.accepted and outcome.rejection is not None:
            return {"result": outcome.rejection.user_friendly}
        return {"result": ""}

    def handle_admin(self, player: ChatPlayer, args: str) -> dict[str, str]:
        subcommand = args.split()[0].lower() if args else ""
        if subcommand != "reload":
            return {"result": "Usage: chat reload"}
        if not (
            player.is_operator
            or self.chat.permissions.has_permission(player, self.chat.config.permissions.reload_permission)
        ):
            logger.warning("Chat reload denied", player_name=player.name)
            return {"result": "&cYou do not have permission to reload chat channels."}
        try:
            count = self.chat.reload()
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Report reload failures to the invoker
            logger.error("Chat reload failed", player_name=player.name, error=str(e), error_type=type(e).__name__)
            return {"result": f"&cFailed to reload chat: {type(e).__name__} - {e}"}
        logger.info("Chat reloaded", player_name=player.name, channel_count=count)
        return {"result": f"&aChat reloaded. &7Channels loaded: &e{count}"}

    def handle_channel_alias(self, player: ChatPlayer, alias: str, message: str) -> dict[str, str]:
        """Send message to the first channel answering to alias that the player may use."""
        channels = self.chat.registry.channels_for_alias(alias)
        target = next((c for c in channels if self.chat.eligibility.can_use(player, c)), None)
        if target is None:
            return {"result": f"&cYou do not have permission to speak in the {channels[0].id} channel."}
        if not message:
            return {"result": f"Usage: {alias} <message>"}
        outcome = self.chat.send_to_channel(player, target.id, message, echo_rejections=False)
        if not outcome.accepted and outcome.rejection is not None:
            return {"result": outcome.rejection.user_friendly}
        return {"result": ""}
