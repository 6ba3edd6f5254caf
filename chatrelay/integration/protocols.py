"""
Collaborator interfaces consumed by the chat engine.

Implementations belong to the host. The engine only relies on these
structural protocols.
"""

import uuid
from decimal import Decimal
from typing import Protocol, runtime_checkable

from ..models.player import ChatPlayer
from ..models.player_state import PlayerChatState
from ..models.rendered import RenderedMessage


@runtime_checkable
class PermissionProvider(Protocol):
    """Permission and meta lookups for a player."""

    def has_permission(self, player: ChatPlayer, node: str) -> bool:
        """Check a permission node."""

    def get_prefix(self, player: ChatPlayer) -> str | None:
        """Return the player's chat prefix."""

    def get_suffix(self, player: ChatPlayer) -> str | None:
        """Return the player's chat suffix."""


@runtime_checkable
class EconomyProvider(Protocol):
    """Balances, debits and top-holder lookups."""

    def is_ready(self) -> bool:
        """True once the economy can serve requests."""

    def get_balance(self, player: ChatPlayer, currency_id: str) -> Decimal | float | None:
        """Return the player's balance in a currency."""

    def debit(self, player: ChatPlayer, currency_id: str, amount: Decimal, reason: str) -> bool:
        """Debit the player; False when refused."""

    def get_top_holder_tag(self, currency_id: str) -> str | None:
        """Display tag of the current top holder."""

    def get_top_holder_name(self, currency_id: str) -> str | None:
        """Name of the current top holder."""


class PlayerStateStorage(Protocol):
    """Persistence of per-player chat state."""

    def load(self, player_id: uuid.UUID) -> PlayerChatState:
        """Load a player's state, empty if none is stored."""

    def save(self, player_id: uuid.UUID, state: PlayerChatState) -> None:
        """Persist a player's state."""


class WorldProvider(Protocol):
    """Connected players and spatial queries."""

    def online_players(self) -> list[ChatPlayer]:
        """All connected players in a stable order."""

    def players_within(self, center: ChatPlayer, radius: float) -> list[ChatPlayer]:
        """Players of center's world inside the bounding volume of center expanded by radius."""

    def distance_squared(self, a: ChatPlayer, b: ChatPlayer) -> float:
        """Squared distance between two players of the same world."""


class DeliverySink(Protocol):
    """Outbound delivery to players."""

    def send(self, player: ChatPlayer, message: RenderedMessage) -> None:
        """Deliver a rendered message."""

    def notify(self, player: ChatPlayer, cue: str) -> None:
        """Play a notification cue (sound or alert)."""


class CommandExecutor(Protocol):
    """Runs console commands with elevated rights, used for URL punishments."""

    def execute(self, command: str) -> None:
        """Execute a console command."""
