"""
Eligibility policy: who may post where, who skips cooldowns, and what a message costs.
"""

import math

from ..config.models import PermissionNodesConfig
from ..exceptions import DebitFailed, ErrorContext, InsufficientBalance
from ..integration.economy import EconomyService
from ..integration.permissions import PermissionService
from ..models.channel import Channel, ChannelType
from ..models.player import ChatPlayer
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("communications.eligibility")


class EligibilityPolicy:
    """Permission and currency checks gating whether a sender may post to a channel."""

    def __init__(
        self,
        permissions: PermissionService,
        economy: EconomyService,
        nodes: PermissionNodesConfig | None = None,
    ) -> None:
        self.permissions = permissions
        self.economy = economy
        self.nodes = nodes or PermissionNodesConfig()

    def has_baseline_access(self, player: ChatPlayer) -> bool:
        """Operators always have baseline access; everyone else needs the baseline node."""
        return player.is_operator or self.permissions.has_permission(player, self.nodes.baseline_permission)

    def can_use(self, player: ChatPlayer, channel: Channel) -> bool:
        if self.permissions.has_permission(player, channel.permission):
            return True
        return channel.type != ChannelType.STAFF and self.has_baseline_access(player)

    def can_bypass_delay(self, player: ChatPlayer, channel_id: str) -> bool:
        node = self.nodes.bypass_delay_permission
        return self.permissions.has_permission(player, node) or self.permissions.has_permission(
            player, f"{node}.{channel_id.lower()}"
        )

    def can_see_staff(self, player: ChatPlayer) -> bool:
        return player.is_operator or self.permissions.has_permission(player, self.nodes.visibility_permission)

    def check_cost(self, player: ChatPlayer, channel: Channel) -> float:
        """
        Enforce the channel's minimum balance and debit its per-message cost.

        The debit happens at most once per call and is never retried. When the
        economy is not ready, or the balance lookup fails, the check is skipped.

        Args:
            player: The sender
            channel: The target channel

        Returns:
            The amount charged, 0.0 when nothing was debited

        Raises:
            InsufficientBalance: If the balance is under the channel minimum
            DebitFailed: If the economy refused the debit
        """
        currency = channel.currency
        if not currency.applies or not self.economy.is_ready():
            return 0.0

        context = ErrorContext(player_id=str(player.player_id), channel_id=channel.id)
        balance = self.economy.get_balance(player, currency.currency_id)
        if math.isinf(balance):
            # Failed lookup: treat the economy as not ready
            return 0.0
        if balance < currency.min_balance:
            raise InsufficientBalance(channel.id, balance, currency.min_balance, context)

        if currency.message_cost <= 0:
            return 0.0

        reason = f"chatrelay:{channel.id} message"
        if not self.economy.withdraw(player, currency.currency_id, currency.message_cost, reason):
            raise DebitFailed(channel.id, currency.message_cost, context)

        logger.debug(
            "Message cost charged",
            player_id=str(player.player_id),
            channel_id=channel.id,
            amount=currency.message_cost,
            currency_id=currency.currency_id,
        )
        return currency.message_cost
