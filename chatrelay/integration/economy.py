"""
Economy access that degrades to "not ready".

Cost and display features treat an absent or failing economy as a no-op so
the chat path never hard-fails on it.
"""

import math
from decimal import Decimal, InvalidOperation

from ..models.player import ChatPlayer
from ..structured_logging.enhanced_logging_config import get_logger
from .protocols import EconomyProvider

logger = get_logger("communications.economy")


class EconomyService:
    """Wraps an optional EconomyProvider."""

    def __init__(self, provider: EconomyProvider | None = None) -> None:
        self.provider = provider

    def set_provider(self, provider: EconomyProvider | None) -> None:
        """Install the provider once the economy becomes available."""
        self.provider = provider
        logger.info("Economy provider updated", available=provider is not None)

    def is_ready(self) -> bool:
        if self.provider is None:
            return False
        try:
            return bool(self.provider.is_ready())
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Economy faults degrade to not ready
            logger.warning("Economy readiness check failed", error=str(e), error_type=type(e).__name__)
            return False

    def get_balance(self, player: ChatPlayer, currency_id: str) -> float:
        """
        Return the balance as a float.

        An economy that is not ready, or whose lookup fails, reports an
        infinite balance so minimum balance checks never block. A missing
        balance reports zero.
        """
        if not self.is_ready():
            return math.inf
        assert self.provider is not None
        try:
            balance = self.provider.get_balance(player, currency_id)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Economy faults must not abort chat
            logger.warning(
                "Economy balance lookup failed",
                player_id=str(player.player_id),
                currency_id=currency_id,
                error=str(e),
            )
            return math.inf
        if balance is None:
            return 0.0
        try:
            return float(balance)
        except (TypeError, ValueError):
            return 0.0

    def withdraw(self, player: ChatPlayer, currency_id: str, amount: float, reason: str) -> bool:
        """
        Debit amount from the player. Called at most once per accepted message.

        Returns True when nothing needs to be charged or the economy is not ready.
        """
        if amount <= 0 or not self.is_ready():
            return True
        assert self.provider is not None
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            return False
        try:
            return bool(self.provider.debit(player, currency_id, value, reason or ""))
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: A failing debit counts as refused
            logger.warning(
                "Economy debit failed",
                player_id=str(player.player_id),
                currency_id=currency_id,
                amount=amount,
                error=str(e),
            )
            return False

    def get_top_holder_tag(self, currency_id: str) -> str:
        return self._top_holder(currency_id, "get_top_holder_tag")

    def get_top_holder_name(self, currency_id: str) -> str:
        return self._top_holder(currency_id, "get_top_holder_name")

    def _top_holder(self, currency_id: str, method: str) -> str:
        if not self.is_ready():
            return ""
        assert self.provider is not None
        try:
            value = getattr(self.provider, method)(currency_id)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Display lookups degrade to empty
            logger.warning("Economy top holder lookup failed", currency_id=currency_id, lookup=method, error=str(e))
            return ""
        return "" if value is None else str(value)
