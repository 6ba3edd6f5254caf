"""
Permission lookups with fail-open degradation.

When no provider is installed, or the provider raises, lookups fall back to
a coarse binary check: operators hold every node, everyone else holds none.
"""

from ..models.player import ChatPlayer
from ..structured_logging.enhanced_logging_config import get_logger
from .protocols import PermissionProvider

logger = get_logger("communications.permissions")


class PermissionService:
    """Wraps an optional PermissionProvider."""

    def __init__(self, provider: PermissionProvider | None = None) -> None:
        self.provider = provider
        if provider is None:
            logger.warning("No permission provider installed, falling back to operator checks")

    def set_provider(self, provider: PermissionProvider | None) -> None:
        """Install or remove the provider at runtime."""
        self.provider = provider
        logger.info("Permission provider updated", available=provider is not None)

    def has_permission(self, player: ChatPlayer, node: str | None) -> bool:
        """Check a node; an empty node is always granted."""
        if not node:
            return True
        if self.provider is None:
            return player.is_operator
        try:
            return bool(self.provider.has_permission(player, node))
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Provider faults must not abort chat
            logger.warning(
                "Permission provider failed, using operator fallback",
                player_id=str(player.player_id),
                node=node,
                error=str(e),
                error_type=type(e).__name__,
            )
            return player.is_operator

    def get_prefix(self, player: ChatPlayer) -> str:
        return self._meta(player, "get_prefix")

    def get_suffix(self, player: ChatPlayer) -> str:
        return self._meta(player, "get_suffix")

    def _meta(self, player: ChatPlayer, method: str) -> str:
        if self.provider is None:
            return ""
        try:
            value = getattr(self.provider, method)(player)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Provider faults must not abort chat
            logger.warning(
                "Permission provider meta lookup failed",
                player_id=str(player.player_id),
                lookup=method,
                error=str(e),
            )
            return ""
        if value is None or not str(value).strip():
            return ""
        return str(value)
