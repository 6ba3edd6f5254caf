"""
Placeholder values and %macro% expansion for channel formats.

Macros look like %namespace_arg% and resolve against a small fixed table.
Unknown macros are left in the text exactly as written.
"""

import math
import re

from ..integration.economy import EconomyService
from ..integration.permissions import PermissionService
from ..models.channel import Channel
from ..models.player import ChatPlayer
from ..utils.number_format import format_compact

MACRO_PATTERN = re.compile(r"%([a-z0-9_]+)%", re.IGNORECASE)

PERMISSION_NAMESPACES = ("luckperms", "permissions")
ECONOMY_NAMESPACES = ("economy", "nighteconomy")
TOP_HOLDER_TAG_SUFFIXES = ("tycoon", "tag")
TOP_HOLDER_NAME_SUFFIX = "tycoonname"
BALANCE_SUFFIX = "balance"


class PlaceholderResolver:
    """Builds the per-message placeholder map and expands macros."""

    def __init__(self, permissions: PermissionService, economy: EconomyService) -> None:
        self.permissions = permissions
        self.economy = economy

    def expand_macros(self, text: str | None, channel: Channel, sender: ChatPlayer) -> str:
        """Replace every known %macro% in text."""
        if not text:
            return ""
        if "%" not in text:
            return text
        return MACRO_PATTERN.sub(lambda match: self._resolve_macro(match, sender), text)

    def _resolve_macro(self, match: re.Match[str], sender: ChatPlayer) -> str:
        body = match.group(1).lower()
        namespace, _, rest = body.partition("_")

        if namespace == "player":
            if not rest:
                return sender.name
            # %player_click% is resolved client side
            return match.group(0)

        if namespace in PERMISSION_NAMESPACES:
            if rest == "prefix":
                return self.permissions.get_prefix(sender)
            if rest == "suffix":
                return self.permissions.get_suffix(sender)
            return match.group(0)

        if namespace in ECONOMY_NAMESPACES and rest:
            return self._resolve_economy(rest, sender)

        return match.group(0)

    def _resolve_economy(self, rest: str, sender: ChatPlayer) -> str:
        currency_id, _, suffix = rest.rpartition("_")
        if suffix not in (*TOP_HOLDER_TAG_SUFFIXES, TOP_HOLDER_NAME_SUFFIX, BALANCE_SUFFIX):
            # %economy_<currency>% is the balance
            currency_id, suffix = rest, ""
        if not currency_id:
            return ""

        if suffix in TOP_HOLDER_TAG_SUFFIXES:
            return self.economy.get_top_holder_tag(currency_id)
        if suffix == TOP_HOLDER_NAME_SUFFIX:
            return self.economy.get_top_holder_name(currency_id)
        if not self.economy.is_ready():
            return format_compact(0.0)
        return format_compact(self.economy.get_balance(sender, currency_id))

    def build_placeholders(self, channel: Channel, sender: ChatPlayer, message: str) -> dict[str, str]:
        """Placeholder map for one rendered message; keys are lowercase token ids."""
        placeholders = {
            "channel": channel.id[:1].upper() + channel.id[1:],
            "prefix": self.permissions.get_prefix(sender),
            "suffix": self.permissions.get_suffix(sender),
            "nick": sender.name,
            "message": message,
            "money": "",
            "money_tycoon": "",
        }
        currency = channel.currency
        if currency.enabled and self.economy.is_ready():
            balance = self.economy.get_balance(sender, currency.currency_id)
            if math.isfinite(balance):
                placeholders["money"] = format_compact(balance)
            placeholders["money_tycoon"] = self.economy.get_top_holder_tag(currency.currency_id)
        return placeholders
