"""
Resolve raw chat input to a channel and the message left after alias stripping.
"""

import re
from dataclasses import dataclass

from ..models.channel import Channel
from ..models.player import ChatPlayer
from .channel_registry import ChannelRegistry
from .eligibility import EligibilityPolicy

FIRST_TOKEN_PATTERN = re.compile(r"^([!@]|\S+)\s+(.*)$", re.DOTALL)

# Single-character shortcuts and the channel id each one targets
SHORTCUTS = {"!": "global", "@": "staff"}


@dataclass(frozen=True)
class ParsedMessage:
    channel: Channel
    message: str


def parse_incoming(
    sender: ChatPlayer, raw: str | None, registry: ChannelRegistry, eligibility: EligibilityPolicy
) -> ParsedMessage:
    """
    Pick the channel for a piece of raw chat input.

    Blank input goes to local with an empty message. A leading "!" or "@"
    targets global or staff when that channel exists and the sender may use
    it. Otherwise the first word is tried as an alias, in registry order,
    and the first channel the sender may use wins. Anything else goes to
    local unchanged.
    """
    snapshot = registry.snapshot()
    local = snapshot.by_id["local"]

    if raw is None or not raw.strip():
        return ParsedMessage(local, "")

    match = FIRST_TOKEN_PATTERN.match(raw)
    if match:
        head = match.group(1)
        tail = (match.group(2) or "").strip()

        if head in SHORTCUTS:
            target = snapshot.by_id.get(SHORTCUTS[head])
            if target is not None and eligibility.can_use(sender, target):
                return ParsedMessage(target, tail)
        else:
            for channel_id in snapshot.aliases.get(head.lower(), ()):
                channel = snapshot.by_id[channel_id]
                if eligibility.can_use(sender, channel):
                    return ParsedMessage(channel, tail)

    return ParsedMessage(local, raw)
