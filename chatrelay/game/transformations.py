"""Per-channel message transformations applied after filtering and before rendering."""

import math
import re
from collections.abc import Iterable, Mapping

from ..models.channel import Channel
from ..models.player import ChatPlayer

MENTION_PATTERN = re.compile(r"(?<!\w)@([A-Za-z0-9_]{3,16})(?![A-Za-z0-9_])")
MENTION_COLOR = "&6"
RESET_COLOR = "&r"

CAPSLOCK_MIN_LETTERS = 6
CAPSLOCK_MIN_UPPERS = 5
CAPSLOCK_RATIO = 0.7


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def apply_channel_transformations(channel: Channel, message: str | None) -> str:
    """Soften caps-lock and capitalize the first letter, as the channel asks."""
    result = message or ""
    if channel.prevent_capslock:
        letters = sum(1 for char in result if char.isalpha())
        uppers = sum(1 for char in result if char.isalpha() and char.isupper())
        threshold = max(CAPSLOCK_MIN_UPPERS, _round_half_up(letters * CAPSLOCK_RATIO))
        if letters >= CAPSLOCK_MIN_LETTERS and uppers >= threshold:
            result = result.lower()
    if channel.highlight and result.strip() and result[0].isalpha():
        result = result[0].upper() + result[1:]
    return result


def find_mentioned_players(message: str | None, online: Iterable[ChatPlayer]) -> dict[str, ChatPlayer]:
    """
    Map each distinct lowercase @mention to the first online player with that name.

    Mentions that match nobody are left out.
    """
    if not message:
        return {}
    players = list(online)
    mentioned: dict[str, ChatPlayer] = {}
    for match in MENTION_PATTERN.finditer(message):
        lowered = match.group(1).lower()
        if lowered in mentioned:
            continue
        for player in players:
            if player.name.lower() == lowered:
                mentioned[lowered] = player
                break
    return mentioned


def highlight_mentions(message: str, mentioned: Mapping[str, ChatPlayer]) -> str:
    """Recolour matched mentions as @DisplayName; unmatched ones pass through."""
    if not mentioned or not message:
        return message

    def replace(match: re.Match[str]) -> str:
        player = mentioned.get(match.group(1).lower())
        if player is None:
            return match.group(0)
        return f"{MENTION_COLOR}@{player.name}{RESET_COLOR}"

    return MENTION_PATTERN.sub(replace, message)
