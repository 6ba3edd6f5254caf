"""
Template renderer for channel formats.

A format is plain text with {token} placeholders. Tokens naming a channel tag
render as interactive runs (tooltip and click-to-suggest); any other token
is plain text from the placeholder map. Plain text is merged with
single-space join logic so empty tokens never leave doubled spaces, and it
is flushed as its own run right before each tag run.
"""

import re
from collections.abc import Mapping

from ..integration.permissions import PermissionService
from ..models.channel import Channel, TagDefinition
from ..models.player import ChatPlayer
from ..models.rendered import RenderedMessage, TextRun
from .placeholders import PlaceholderResolver

TOKEN_PATTERN = re.compile(r"\{([a-z0-9_]+)\}", re.IGNORECASE)


def join_with_single_space(buffer: str, chunk: str) -> str:
    """
    Return chunk adjusted for appending to buffer.

    Leading spaces are dropped when buffer already ends in a space; a single
    space is injected when neither side has one and buffer is non-empty.
    """
    if not chunk:
        return ""
    buffer_ends_with_space = buffer.endswith(" ")
    chunk_starts_with_space = chunk.startswith(" ")
    if buffer_ends_with_space and chunk_starts_with_space:
        return chunk.lstrip(" ")
    if buffer and not buffer_ends_with_space and not chunk_starts_with_space:
        return " " + chunk
    return chunk


class TemplateRenderer:
    """Stateless: the same inputs always produce the same RenderedMessage."""

    def __init__(self, placeholders: PlaceholderResolver, permissions: PermissionService) -> None:
        self.placeholders = placeholders
        self.permissions = permissions

    def render(
        self,
        format_string: str | None,
        placeholders: Mapping[str, str],
        channel: Channel,
        player: ChatPlayer,
    ) -> RenderedMessage:
        """
        Render a channel format for player.

        Args:
            format_string: Format with {token} and %macro% placeholders
            placeholders: Token values keyed by lowercase token id
            channel: Supplies tag definitions
            player: The acting player, used for macros and tag permissions

        Returns:
            Runs in source order
        """
        format_string = format_string or ""
        runs: list[TextRun] = []
        buffer = ""
        last = 0

        for match in TOKEN_PATTERN.finditer(format_string):
            chunk = format_string[last : match.start()]
            if chunk:
                chunk = self.placeholders.expand_macros(chunk, channel, player)
                buffer += join_with_single_space(buffer, chunk)

            token = match.group(1).lower()
            tag = channel.get_tag(token)
            if tag is not None:
                tag_run = self._render_tag(tag, placeholders.get(token, ""), channel, player)
                if tag_run is not None:
                    if buffer:
                        runs.append(TextRun(buffer))
                        buffer = ""
                    runs.append(tag_run)
            else:
                buffer += join_with_single_space(buffer, placeholders.get(token, "") or "")

            last = match.end()

        tail = format_string[last:]
        if tail:
            tail = self.placeholders.expand_macros(tail, channel, player)
            buffer += join_with_single_space(buffer, tail)

        if buffer:
            runs.append(TextRun(buffer))
        return RenderedMessage(tuple(runs))

    def _render_tag(
        self, tag: TagDefinition, override: str, channel: Channel, player: ChatPlayer
    ) -> TextRun | None:
        if tag.permission and not self.permissions.has_permission(player, tag.permission):
            return None

        expand = self.placeholders.expand_macros
        text = expand(override, channel, player).strip()
        if not text:
            first_hover = next((line for line in tag.hover if line and line.strip()), "")
            text = expand(first_hover, channel, player).strip()
        if not text:
            return None

        tooltip_lines = [line for line in (expand(s, channel, player) for s in tag.suggest) if line.strip()]
        hover = "\n".join(tooltip_lines) if tooltip_lines else None

        suggest_command = None
        if tag.suggest_command:
            command = expand(tag.suggest_command[0], channel, player)
            if command.strip():
                suggest_command = command

        return TextRun(text, hover=hover, suggest_command=suggest_command)
