"""
Channel and tag definitions.

Channels are immutable once built: the registry shares them across threads
and replaces the whole set on reload instead of mutating a channel in place.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

DEFAULT_LOCAL_RADIUS = 100.0


class ChannelType(str, Enum):
    """Audience rule of a channel."""

    LOCAL = "LOCAL"
    GLOBAL = "GLOBAL"
    STAFF = "STAFF"


@dataclass(frozen=True)
class TagDefinition:
    """
    An interactive fragment usable as {id} inside a channel format.

    hover holds candidate text lines (the first one is the rendered text when
    no placeholder overrides it), suggest holds tooltip lines and
    suggest_command the command offered on click.
    """

    id: str
    hover: tuple[str, ...] = ()
    suggest: tuple[str, ...] = ()
    suggest_command: tuple[str, ...] = ()
    permission: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", self.id.lower())
        object.__setattr__(self, "hover", tuple(self.hover))
        object.__setattr__(self, "suggest", tuple(self.suggest))
        object.__setattr__(self, "suggest_command", tuple(self.suggest_command))
        if self.permission is not None and not self.permission.strip():
            object.__setattr__(self, "permission", None)


@dataclass(frozen=True)
class CurrencySettings:
    """Economy settings of a channel."""

    enabled: bool = False
    currency_id: str = "money"
    min_balance: float = 0.0
    message_cost: float = 0.0
    show_message_cost: bool = False

    @property
    def applies(self) -> bool:
        """True when sending on the channel touches the economy at all."""
        return self.enabled and (self.message_cost > 0 or self.min_balance > 0)


@dataclass(frozen=True)
class Channel:
    """A named scope of chat with its own audience rule, format and policies."""

    id: str
    type: ChannelType
    permission: str
    commands: tuple[str, ...] = ()
    radius: float = 0.0
    delay_seconds: float = 0.0
    mentionable: bool = True
    highlight: bool = False
    prevent_capslock: bool = False
    currency: CurrencySettings = field(default_factory=CurrencySettings)
    format: str = ""
    spy_format: str = ""
    tags: Mapping[str, TagDefinition] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "id", self.id.lower())
        object.__setattr__(self, "commands", _dedupe_aliases(self.commands))
        object.__setattr__(self, "tags", MappingProxyType({k.lower(): v for k, v in dict(self.tags).items()}))

    @property
    def effective_radius(self) -> float:
        """Radius used for LOCAL delivery; non-positive values fall back to the default."""
        return DEFAULT_LOCAL_RADIUS if self.radius <= 0 else self.radius

    def get_tag(self, tag_id: str | None) -> TagDefinition | None:
        """Look up a tag by id, case-insensitively."""
        if tag_id is None:
            return None
        return self.tags.get(tag_id.lower())

    def has_alias(self, alias: str) -> bool:
        """True if alias names this channel, case-insensitively."""
        return alias.lower() in self.commands


def _dedupe_aliases(aliases: Iterable[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for alias in aliases:
        alias = alias.strip().lower()
        if alias:
            seen.setdefault(alias, None)
    return tuple(seen)


def fallback_local_channel() -> Channel:
    """The local channel injected when no definition provides one."""
    return Channel(
        id="local",
        type=ChannelType.LOCAL,
        permission="chatrelay.channel.local",
        commands=("l", "local"),
        radius=DEFAULT_LOCAL_RADIUS,
        mentionable=True,
        format="&e{prefix} {nick}&f: &e{message}",
        spy_format="&dSPY &e{prefix} {nick}&f: &e{message}",
    )
