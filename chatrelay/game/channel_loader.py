"""
Channel definition loading.

Channels live one per JSON file in a directory. Each file is validated on its
own: a malformed file or tag is skipped with a warning and never blocks the
others. When the directory holds no definitions the default local, global and
staff channels are written first.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import ChannelConfigurationError
from ..models.channel import Channel, ChannelType, CurrencySettings, TagDefinition
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    raise ValueError("expected a string or a list of strings")


def _first_or_empty(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        for item in value:
            if item is not None:
                return str(item)
    return ""


class TagDefinitionModel(BaseModel):
    """One entry of a channel's Tags or Custom_Tags array."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    hover: list[str] = Field(default_factory=list)
    suggest: list[str] = Field(default_factory=list)
    suggest_command: list[str] = Field(default_factory=list, alias="suggestCommand")
    permission: str | None = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("tag id must not be blank")
        return v.strip().lower()

    @field_validator("hover", "suggest", "suggest_command", mode="before")
    @classmethod
    def coerce_lines(cls, v: Any) -> list[str]:
        return _as_str_list(v)

    def to_definition(self) -> TagDefinition:
        return TagDefinition(
            id=self.id,
            hover=tuple(self.hover),
            suggest=tuple(self.suggest),
            suggest_command=tuple(self.suggest_command),
            permission=self.permission,
        )


class ChannelDefinition(BaseModel):
    """Validated content of one channel file."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = "local"
    type: ChannelType = ChannelType.LOCAL
    commands: list[str] = Field(default_factory=list)
    permission: str | None = None
    distance: float = 0.0
    delay_message: float = Field(default=0.0, alias="delay-message")
    mentionable: bool = True
    highlight: bool = False
    prevent_capslock: bool = Field(default=False, alias="prevent-capslock")
    currency: bool = False
    type_currency: str = Field(default="money", alias="type-currency")
    min_balance: float = Field(default=0.0, alias="min-balance")
    message_cost: float = Field(default=0.0, alias="message-cost")
    show_message_cost: bool = Field(default=False, alias="show-message-cost")
    format: str = ""
    spy: str = ""
    tags: list[Any] = Field(default_factory=list, alias="Tags")
    custom_tags: list[Any] = Field(default_factory=list, alias="Custom_Tags")

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("channel id must not be blank")
        return v.strip().lower()

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("commands", mode="before")
    @classmethod
    def coerce_commands(cls, v: Any) -> list[str]:
        return _as_str_list(v)

    @field_validator("format", "spy", mode="before")
    @classmethod
    def first_format(cls, v: Any) -> str:
        return _first_or_empty(v)

    @field_validator("distance", "delay_message", "min_balance", "message_cost", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    def build_tags(self, source: str) -> dict[str, TagDefinition]:
        """Parse Tags then Custom_Tags; later ids override earlier ones."""
        tags: dict[str, TagDefinition] = {}
        for table, entries in (("Tags", self.tags), ("Custom_Tags", self.custom_tags)):
            for index, raw in enumerate(entries):
                if not isinstance(raw, dict):
                    logger.warning("Skipping non-table tag entry", source=source, table=table, index=index)
                    continue
                try:
                    tag = TagDefinitionModel.model_validate(raw).to_definition()
                except ValidationError as e:
                    logger.warning(
                        "Skipping malformed tag", source=source, table=table, index=index, error=str(e)
                    )
                    continue
                tags[tag.id] = tag
        return tags

    def to_channel(self, source: str = "<memory>") -> Channel:
        return Channel(
            id=self.id,
            type=self.type,
            permission=self.permission or f"chatrelay.channel.{self.id}",
            commands=tuple(self.commands),
            radius=self.distance,
            delay_seconds=self.delay_message,
            mentionable=self.mentionable,
            highlight=self.highlight,
            prevent_capslock=self.prevent_capslock,
            currency=CurrencySettings(
                enabled=self.currency,
                currency_id=self.type_currency,
                min_balance=self.min_balance,
                message_cost=self.message_cost,
                show_message_cost=self.show_message_cost,
            ),
            format=self.format,
            spy_format=self.spy,
            tags=self.build_tags(source),
        )


def parse_channel(data: dict[str, Any], source: str = "<memory>") -> Channel:
    """
    Build a Channel from already-deserialized data.

    Raises:
        ChannelConfigurationError: If the definition is invalid
    """
    if not isinstance(data, dict):
        raise ChannelConfigurationError("Channel definition must be an object", source=source)
    try:
        definition = ChannelDefinition.model_validate(data)
    except ValidationError as e:
        raise ChannelConfigurationError(f"Invalid channel definition: {e}", source=source) from e
    return definition.to_channel(source)


def load_channel_file(path: Path) -> Channel:
    """
    Load a single channel file.

    Raises:
        ChannelConfigurationError: If the file cannot be read or validated
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ChannelConfigurationError(f"Failed to read channel file: {e}", source=str(path)) from e
    return parse_channel(data, source=str(path))


def load_channels(channels_dir: Path | str, *, write_defaults: bool = True) -> list[Channel]:
    """
    Load every *.json channel definition in channels_dir, sorted by file name.

    Args:
        channels_dir: Directory holding channel files
        write_defaults: Write the default channels when the directory has none

    Returns:
        Channels in load order; the registry adds the fallback local channel
    """
    base = Path(channels_dir)
    try:
        base.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Cannot create channels directory", channels_dir=str(base), error=str(e))
        return []

    if write_defaults and not any(base.glob("*.json")):
        write_default_channels(base)

    channels: list[Channel] = []
    for path in sorted(base.glob("*.json")):
        try:
            channel = load_channel_file(path)
        except ChannelConfigurationError:
            # Logged by the exception itself
            continue
        channels.append(channel)
        logger.info("Loaded channel", channel_id=channel.id, source=path.name, tags=list(channel.tags))

    logger.info("Channels loaded", channel_count=len(channels), channels=[c.id for c in channels])
    return channels


def write_default_channels(base: Path) -> None:
    """Write the default channel files that are not present yet."""
    for file_name, content in DEFAULT_CHANNELS.items():
        path = base / file_name
        if path.exists():
            continue
        try:
            with open(path, "x", encoding="utf-8") as f:
                json.dump(content, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.warning("Failed to write default channel file", path=str(path), error=str(e))


DEFAULT_CHANNELS: dict[str, dict[str, Any]] = {
    "local.json": {
        "id": "local",
        "type": "LOCAL",
        "commands": ["l", "local"],
        "permission": "chatrelay.channel.local",
        "distance": 50.0,
        "delay-message": 5.0,
        "mentionable": False,
        "highlight": False,
        "prevent-capslock": True,
        "format": ["&e{channel_logo} {money_tycoon} {money} {prime} {suffix} {prefix} {nick}&f: &e{message}"],
        "spy": ["&dSPY &e{prefix} {nick}&f: &e{message}"],
        "currency": True,
        "type-currency": "money",
        "min-balance": 0.0,
        "message-cost": 0.0,
        "show-message-cost": False,
        "Tags": [
            {"id": "channel_logo", "hover": ["&e[L]"], "suggest": ["&7Local chat"], "suggestCommand": []},
            {"id": "suffix", "hover": ["&r%luckperms_suffix%"], "suggest": [], "suggestCommand": []},
            {"id": "prefix", "hover": ["&r%luckperms_prefix%"], "suggest": [], "suggestCommand": []},
            {"id": "nick", "hover": ["&r%player%"], "suggest": ["&7Player &e%player%"], "suggestCommand": []},
        ],
        "Custom_Tags": [
            {
                "id": "money_tycoon",
                "hover": ["%economy_money_tycoon%"],
                "suggest": ["&7The richest player", "&fon the server"],
                "suggestCommand": [],
            },
            {
                "id": "money",
                "hover": ["%economy_money_balance%"],
                "suggest": ["&7Check the balance of &e%player%"],
                "suggestCommand": ["money"],
                "permission": "chatrelay.tag.money",
            },
            {
                "id": "prime",
                "hover": ["&6[★]"],
                "suggest": ["&7This player is &bPrime"],
                "suggestCommand": [],
                "permission": "chatrelay.tag.prime",
            },
        ],
    },
    "global.json": {
        "id": "global",
        "type": "GLOBAL",
        "commands": ["g", "global", "!"],
        "permission": "chatrelay.channel.global",
        "distance": 0.0,
        "delay-message": 0.0,
        "mentionable": True,
        "highlight": False,
        "prevent-capslock": True,
        "format": ["&b[G] {suffix} {prefix} {nick}&f: &b{message}"],
        "spy": ["&dSPY &b{prefix} {nick}&f: &b{message}"],
        "currency": False,
    },
    "staff.json": {
        "id": "staff",
        "type": "STAFF",
        "commands": ["s", "staff", "@"],
        "permission": "chatrelay.channel.staff",
        "distance": 0.0,
        "delay-message": 0.0,
        "mentionable": False,
        "highlight": False,
        "prevent-capslock": False,
        "format": ["&d[@] {suffix} {prefix} {nick}&f: &d{message}"],
        "spy": ["&dSPY &d{prefix} {nick}&f: &d{message}"],
        "currency": False,
    },
}
