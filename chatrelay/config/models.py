"""
Pydantic-based configuration models for chatrelay.

Each section is its own BaseSettings with an environment prefix so hosts can
override individual knobs without shipping a config file.
"""

import json
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode

from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_EVASION_TLDS = [
    "app",
    "biz",
    "br",
    "co",
    "com",
    "de",
    "dev",
    "eu",
    "gg",
    "info",
    "io",
    "ly",
    "me",
    "net",
    "online",
    "org",
    "ru",
    "shop",
    "site",
    "store",
    "tk",
    "tv",
    "uk",
    "us",
    "xyz",
]


def _parse_env_list(candidate: Any) -> list[str]:
    """Parse a value from the environment as JSON list or CSV."""
    if candidate is None:
        return []
    if isinstance(candidate, (list, tuple, set, frozenset)):
        return [str(item).strip() for item in candidate if str(item).strip()]
    s = str(candidate).strip()
    if not s:
        return []
    try:
        loaded = json.loads(s)
        if isinstance(loaded, list):
            return [str(item).strip() for item in loaded if str(item).strip()]
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in s.split(",") if item.strip()]


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    environment: str = Field(default="local", description="Logging environment")
    level: str = Field(default="INFO", description="Log level")
    disable_logging: bool = Field(default=False, description="Disable all logging")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate logging environment."""
        valid_environments = ["local", "unit_test", "development", "production"]
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of {valid_environments}, got '{v}'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}, got '{v}'")
        return v_upper

    model_config = {"env_prefix": "LOGGING_", "case_sensitive": False, "extra": "ignore"}


class ChannelBehaviourConfig(BaseSettings):
    """Channel-wide delivery behaviour."""

    show_message: bool = Field(default=True, description="Tell the sender when nobody else received a message")
    ignore_global_messages: bool = Field(
        default=True, description="Respect ignore and player mutes in GLOBAL channels"
    )

    model_config = {"env_prefix": "CHAT_CHANNEL_", "case_sensitive": False, "extra": "ignore"}


class ReplaceConfig(BaseSettings):
    """Text normalization and keyword replacement."""

    enable: bool = Field(default=True, description="Enable the replace pipeline")
    enable_default: bool = Field(default=True, description="Apply the replace pipeline to every message")
    caps_message: bool = Field(default=True, description="Capitalize the first letter and terminate with punctuation")
    fix_message: bool = Field(default=True, description="Normalize whitespace around punctuation")
    replacers: Annotated[list[str], NoDecode] = Field(
        default_factory=list, description="Replacement rules in the form 'a,b -> c'"
    )

    @field_validator("replacers", mode="before")
    @classmethod
    def parse_replacers(cls, v: Any) -> list[str]:
        """Accept JSON lists, CSV strings and python lists."""
        if isinstance(v, str):
            # A bare rule contains commas of its own; only split JSON arrays
            try:
                loaded = json.loads(v)
            except json.JSONDecodeError:
                return [v.strip()] if v.strip() else []
            return _parse_env_list(loaded)
        return _parse_env_list(v)

    model_config = {"env_prefix": "CHAT_REPLACE_", "case_sensitive": False, "extra": "ignore"}


class CapslockConfig(BaseSettings):
    """Caps-lock detection thresholds."""

    enable: bool = Field(default=True, description="Enable caps-lock detection")
    min_length: int = Field(default=6, description="Minimum message and letter count before detection applies")
    percentage: int = Field(default=25, description="Uppercase percentage above which a message is lowercased")

    @field_validator("percentage")
    @classmethod
    def validate_percentage(cls, v: int) -> int:
        """Validate the threshold is a percentage."""
        if v < 0 or v > 100:
            raise ValueError("percentage must be between 0 and 100")
        return v

    @field_validator("min_length")
    @classmethod
    def validate_min_length(cls, v: int) -> int:
        """Validate the minimum length is not negative."""
        if v < 0:
            raise ValueError("min_length must not be negative")
        return v

    model_config = {"env_prefix": "CHAT_CAPSLOCK_", "case_sensitive": False, "extra": "ignore"}


class UrlFilterConfig(BaseSettings):
    """URL and domain blocking."""

    enable: bool = Field(default=True, description="Enable URL filtering")
    concatenate: bool = Field(default=True, description="Detect spaced-dot evasion such as 'example . com'")
    punishment_command: str = Field(
        default="/mute @player Advertising on the server.",
        description="Command executed when a blocked domain is posted; @player and @uuid are substituted",
    )
    allowed_domains: Annotated[list[str], NoDecode] = Field(
        default_factory=list, description="Domains (and their subdomains) that may be posted"
    )
    evasion_tlds: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_EVASION_TLDS),
        description=(
            "Top-level domains the spaced-dot detector treats as a domain; spaced posts such as"
            " 'evil . click' pass unless their TLD is listed here"
        ),
    )

    @field_validator("allowed_domains", "evasion_tlds", mode="before")
    @classmethod
    def parse_domains(cls, v: Any) -> list[str]:
        """Parse and lowercase domain lists."""
        return [item.lower() for item in _parse_env_list(v)]

    model_config = {"env_prefix": "CHAT_URLS_", "case_sensitive": False, "extra": "ignore"}


class TellConfig(BaseSettings):
    """Private message format."""

    format: str = Field(
        default="&8[%send%] -> [%receiver%]:&r %message%", description="Private message format"
    )

    model_config = {"env_prefix": "CHAT_TELL_", "case_sensitive": False, "extra": "ignore"}


class PathsConfig(BaseSettings):
    """Filesystem locations."""

    channels_dir: str = Field(default="data/chat/channels", description="Directory of channel definition files")
    players_dir: str = Field(default="data/chat/players", description="Directory of per-player chat state files")

    model_config = {"env_prefix": "CHAT_PATHS_", "case_sensitive": False, "extra": "ignore"}


class PermissionNodesConfig(BaseSettings):
    """Permission node names consulted by the chat pipeline."""

    visibility_permission: str = Field(default="chatrelay.channel.staff", description="Receive STAFF channels")
    baseline_permission: str = Field(
        default="", description="Baseline access to non-staff channels; empty grants it to every connected player"
    )
    bypass_delay_permission: str = Field(default="chatrelay.bypass.delay", description="Bypass every channel delay")
    reload_permission: str = Field(default="chatrelay.reload", description="Reload channel definitions")
    spy_permission: str = Field(default="chatrelay.spy", description="Toggle channel spying")

    model_config = {"env_prefix": "CHAT_PERMS_", "case_sensitive": False, "extra": "ignore"}


class AppConfig(BaseSettings):
    """Root configuration for the chat engine."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    channel: ChannelBehaviourConfig = Field(default_factory=ChannelBehaviourConfig)
    replace: ReplaceConfig = Field(default_factory=ReplaceConfig)
    capslock: CapslockConfig = Field(default_factory=CapslockConfig)
    urls: UrlFilterConfig = Field(default_factory=UrlFilterConfig)
    tell: TellConfig = Field(default_factory=TellConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    permissions: PermissionNodesConfig = Field(default_factory=PermissionNodesConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "case_sensitive": False, "extra": "ignore"}

    def to_logging_dict(self) -> dict[str, Any]:
        """Convert to the dictionary shape setup_logging() expects."""
        return {"logging": self.logging.model_dump()}
