"""
Message filter pipeline for chat channels.

Stages run in a fixed order: whitespace normalization, keyword replacement,
capitalization, caps-lock detection and finally URL blocking. A blocked URL
stops the pipeline, runs the configured punishment command and rejects the
message.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from ..config.models import AppConfig
from ..exceptions import ErrorContext, URLBlocked
from ..integration.protocols import CommandExecutor
from ..models.channel import Channel
from ..models.player import ChatPlayer
from ..structured_logging.enhanced_logging_config import get_logger

logger = get_logger("communications.message_filter")

_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"

# Optional scheme or www, then dot-separated labels ending in an alphabetic TLD
DOMAIN_PATTERN = re.compile(
    rf"\b(?:(?:https?://)?(?:www\.)?)({_LABEL}(?:\.{_LABEL})*\.[a-z]{{2,63}})\b",
    re.IGNORECASE,
)

# "example .com", "example. com", "example . com"
SPACED_DOT_PATTERN = re.compile(
    rf"\b({_LABEL}(?:\.{_LABEL})*)\s*\.\s*([a-z]{{2,63}})\b",
    re.IGNORECASE,
)

WHITESPACE_PATTERN = re.compile(r"\s+")
PUNCTUATION_PATTERN = re.compile(r"\s*([,.!?;:]+)\s*")
MULTI_SPACE_PATTERN = re.compile(r"\s{2,}")
RULE_SEPARATOR = "->"


@dataclass(frozen=True)
class ReplacementRule:
    """A compiled 'a,b -> c' rule."""

    pattern: re.Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        replacement = self.replacement
        return self.pattern.sub(lambda _match: replacement, text)


def compile_rules(lines: Iterable[str]) -> list[ReplacementRule]:
    """
    Compile replacement rules, skipping malformed lines.

    Each token matches case-insensitively and only as a whole word, so a rule
    for "bad" leaves "badge" alone.
    """
    rules: list[ReplacementRule] = []
    for line in lines:
        if line is None:
            continue
        text = line.strip()
        index = text.find(RULE_SEPARATOR)
        if index <= 0:
            if text:
                logger.warning("Skipping replacement rule without '->'", rule=text)
            continue
        left = text[:index].strip()
        right = text[index + len(RULE_SEPARATOR) :].strip()
        tokens = [re.escape(token.strip()) for token in left.split(",") if token.strip()]
        if not tokens:
            continue
        pattern = re.compile(rf"(?<!\w)(?:{'|'.join(tokens)})(?!\w)", re.IGNORECASE)
        rules.append(ReplacementRule(pattern, right))
    return rules


def _space_punctuation(match: re.Match[str]) -> str:
    marks = match.group(1)
    text = match.string
    before = text[match.start() - 1] if match.start() > 0 else ""
    after = text[match.end()] if match.end() < len(text) else ""
    # Keep "3.14", "docs.example.org" and "12:30" intact
    if match.group(0) == marks and marks in (".", ":") and before.isalnum() and after.isalnum():
        return marks
    return f"{marks} "


def normalize_spaces(text: str) -> str:
    """Trim, collapse whitespace, drop space before punctuation and force one space after it."""
    result = WHITESPACE_PATTERN.sub(" ", text.strip())
    result = PUNCTUATION_PATTERN.sub(_space_punctuation, result)
    result = MULTI_SPACE_PATTERN.sub(" ", result)
    return result.strip()


def capitalize_and_punctuate(text: str) -> str:
    """Capitalize a leading letter and end the text with '.', '!' or '?'."""
    if not text:
        return text
    if text[0].isalpha():
        text = text[0].upper() + text[1:]
    if not text.endswith((".", "!", "?")):
        text += "."
    return text


def is_allowed_domain(domain: str, allowed: Iterable[str]) -> bool:
    """True if domain equals an allowed domain or is one of its subdomains."""
    domain = domain.lower()
    for entry in allowed:
        entry = entry.lower()
        if domain == entry or domain.endswith("." + entry):
            return True
    return False


class MessageFilterPipeline:
    """Sequential text transforms and validation applied to every message."""

    def __init__(self, config: AppConfig, command_executor: CommandExecutor | None = None) -> None:
        self.config = config
        self.command_executor = command_executor
        self._rules: list[ReplacementRule] = []
        self.rebuild_from_config()

    @property
    def rules(self) -> tuple[ReplacementRule, ...]:
        return tuple(self._rules)

    def rebuild_from_config(self, config: AppConfig | None = None) -> None:
        """Recompile replacement rules, optionally switching to a new configuration."""
        if config is not None:
            self.config = config
        replace = self.config.replace
        if not replace.enable or not replace.replacers:
            self._rules = []
        else:
            self._rules = compile_rules(replace.replacers)
        logger.info("Message filter rules rebuilt", rule_count=len(self._rules))

    def process(self, sender: ChatPlayer, channel: Channel, text: str) -> str:
        """
        Run the pipeline over one message.

        Args:
            sender: The player who sent the message
            channel: The target channel
            text: The message after alias stripping

        Returns:
            The transformed message

        Raises:
            URLBlocked: If the message contains a domain outside the allow-list
        """
        config = self.config
        message = text

        if config.replace.enable and config.replace.enable_default:
            if config.replace.fix_message:
                message = normalize_spaces(message)
            for rule in self._rules:
                message = rule.apply(message)
            if config.replace.caps_message:
                message = capitalize_and_punctuate(message)

        if channel.prevent_capslock and config.capslock.enable:
            message = self._soften_capslock(message)

        if config.urls.enable:
            blocked = self.find_blocked_domain(message)
            if blocked is not None:
                logger.warning(
                    "Blocked domain in chat message",
                    player_id=str(sender.player_id),
                    player_name=sender.name,
                    channel_id=channel.id,
                    domain=blocked,
                )
                self._run_punishment(sender)
                raise URLBlocked(blocked, ErrorContext(player_id=str(sender.player_id), channel_id=channel.id))

        return message

    def _soften_capslock(self, message: str) -> str:
        settings = self.config.capslock
        if len(message) < settings.min_length:
            return message
        letters = 0
        uppers = 0
        for char in message:
            if char.isalpha():
                letters += 1
                if char.isupper():
                    uppers += 1
        if letters < settings.min_length:
            return message
        percentage = uppers * 100.0 / letters
        if percentage <= settings.percentage:
            return message
        message = message.lower()
        if self.config.replace.caps_message:
            message = capitalize_and_punctuate(message)
        return message

    def find_blocked_domain(self, message: str) -> str | None:
        """Return the first domain outside the allow-list, lowercased, or None."""
        allowed = self.config.urls.allowed_domains
        for match in DOMAIN_PATTERN.finditer(message):
            domain = match.group(1).lower()
            if not is_allowed_domain(domain, allowed):
                return domain

        if not self.config.urls.concatenate:
            return None

        tlds = set(self.config.urls.evasion_tlds)
        position = 0
        while True:
            match = SPACED_DOT_PATTERN.search(message, position)
            if match is None:
                return None
            tld = match.group(2).lower()
            if tld in tlds:
                domain = f"{match.group(1)}.{tld}".lower()
                if not is_allowed_domain(domain, allowed):
                    return domain
            # The TLD word may be the first label of the next candidate
            position = match.start(2)

    def _run_punishment(self, sender: ChatPlayer) -> None:
        template = self.config.urls.punishment_command
        if not template or not template.strip():
            return
        if self.command_executor is None:
            logger.warning("No command executor installed, skipping URL punishment", player_name=sender.name)
            return
        command = template.replace("@player", sender.name).replace("@uuid", str(sender.player_id))
        try:
            self.command_executor.execute(command)
        except Exception as e:  # pylint: disable=broad-exception-caught  # Reason: Punishment failures must not abort the filter
            logger.warning("Failed to execute punishment command", command=command, error=str(e))
