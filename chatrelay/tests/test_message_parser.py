"""
Tests for resolving raw chat input to a channel.
"""

from ..config.models import PermissionNodesConfig
from ..game.channel_registry import ChannelRegistry
from ..game.eligibility import EligibilityPolicy
from ..game.message_parser import parse_incoming
from ..integration.economy import EconomyService
from ..integration.permissions import PermissionService
from ..models.channel import Channel, ChannelType
from .mock_providers import FakePermissionProvider, make_player, standard_channels


class TestParseIncoming:
    def setup_method(self):
        self.provider = FakePermissionProvider()
        self.eligibility = EligibilityPolicy(PermissionService(self.provider), EconomyService())
        self.registry = ChannelRegistry(standard_channels())
        self.player = make_player("Alice")

    def parse(self, raw):
        return parse_incoming(self.player, raw, self.registry, self.eligibility)

    def test_plain_text_goes_to_local_unchanged(self):
        parsed = self.parse("hello world")
        assert parsed.channel.id == "local"
        assert parsed.message == "hello world"

    def test_blank_input_goes_to_local_with_empty_message(self):
        assert self.parse("   ").message == ""
        assert self.parse(None).channel.id == "local"

    def test_alias_is_stripped_and_case_insensitive(self):
        parsed = self.parse("G   hey there  ")
        assert parsed.channel.id == "global"
        assert parsed.message == "hey there"

    def test_bang_shortcut_targets_global(self):
        parsed = self.parse("! hello")
        assert parsed.channel.id == "global"
        assert parsed.message == "hello"

    def test_at_shortcut_requires_staff_permission(self):
        parsed = self.parse("@ secret")
        assert parsed.channel.id == "local"
        assert parsed.message == "@ secret"

        self.provider.grant(self.player, "chatrelay.channel.staff")
        parsed = self.parse("@ secret")
        assert parsed.channel.id == "staff"
        assert parsed.message == "secret"

    def test_alias_without_body_is_plain_text(self):
        parsed = self.parse("g")
        assert parsed.channel.id == "local"
        assert parsed.message == "g"

    def test_shortcut_glued_to_word_is_plain_text(self):
        parsed = self.parse("!hello")
        assert parsed.channel.id == "local"
        assert parsed.message == "!hello"

    def test_multiline_body_is_kept(self):
        parsed = self.parse("g line one\nline two")
        assert parsed.channel.id == "global"
        assert parsed.message == "line one\nline two"

    def test_alias_collision_picks_first_usable_channel(self):
        eligibility = EligibilityPolicy(
            PermissionService(self.provider),
            EconomyService(),
            PermissionNodesConfig(baseline_permission="chat.basic"),
        )
        registry = ChannelRegistry(
            [
                Channel(id="alpha", type=ChannelType.GLOBAL, permission="perm.alpha", commands=("x",)),
                Channel(id="beta", type=ChannelType.GLOBAL, permission="perm.beta", commands=("x",)),
            ]
        )
        self.provider.grant(self.player, "perm.beta")

        parsed = parse_incoming(self.player, "x hi", registry, eligibility)

        assert parsed.channel.id == "beta"
        assert parsed.message == "hi"

    def test_unusable_alias_falls_back_to_local_with_raw_text(self):
        parsed = self.parse("s hidden message")
        assert parsed.channel.id == "local"
        assert parsed.message == "s hidden message"
