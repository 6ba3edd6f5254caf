"""
Tests for template rendering and placeholder expansion.
"""

from unittest.mock import Mock

import pytest

from ..game.placeholders import PlaceholderResolver
from ..game.template_renderer import TemplateRenderer, join_with_single_space
from ..integration.economy import EconomyService
from ..integration.permissions import PermissionService
from ..models.channel import Channel, ChannelType, CurrencySettings, TagDefinition
from ..models.rendered import TextRun
from .mock_providers import FakeEconomyProvider, FakePermissionProvider, make_player

PLAIN_CHANNEL = Channel(id="global", type=ChannelType.GLOBAL, permission="p")

TAGGED_CHANNEL = Channel(
    id="local",
    type=ChannelType.LOCAL,
    permission="p",
    tags={
        "channel_logo": TagDefinition(id="channel_logo", hover=("[L]",), suggest=("Local chat",)),
        "nick": TagDefinition(
            id="nick",
            hover=("&r%player%",),
            suggest=("&7Player &e%player%", " "),
            suggest_command=("/msg %player% ",),
        ),
        "prime": TagDefinition(id="prime", hover=("[*]",), permission="tag.prime"),
        "blank": TagDefinition(id="blank", hover=("", "  "), suggest=("never shown",)),
    },
)


@pytest.fixture
def permission_provider():
    return FakePermissionProvider()


@pytest.fixture
def economy_provider():
    return FakeEconomyProvider()


@pytest.fixture
def resolver(permission_provider, economy_provider):
    return PlaceholderResolver(PermissionService(permission_provider), EconomyService(economy_provider))


@pytest.fixture
def renderer(resolver, permission_provider):
    return TemplateRenderer(resolver, PermissionService(permission_provider))


@pytest.fixture
def alice():
    return make_player("Alice")


class TestJoinWithSingleSpace:
    def test_drops_leading_spaces_after_trailing_space(self):
        assert join_with_single_space("A ", "  B") == "B"

    def test_injects_space_between_words(self):
        assert join_with_single_space("A", "B") == " B"

    def test_empty_buffer_keeps_chunk(self):
        assert join_with_single_space("", " B") == " B"
        assert join_with_single_space("", "B") == "B"

    def test_empty_chunk(self):
        assert join_with_single_space("A", "") == ""


class TestPlainRendering:
    def test_empty_token_collapses_whitespace(self, renderer, alice):
        rendered = renderer.render("A {empty} B", {}, PLAIN_CHANNEL, alice)
        assert rendered.text == "A B"

    def test_tokens_resolve_from_placeholder_map(self, renderer, alice):
        rendered = renderer.render("{nick} > {message}", {"nick": "Alice", "message": "hi"}, PLAIN_CHANNEL, alice)

        assert rendered.text == "Alice > hi"
        assert rendered.runs == (TextRun("Alice > hi"),)

    def test_token_ids_are_case_insensitive(self, renderer, alice):
        rendered = renderer.render("{NICK}", {"nick": "Alice"}, PLAIN_CHANNEL, alice)
        assert rendered.text == "Alice"

    def test_rendering_is_idempotent(self, renderer, alice):
        placeholders = {"nick": "Alice", "message": "hi"}
        first = renderer.render("{channel_logo} {nick} > {message}", placeholders, TAGGED_CHANNEL, alice)
        second = renderer.render("{channel_logo} {nick} > {message}", placeholders, TAGGED_CHANNEL, alice)

        assert first == second

    def test_message_text_is_never_expanded(self, renderer, alice):
        rendered = renderer.render("{message}", {"message": "%player% {nick}"}, PLAIN_CHANNEL, alice)
        assert rendered.text == "%player% {nick}"

    def test_empty_format(self, renderer, alice):
        assert renderer.render(None, {}, PLAIN_CHANNEL, alice).runs == ()


class TestTagRendering:
    def test_tags_render_as_interactive_runs(self, renderer, alice):
        rendered = renderer.render(
            "{channel_logo} {nick} > {message}", {"nick": "Alice", "message": "hi"}, TAGGED_CHANNEL, alice
        )

        assert rendered.runs == (
            TextRun("[L]", hover="Local chat"),
            TextRun(" "),
            TextRun("Alice", hover="&7Player &eAlice", suggest_command="/msg Alice "),
            TextRun(" > hi"),
        )
        assert rendered.text == "[L] Alice > hi"

    def test_hover_line_is_used_without_placeholder_value(self, renderer, alice):
        rendered = renderer.render("{nick}", {}, TAGGED_CHANNEL, alice)

        assert rendered.runs[0].text == "&rAlice"

    def test_permission_gated_tag_vanishes(self, renderer, alice, permission_provider):
        rendered = renderer.render("{prime} {message}", {"message": "hi"}, TAGGED_CHANNEL, alice)
        assert "[*]" not in rendered.text
        assert rendered.text.strip() == "hi"

        permission_provider.grant(alice, "tag.prime")
        rendered = renderer.render("{prime} {message}", {"message": "hi"}, TAGGED_CHANNEL, alice)
        assert rendered.runs == (TextRun("[*]"), TextRun(" hi"))

    def test_blank_tag_contributes_nothing(self, renderer, alice):
        rendered = renderer.render("A {blank} B", {}, TAGGED_CHANNEL, alice)

        assert rendered.text == "A B"
        assert all(not run.interactive for run in rendered.runs)


class TestMacros:
    def test_player_and_prefix_macros(self, renderer, alice, permission_provider):
        permission_provider.prefixes[alice.player_id] = "[VIP]"

        rendered = renderer.render(
            "%luckperms_prefix% %player% says {message}", {"message": "hi"}, PLAIN_CHANNEL, alice
        )

        assert rendered.text == "[VIP] Alice says hi"

    def test_unknown_macros_pass_through(self, resolver, alice):
        text = "%unknown_thing% %player_click% %luckperms_meta%"
        assert resolver.expand_macros(text, PLAIN_CHANNEL, alice) == text

    def test_failing_permission_provider_yields_empty_prefix(self, resolver, alice, permission_provider):
        permission_provider.fail = True
        assert resolver.expand_macros("[%permissions_suffix%]", PLAIN_CHANNEL, alice) == "[]"

    def test_economy_macros(self, resolver, alice, economy_provider):
        economy_provider.set_balance(alice, "money", 1500)
        economy_provider.top_tags["money"] = "&6[$]"
        economy_provider.top_names["money"] = "Rich"

        expand = resolver.expand_macros
        assert expand("%economy_money_balance%", PLAIN_CHANNEL, alice) == "1.5k"
        assert expand("%economy_money%", PLAIN_CHANNEL, alice) == "1.5k"
        assert expand("%economy_money_tycoon%", PLAIN_CHANNEL, alice) == "&6[$]"
        assert expand("%nighteconomy_money_tag%", PLAIN_CHANNEL, alice) == "&6[$]"
        assert expand("%economy_money_tycoonname%", PLAIN_CHANNEL, alice) == "Rich"

    def test_currency_ids_may_contain_underscores(self, resolver, alice, economy_provider):
        economy_provider.set_balance(alice, "gold_coins", 42)
        assert resolver.expand_macros("%economy_gold_coins_balance%", PLAIN_CHANNEL, alice) == "42"

    def test_economy_not_ready(self, resolver, alice, economy_provider):
        economy_provider.ready = False

        assert resolver.expand_macros("%economy_money_balance%", PLAIN_CHANNEL, alice) == "0"
        assert resolver.expand_macros("%economy_money_tycoon%", PLAIN_CHANNEL, alice) == ""


class TestBuildPlaceholders:
    def test_standard_keys(self, resolver, alice, permission_provider):
        permission_provider.suffixes[alice.player_id] = "*"

        placeholders = resolver.build_placeholders(PLAIN_CHANNEL, alice, "hi")

        assert placeholders == {
            "channel": "Global",
            "prefix": "",
            "suffix": "*",
            "nick": "Alice",
            "message": "hi",
            "money": "",
            "money_tycoon": "",
        }

    def test_currency_channel_fills_money_keys(self, resolver, alice, economy_provider):
        channel = Channel(
            id="trade", type=ChannelType.GLOBAL, permission="p", currency=CurrencySettings(enabled=True)
        )
        economy_provider.set_balance(alice, "money", 2_000_000)
        economy_provider.top_tags["money"] = "[Top]"

        placeholders = resolver.build_placeholders(channel, alice, "hi")

        assert placeholders["money"] == "2M"
        assert placeholders["money_tycoon"] == "[Top]"

    def test_failing_balance_lookup_leaves_money_empty(self, resolver, alice, economy_provider):
        channel = Channel(
            id="trade", type=ChannelType.GLOBAL, permission="p", currency=CurrencySettings(enabled=True)
        )
        economy_provider.get_balance = Mock(side_effect=RuntimeError("economy offline"))

        placeholders = resolver.build_placeholders(channel, alice, "hi")

        assert placeholders["money"] == ""
