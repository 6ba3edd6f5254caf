"""
Tests for channel transformations and @mentions.
"""

from ..game.transformations import apply_channel_transformations, find_mentioned_players, highlight_mentions
from ..models.channel import Channel, ChannelType
from .mock_providers import make_player

CAPS = Channel(id="caps", type=ChannelType.GLOBAL, permission="p", prevent_capslock=True)
HIGHLIGHT = Channel(id="hl", type=ChannelType.GLOBAL, permission="p", highlight=True)
BOTH = Channel(id="both", type=ChannelType.GLOBAL, permission="p", prevent_capslock=True, highlight=True)
NONE = Channel(id="none", type=ChannelType.GLOBAL, permission="p")


class TestChannelTransformations:
    def test_shouting_is_lowercased(self):
        assert apply_channel_transformations(CAPS, "HELLO WORLD") == "hello world"

    def test_partial_caps_is_kept(self):
        assert apply_channel_transformations(CAPS, "HELLO world") == "HELLO world"

    def test_short_messages_are_kept(self):
        assert apply_channel_transformations(CAPS, "HEY") == "HEY"

    def test_threshold_rounds_half_up(self):
        # 15 letters need round(10.5) = 11 capitals
        assert apply_channel_transformations(CAPS, "ABCDEFGHIJKlmno") == "abcdefghijklmno"
        assert apply_channel_transformations(CAPS, "ABCDEFGHIJklmno") == "ABCDEFGHIJklmno"

    def test_highlight_capitalizes_first_letter(self):
        assert apply_channel_transformations(HIGHLIGHT, "hello there") == "Hello there"
        assert apply_channel_transformations(HIGHLIGHT, "1 apple") == "1 apple"

    def test_caps_softening_then_capitalization(self):
        assert apply_channel_transformations(BOTH, "HELLO WORLD") == "Hello world"

    def test_untouched_without_flags(self):
        assert apply_channel_transformations(NONE, "HELLO WORLD") == "HELLO WORLD"
        assert apply_channel_transformations(NONE, None) == ""


class TestMentions:
    def setup_method(self):
        self.alice = make_player("Alice")
        self.bob = make_player("Bob")

    def test_mentions_match_online_players_case_insensitively(self):
        mentioned = find_mentioned_players("hi @bob and @BOB and @nobody", [self.alice, self.bob])

        assert mentioned == {"bob": self.bob}

    def test_mentions_need_a_word_boundary(self):
        assert find_mentioned_players("mail a@bob", [self.bob]) == {}
        assert find_mentioned_players("@bobby @bob_", [self.bob]) == {}

    def test_short_names_are_not_mentions(self):
        assert find_mentioned_players("@bo", [make_player("bo")]) == {}

    def test_highlight_uses_display_name(self):
        mentioned = find_mentioned_players("hey @BOB!", [self.bob])

        assert highlight_mentions("hey @BOB! @carl", mentioned) == "hey &6@Bob&r! @carl"

    def test_highlight_without_mentions_is_identity(self):
        assert highlight_mentions("hey @bob", {}) == "hey @bob"
