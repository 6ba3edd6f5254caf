"""
Tests for chat command dispatch.
"""

from unittest.mock import Mock

import pytest

from ..commands.chat_commands import ChatCommandHandler
from .mock_providers import make_player


@pytest.fixture
def handler(chat_service):
    return ChatCommandHandler(chat_service)


@pytest.fixture
def admin(world):
    return world.add(make_player("Admin", position=(0.0, 64.0, 5.0), is_operator=True))


class TestDispatch:
    def test_blank_command(self, handler, alice):
        assert handler.handle(alice, "  ") == {"result": "Usage: <command> [arguments]"}

    def test_unknown_command(self, handler, alice):
        assert handler.handle(alice, "/dance wildly") == {"result": "Unknown command: dance"}


class TestPlayerToggles:
    def test_mute_toggles(self, handler, chat_service, alice, bob):
        assert handler.handle(alice, "mute Bob") == {"result": "&7You muted &eBob"}
        assert chat_service.store.has_muted_player(alice.player_id, bob.player_id)
        assert handler.handle(alice, "/mute bob") == {"result": "&7You unmuted &eBob"}

    def test_mute_usage_and_unknown_player(self, handler, alice):
        assert handler.handle(alice, "mute") == {"result": "Usage: mute <player>"}
        assert handler.handle(alice, "mute Nobody") == {"result": "&cPlayer not found: Nobody"}

    def test_ignore_toggles(self, handler, chat_service, alice, bob):
        assert handler.handle(alice, "ignore bob") == {"result": "&7You are now ignoring &eBob"}
        assert chat_service.is_ignoring(alice, bob)
        assert handler.handle(alice, "ignore bob") == {"result": "&7You are no longer ignoring &eBob"}
        assert not chat_service.is_ignoring(alice, bob)

    def test_muteall_toggles_channel(self, handler, chat_service, alice):
        assert handler.handle(alice, "muteall Global") == {"result": "&7You muted the &eglobal&7 channel"}
        assert chat_service.store.has_muted_channel(alice.player_id, "global")
        assert handler.handle(alice, "muteall nope") == {"result": "&cChannel not found: nope"}


class TestSpy:
    def test_spy_requires_permission(self, handler, alice):
        assert handler.handle(alice, "spy local") == {"result": "&cYou do not have permission to spy on channels."}

    def test_spy_with_permission(self, handler, chat_service, permission_provider, alice):
        permission_provider.grant(alice, "chatrelay.spy")

        assert handler.handle(alice, "spy local") == {"result": "&7Spy mode enabled for &elocal"}
        assert chat_service.store.has_spy(alice.player_id, "local")
        assert handler.handle(alice, "spy local") == {"result": "&7Spy mode disabled for &elocal"}

    def test_operator_can_spy(self, handler, admin):
        assert handler.handle(admin, "spy staff") == {"result": "&7Spy mode enabled for &estaff"}
        assert handler.handle(admin, "spy nope") == {"result": "&cChannel not found: nope"}


class TestTellCommand:
    def test_tell_delivers(self, handler, sink, alice, bob):
        assert handler.handle(alice, "tell Bob see you there") == {"result": ""}
        assert sink.texts_for(bob) == ["&8[Alice] -> [Bob]:&r see you there"]

    def test_msg_is_an_alias(self, handler, sink, alice, bob):
        handler.handle(alice, "msg bob hi")
        assert sink.texts_for(bob) == ["&8[Alice] -> [Bob]:&r hi"]

    def test_tell_usage_and_unknown_target(self, handler, alice):
        assert handler.handle(alice, "tell Bob") == {"result": "Usage: tell <player> <message>"}
        assert handler.handle(alice, "tell Ghost boo") == {"result": "&cPlayer not found: Ghost"}

    def test_refusal_is_returned_not_echoed(self, handler, sink, alice):
        assert handler.handle(alice, "tell alice hi") == {"result": "&cYou cannot send a message to yourself."}
        assert sink.sent == []


class TestReloadCommand:
    def test_reload_requires_permission(self, handler, alice):
        assert handler.handle(alice, "chat reload") == {
            "result": "&cYou do not have permission to reload chat channels."
        }

    def test_reload_usage(self, handler, admin):
        assert handler.handle(admin, "chat") == {"result": "Usage: chat reload"}

    def test_reload_loads_channel_directory(self, handler, chat_service, admin, tmp_path):
        chat_service.config.paths.channels_dir = str(tmp_path)

        assert handler.handle(admin, "chat reload") == {"result": "&aChat reloaded. &7Channels loaded: &e3"}
        assert set(chat_service.registry.ids()) == {"local", "global", "staff"}

    def test_reload_with_permission_node(self, handler, chat_service, permission_provider, alice, tmp_path):
        chat_service.config.paths.channels_dir = str(tmp_path)
        permission_provider.grant(alice, "chatrelay.reload")

        assert handler.handle(alice, "chat reload")["result"].startswith("&aChat reloaded.")

    def test_reload_failure_is_reported(self, handler, chat_service, admin):
        chat_service.reload = Mock(side_effect=RuntimeError("boom"))

        assert handler.handle(admin, "chat reload") == {"result": "&cFailed to reload chat: RuntimeError - boom"}


class TestChannelAliases:
    def test_alias_sends_to_channel(self, handler, sink, alice, bob):
        assert handler.handle(alice, "/g hello there") == {"result": ""}
        assert sink.texts_for(bob) == ["[G] Alice > hello there"]

    def test_alias_without_message(self, handler, alice):
        assert handler.handle(alice, "g") == {"result": "Usage: g <message>"}

    def test_alias_without_permission(self, handler, sink, alice):
        assert handler.handle(alice, "s hi") == {
            "result": "&cYou do not have permission to speak in the staff channel."
        }
        assert sink.sent == []

    def test_rejection_is_returned_not_echoed(self, handler, sink, economy_provider, alice):
        economy_provider.set_balance(alice, "money", 100)
        handler.handle(alice, "t first offer")
        sink.clear()

        result = handler.handle(alice, "t second offer")

        assert result == {"result": "&cWait &e5.0s &cto speak in the &etrade&c channel."}
        assert sink.sent == []
