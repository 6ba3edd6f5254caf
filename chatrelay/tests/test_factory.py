"""
Tests for the host entry point that configures logging and builds the service.
"""

from unittest.mock import patch

from .. import factory
from ..game.chat_service import ChatService
from ..structured_logging import enhanced_logging_config
from .mock_providers import FakeWorld, RecordingSink, make_player, plain_config


def test_create_chat_service_configures_logging_from_config():
    """Test the factory hands the logging section to setup_logging()."""
    config = plain_config()

    with patch.object(factory, "setup_logging") as mock_setup:
        service = factory.create_chat_service(FakeWorld(), RecordingSink(), config, background_writes=False)

    mock_setup.assert_called_once_with(config.to_logging_dict())
    assert isinstance(service, ChatService)
    assert service.config is config


def test_create_chat_service_passes_options_through():
    """Test keyword options reach the ChatService constructor."""
    world = FakeWorld(make_player("Alice"))

    with patch.object(factory, "setup_logging"):
        service = factory.create_chat_service(world, RecordingSink(), plain_config(), background_writes=False)

    assert service.world is world
    assert service.state_writer is None


def test_chat_service_leaves_logging_alone():
    """Test building a ChatService directly never configures logging."""
    state = enhanced_logging_config._logging_state  # pylint: disable=protected-access
    with (
        patch.object(state, "initialized", False),
        patch.object(enhanced_logging_config, "configure_structlog") as mock_configure,
    ):
        ChatService(FakeWorld(), RecordingSink(), plain_config(), background_writes=False)

    mock_configure.assert_not_called()
