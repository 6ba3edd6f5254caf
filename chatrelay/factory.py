"""
Host-side entry point for building a configured chat service.

Library objects never touch process-wide logging; hosts call
create_chat_service() once at startup, which sets logging up from the
configuration and then wires the ChatService.
"""

from typing import Any

from .config import get_config
from .config.models import AppConfig
from .game.chat_service import ChatService
from .integration.protocols import DeliverySink, WorldProvider
from .structured_logging.enhanced_logging_config import get_logger, setup_logging


def create_chat_service(
    world: WorldProvider, sink: DeliverySink, config: AppConfig | None = None, **options: Any
) -> ChatService:
    """
    Configure logging and build a ChatService.

    Args:
        world: Connected players and proximity queries
        sink: Delivers rendered messages and notification cues
        config: Application configuration, defaults to get_config()
        **options: Passed through to ChatService

    Returns:
        The wired chat service
    """
    config = config or get_config()
    setup_logging(config.to_logging_dict())

    logger = get_logger(__name__)
    logger.info("Logging setup completed", environment=config.logging.environment)

    return ChatService(world, sink, config, **options)
