"""
Test configuration and fixtures for the chatrelay test suite.
"""

import os

os.environ.setdefault("LOGGING_ENVIRONMENT", "unit_test")

import pytest  # noqa: E402

from ..game.channel_registry import ChannelRegistry  # noqa: E402
from ..game.chat_service import ChatService  # noqa: E402
from ..integration.economy import EconomyService  # noqa: E402
from ..integration.permissions import PermissionService  # noqa: E402
from ..services.rate_limiter import ChannelCooldownLimiter  # noqa: E402
from .mock_providers import (  # noqa: E402
    FakeClock,
    FakeEconomyProvider,
    FakePermissionProvider,
    FakeWorld,
    MemoryPlayerStateStorage,
    RecordingCommandExecutor,
    RecordingSink,
    make_player,
    plain_config,
    standard_channels,
)


@pytest.fixture
def permission_provider() -> FakePermissionProvider:
    return FakePermissionProvider()


@pytest.fixture
def economy_provider() -> FakeEconomyProvider:
    return FakeEconomyProvider()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def storage() -> MemoryPlayerStateStorage:
    return MemoryPlayerStateStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def executor() -> RecordingCommandExecutor:
    return RecordingCommandExecutor()


@pytest.fixture
def alice():
    return make_player("Alice", position=(0.0, 64.0, 0.0))


@pytest.fixture
def bob():
    return make_player("Bob", position=(10.0, 64.0, 0.0))


@pytest.fixture
def carol():
    """Same world as Alice and Bob but far outside any local radius."""
    return make_player("Carol", position=(500.0, 64.0, 0.0))


@pytest.fixture
def world(alice, bob, carol) -> FakeWorld:
    return FakeWorld(alice, bob, carol)


@pytest.fixture
def chat_service(world, sink, permission_provider, economy_provider, storage, clock, executor) -> ChatService:
    return ChatService(
        world,
        sink,
        plain_config(),
        registry=ChannelRegistry(standard_channels()),
        permissions=PermissionService(permission_provider),
        economy=EconomyService(economy_provider),
        storage=storage,
        command_executor=executor,
        limiter=ChannelCooldownLimiter(clock),
        background_writes=False,
    )
