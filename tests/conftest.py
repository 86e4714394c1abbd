"""
Pytest configuration and fixtures for the Discord REST client tests.

This file provides test isolation and shared fixtures.
"""
import os

import pytest

from api.client import DiscordClient
from api.clock import ManualClock
from tests.factories import FakeTransport, make_config

# Keep a developer's real token out of the test run
os.environ.pop("DISCORD_TOKEN", None)


@pytest.fixture(autouse=True)
def reset_global_state():
    """
    Reset global state between tests.

    Prevents test pollution from the config singleton and logging context.
    """
    yield

    import config as cfg
    cfg._config = None

    from utils.logging import clear_context
    clear_context()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def transport(clock) -> FakeTransport:
    return FakeTransport(clock)


@pytest.fixture
def client_config():
    return make_config()


@pytest.fixture
def client(client_config, transport, clock) -> DiscordClient:
    """Client wired to the fake transport and virtual clock."""
    return DiscordClient(config=client_config, transport=transport, clock=clock)
