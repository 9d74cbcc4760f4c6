# tests/conftest.py

"""Shared pytest fixtures for all store layer tests."""

from collections.abc import Generator

import pytest

from core.events import EventBus


@pytest.fixture(autouse=True)
def fresh_event_bus() -> Generator[None, None, None]:
    """Give every test its own EventBus singleton."""
    EventBus.reset()
    yield
    EventBus.reset()
