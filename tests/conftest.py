"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator

from loguru import logger
import pytest


@pytest.fixture
def captured_logs() -> Iterator[list[str]]:
    """Collect loguru messages emitted during a test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(str(message)), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)
