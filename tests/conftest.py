"""Shared pytest fixtures for the X MCP server tests."""

import json
import time
from typing import Any
from unittest.mock import MagicMock

import pytest

from core.models import ToolResponse, Tweet, XUser
from core.x_client import TweepyXClient


@pytest.fixture
def x_client() -> MagicMock:
    """A mocked XApi; every async method is an AsyncMock."""
    client = MagicMock(spec=TweepyXClient)
    client.get_me.return_value = XUser(id="42", username="me", name="Me")
    return client


@pytest.fixture
def sample_tweets() -> list[Tweet]:
    return [
        Tweet(id="1", text="First tweet", created_at="2024-01-01T00:00:00.000Z"),
        Tweet(id="2", text="Second tweet"),
    ]


def parse(response: ToolResponse) -> dict[str, Any]:
    """Decode the JSON text block of a tool response."""
    assert len(response.content) == 1
    assert response.content[0]["type"] == "text"
    return json.loads(response.text)


def rate_limit_error(reset_offset: int = 900, *, limit: int = 50, message: str = "Rate limit exceeded"):
    """A mapping-shaped 429 carrying a rate-limit window `reset_offset` s from now."""
    return {
        "code": 429,
        "rate_limit_error": True,
        "message": message,
        "rate_limit": {
            "limit": limit,
            "remaining": 0,
            "reset": int(time.time()) + reset_offset,
        },
    }
