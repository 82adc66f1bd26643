"""Shared fixtures and mocks for webhook tests."""

import json
from typing import Any, Dict, Optional

import pytest

from gogs_branch_source.webhook.dispatcher import WebhookDispatcher


# ---------------------------------------------------------------------------
# Mock aiohttp Components
# ---------------------------------------------------------------------------


class MockRequest:
    """Mock aiohttp.web.Request for testing."""

    def __init__(self, headers: Optional[Dict[str, str]] = None, body: bytes = b""):
        self.headers = headers or {}
        self._body = body

    async def read(self) -> bytes:
        return self._body

    async def json(self) -> Dict[str, Any]:
        return json.loads(self._body.decode("utf-8"))


@pytest.fixture
def mock_request():
    """Provide mock aiohttp request."""
    return MockRequest


@pytest.fixture
def reindexed():
    """Sources re-indexed through owners created with ``make_owner``."""
    return []


@pytest.fixture
def dispatcher(registry):
    return WebhookDispatcher(registry)


@pytest.fixture
def push_body(push_payload) -> bytes:
    return json.dumps(push_payload).encode("utf-8")
