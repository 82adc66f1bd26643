"""Shared fixtures for gogs-branch-source tests."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import Mock

import pytest

from gogs_branch_source.api.models import WebHook
from gogs_branch_source.config import Credentials
from gogs_branch_source.scm.registry import InMemorySourceRegistry, SourceOwner
from gogs_branch_source.scm.source import GogsSCMSource

SERVER_URL = "https://git.example.com"
ROOT_URL = "https://ci.example.com/"


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


def make_response(status: int = 200, body: Any = "") -> Mock:
    """Build a ``requests.Response`` stand-in."""
    response = Mock()
    response.status_code = status
    response.text = body if isinstance(body, str) else json.dumps(body)
    return response


@pytest.fixture
def response_factory():
    return make_response


# ---------------------------------------------------------------------------
# In-memory Gogs server
# ---------------------------------------------------------------------------


class FakeGogsClient:
    """API client double backed by a shared hook store."""

    def __init__(self, server: "FakeGogsServer", owner: str, repository: Optional[str]):
        self.server = server
        self.owner = owner
        self.repository = repository

    @property
    def key(self) -> Tuple[str, str]:
        return (self.owner, self.repository or "")

    def get_web_hooks(self) -> List[WebHook]:
        self.server.calls.append(("list", self.key))
        return [hook.model_copy() for hook in self.server.hooks.setdefault(self.key, [])]

    def register_commit_web_hook(self, hook: WebHook) -> WebHook:
        self.server.calls.append(("register", self.key))
        self.server.next_id += 1
        created = hook.model_copy(update={"id": self.server.next_id})
        self.server.hooks.setdefault(self.key, []).append(created)
        return created

    def remove_commit_web_hook(self, hook: WebHook) -> None:
        self.server.calls.append(("remove", self.key))
        self.server.hooks[self.key] = [
            existing for existing in self.server.hooks.get(self.key, []) if existing.id != hook.id
        ]


class FakeGogsServer:
    """Keeps webhooks per repository and records every API call."""

    def __init__(self) -> None:
        self.hooks: Dict[Tuple[str, str], List[WebHook]] = {}
        self.calls: List[Tuple[str, Tuple[str, str]]] = []
        self.next_id = 0

    def client_for(self, source: GogsSCMSource) -> FakeGogsClient:
        return FakeGogsClient(self, source.repo_owner, source.repository)

    def hook_urls(self, owner: str, repository: str) -> List[str]:
        return [hook.config.url for hook in self.hooks.get((owner, repository), [])]


@pytest.fixture
def fake_gogs() -> FakeGogsServer:
    return FakeGogsServer()


# ---------------------------------------------------------------------------
# Sources and owners
# ---------------------------------------------------------------------------


@pytest.fixture
def server_url() -> str:
    return SERVER_URL


@pytest.fixture
def credentials() -> Credentials:
    return Credentials.from_values("ci-bot", "s3cret")


@pytest.fixture
def make_source():
    def _make(repo_owner: str = "alice", repository: str = "proj", **kwargs: Any) -> GogsSCMSource:
        kwargs.setdefault("server_url", SERVER_URL)
        return GogsSCMSource(repo_owner=repo_owner, repository=repository, **kwargs)

    return _make


@pytest.fixture
def registry() -> InMemorySourceRegistry:
    return InMemorySourceRegistry()


@pytest.fixture
def make_owner(registry):
    """Create a source owner and add it to the registry."""

    def _make(name: str, *sources: GogsSCMSource, on_reindex=None, register: bool = True) -> SourceOwner:
        owner = SourceOwner(name=name, sources=list(sources), on_reindex=on_reindex)
        if register:
            registry.add(owner)
        return owner

    return _make


@pytest.fixture
def push_payload() -> Dict[str, Any]:
    return {
        "ref": "refs/heads/master",
        "before": "0" * 40,
        "after": "a" * 40,
        "compare_url": f"{SERVER_URL}/alice/proj/compare/000...aaa",
        "commits": [{"id": "a" * 40, "message": "Fix build\n"}],
        "repository": {
            "id": 7,
            "owner": {"id": 1, "username": "alice", "full_name": "Alice", "email": "alice@example.com"},
            "name": "proj",
            "full_name": "alice/proj",
            "html_url": f"{SERVER_URL}/alice/proj",
            "private": False,
        },
        "pusher": {"id": 1, "username": "alice"},
    }
