"""Data models for Gogs webhook integration."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


HOOK_PATH = "gogs-scmsource-hook"
FULL_PATH = HOOK_PATH + "/notify"

EVENT_HEADER = "X-Gogs-Event"
ALTERNATE_EVENT_HEADER = "X-Event-Key"

HOOK_TYPE = "gogs"
HOOK_CONTENT_TYPE = "json"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class HookEventType(str, Enum):
    """Gogs webhook event types handled by this integration."""

    PUSH = "push"  # New commits pushed
    CREATE = "create"  # Branch/tag created
    PULL_REQUEST = "pull_request"  # PR opened/updated/closed

    @classmethod
    def from_key(cls, key: Optional[str]) -> Optional["HookEventType"]:
        """Resolve an event header value, or ``None`` if it is not handled."""
        if key is None:
            return None
        try:
            return cls(key.strip())
        except ValueError:
            return None

    @classmethod
    def keys(cls) -> List[str]:
        return [event.value for event in cls]


# ---------------------------------------------------------------------------
# Dispatch result
# ---------------------------------------------------------------------------


class DispatchResult(BaseModel):
    """HTTP outcome of a webhook delivery."""

    status: int = Field(..., description="HTTP status code")
    text: str = Field(..., description="Plain text response body")
    event_type: Optional[HookEventType] = None
    reindexed: int = Field(default=0, description="Number of sources re-indexed")

    @property
    def ok(self) -> bool:
        return self.status == 200


__all__ = [
    "ALTERNATE_EVENT_HEADER",
    "DispatchResult",
    "EVENT_HEADER",
    "FULL_PATH",
    "HOOK_CONTENT_TYPE",
    "HOOK_PATH",
    "HOOK_TYPE",
    "HookEventType",
]
