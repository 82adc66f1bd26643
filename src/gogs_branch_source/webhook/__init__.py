"""Gogs webhook receiver, dispatcher and hook registration."""

from .dispatcher import HOOK_PROCESSORS, WebhookDispatcher
from .models import (
    ALTERNATE_EVENT_HEADER,
    EVENT_HEADER,
    FULL_PATH,
    HOOK_PATH,
    DispatchResult,
    HookEventType,
)
from .payload import parse_push_event
from .registration import WebhookRegistrationManager
from .server import WebhookServer

__all__ = [
    "ALTERNATE_EVENT_HEADER",
    "DispatchResult",
    "EVENT_HEADER",
    "FULL_PATH",
    "HOOK_PATH",
    "HOOK_PROCESSORS",
    "HookEventType",
    "WebhookDispatcher",
    "WebhookRegistrationManager",
    "WebhookServer",
    "parse_push_event",
]
