"""Webhook event dispatcher for routing Gogs events to re-indexing.

Validates the event header of an inbound delivery, decodes the payload and
asks every source owner holding a matching source to re-index it.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Any, Callable, ContextManager, Dict, Optional, Type, Union

from ..scm.registry import SourceOwnerRegistry
from ..scm.source import GogsSCMSource
from .models import EVENT_HEADER, DispatchResult, HookEventType
from .payload import parse_push_event

logger = logging.getLogger(__name__)

Body = Union[str, bytes, None]


# ---------------------------------------------------------------------------
# Event processors
# ---------------------------------------------------------------------------


def process_push_event(dispatcher: "WebhookDispatcher", body: Body) -> int:
    """Re-index the sources of the repository a push payload names.

    Returns the number of sources re-indexed; an unreadable payload
    re-indexes nothing.
    """
    event = parse_push_event(body)
    if event is None:
        return 0
    logger.info(
        f"Received push for {event.owner}/{event.repository_name}",
        extra={"repository": f"{event.owner}/{event.repository_name}", "ref": event.ref},
    )
    return dispatcher.reindex(event.owner, event.repository_name)


# Branch creation and pull request payloads carry the same repository block.
process_create_event = process_push_event
process_pull_request_event = process_push_event


HOOK_PROCESSORS: Dict[HookEventType, Callable[["WebhookDispatcher", Body], int]] = {
    HookEventType.PUSH: process_push_event,
    HookEventType.CREATE: process_create_event,
    HookEventType.PULL_REQUEST: process_pull_request_event,
}


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class WebhookDispatcher:
    """Routes webhook deliveries to the matching source owners.

    Attributes:
        registry: Lists every source owner on the host
        source_type: Only sources of this type are re-indexed
        run_as_system: Factory of the context in which the registry is
            scanned; the host grants system authority through it

    Example:
        >>> dispatcher = WebhookDispatcher(registry)
        >>> result = dispatcher.dispatch("push", body)
        >>> result.status
        200
    """

    def __init__(
        self,
        registry: SourceOwnerRegistry,
        source_type: Type[Any] = GogsSCMSource,
        run_as_system: Optional[Callable[[], ContextManager[Any]]] = None,
    ):
        self.registry = registry
        self.source_type = source_type
        self.run_as_system = run_as_system or contextlib.nullcontext

    def dispatch(self, event_key: Optional[str], body: Body) -> DispatchResult:
        """Handle one delivery.

        Args:
            event_key: Value of the event header, ``None`` when absent
            body: Raw request body

        Returns:
            DispatchResult: 400 for a missing or unknown event header,
            200 ``ok`` otherwise (including unreadable payloads)
        """
        if event_key is None:
            logger.warning(f"Webhook delivery without {EVENT_HEADER} header")
            return DispatchResult(status=400, text=f"{EVENT_HEADER} HTTP header not found")

        event_type = HookEventType.from_key(event_key)
        if event_type is None:
            logger.warning(
                f"Webhook delivery with unsupported event {event_key!r}",
                extra={"event_type": event_key},
            )
            return DispatchResult(status=400, text=f"{EVENT_HEADER} HTTP header invalid: {event_key}")

        processor = HOOK_PROCESSORS[event_type]
        reindexed = processor(self, body)
        logger.debug(
            f"Processed {event_type.value} delivery, {reindexed} source(s) re-indexed",
            extra={"event_type": event_type.value, "reindexed": reindexed},
        )
        return DispatchResult(status=200, text="ok", event_type=event_type, reindexed=reindexed)

    def reindex(self, owner: str, repository: str) -> int:
        """Ask every owner of a matching source to re-index it.

        A failure for one owner is logged and the scan continues.

        Returns:
            Number of sources re-indexed
        """
        reindexed = 0
        with self.run_as_system():
            for source_owner in self.registry.all_owners():
                for source in source_owner.scm_sources:
                    if not isinstance(source, self.source_type):
                        continue
                    if source.repo_owner != owner or source.repository != repository:
                        continue
                    logger.info(
                        f"Triggering re-index of {owner}/{repository}",
                        extra={"repository": f"{owner}/{repository}"},
                    )
                    try:
                        source_owner.on_scm_source_updated(source)
                        reindexed += 1
                    except Exception:
                        logger.exception(
                            f"Re-index of {owner}/{repository} failed",
                            extra={"repository": f"{owner}/{repository}"},
                        )
        if reindexed == 0:
            logger.debug(
                f"No source configured for {owner}/{repository}",
                extra={"repository": f"{owner}/{repository}"},
            )
        return reindexed


__all__ = [
    "HOOK_PROCESSORS",
    "WebhookDispatcher",
    "process_create_event",
    "process_pull_request_event",
    "process_push_event",
]
