"""Decoding of inbound Gogs webhook payloads."""

from __future__ import annotations

import logging
from typing import Optional, Union

from pydantic import ValidationError

from ..api.models import PushEvent

logger = logging.getLogger(__name__)


def parse_push_event(payload: Union[str, bytes, None]) -> Optional[PushEvent]:
    """Decode a push (or create / pull_request) payload.

    Unknown fields are ignored. Malformed JSON, or a payload lacking the
    repository name and owner username, is logged and yields ``None``; this
    function never raises.
    """
    if payload is None:
        return None
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"Can not read hook payload: {e}")
            return None
    if not payload.strip():
        logger.error("Can not read hook payload: empty body")
        return None
    try:
        return PushEvent.model_validate_json(payload)
    except ValidationError as e:
        logger.error(
            f"Can not read hook payload: {e.error_count()} validation error(s)",
            extra={"errors": [err.get("type") for err in e.errors()]},
            exc_info=True,
        )
        return None


__all__ = ["parse_push_event"]
