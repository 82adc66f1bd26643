"""Host-side collaborators: source owners and the registry that lists them.

The build host owns the configured sources and decides what a re-index
means. These protocols describe the slice of the host that the webhook
dispatcher, the registration manager and the notifier rely on.
``InMemorySourceRegistry`` and ``SourceOwner`` are ready-made
implementations for hosts without their own model, for the CLI and for tests.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class SCMSourceOwner(Protocol):
    """An item (multibranch project, organization folder) owning sources."""

    @property
    def scm_sources(self) -> Sequence[Any]:
        ...

    def on_scm_source_updated(self, source: Any) -> None:
        """Ask the host to re-index ``source``."""
        ...


class SourceOwnerRegistry(Protocol):
    """Lists every source owner currently registered on the host."""

    def all_owners(self) -> Iterable[SCMSourceOwner]:
        ...


class TaskListener(Protocol):
    """Receives human-readable progress lines for a host task log."""

    def log(self, message: str) -> None:
        ...


class LoggerListener:
    """TaskListener writing to a standard library logger."""

    def __init__(self, target: Optional[logging.Logger] = None):
        self.target = target or logger

    def log(self, message: str) -> None:
        self.target.info(message)


# ---------------------------------------------------------------------------
# Ready-made implementations
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class SourceOwner:
    """Minimal source owner whose re-index is a plain callback."""

    name: str
    sources: List[Any] = field(default_factory=list)
    on_reindex: Optional[Callable[[Any], None]] = None

    @property
    def scm_sources(self) -> Sequence[Any]:
        return list(self.sources)

    def on_scm_source_updated(self, source: Any) -> None:
        logger.info(
            f"Re-indexing {getattr(source, 'full_name', source)} in {self.name}",
            extra={"owner_name": self.name},
        )
        if self.on_reindex is not None:
            self.on_reindex(source)


class InMemorySourceRegistry:
    """Thread-safe registry of source owners."""

    def __init__(self, owners: Optional[Iterable[SCMSourceOwner]] = None):
        self._lock = threading.Lock()
        self._owners: List[SCMSourceOwner] = list(owners or [])

    def add(self, owner: SCMSourceOwner) -> None:
        with self._lock:
            if not any(existing is owner for existing in self._owners):
                self._owners.append(owner)

    def remove(self, owner: SCMSourceOwner) -> None:
        with self._lock:
            self._owners = [existing for existing in self._owners if existing is not owner]

    def all_owners(self) -> List[SCMSourceOwner]:
        with self._lock:
            return list(self._owners)

    def __len__(self) -> int:
        with self._lock:
            return len(self._owners)


__all__ = [
    "InMemorySourceRegistry",
    "LoggerListener",
    "SCMSourceOwner",
    "SourceOwner",
    "SourceOwnerRegistry",
    "TaskListener",
]
