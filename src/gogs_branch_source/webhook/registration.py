"""Gogs webhook registration for auto-registering sources.

Keeps the repository webhook of every auto-registering source in sync with
the host: a hook pointing at this receiver is created when an owner is
created or updated, and removed when the owner is deleted and no other owner
still builds the same repository.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Type

from ..api.client import GogsAPIClient
from ..api.models import HookConfig, WebHook
from ..scm.registry import SCMSourceOwner, SourceOwnerRegistry
from ..scm.source import GogsSCMSource
from .models import FULL_PATH, HOOK_CONTENT_TYPE, HOOK_TYPE, HookEventType

logger = logging.getLogger(__name__)

WORKER_THREAD_PREFIX = "gogs-webhook-registration"


def _default_client_factory(source: GogsSCMSource) -> GogsAPIClient:
    return source.build_client()


# ---------------------------------------------------------------------------
# Webhook Registration Manager
# ---------------------------------------------------------------------------


class WebhookRegistrationManager:
    """Creates and removes the receiver's webhook on Gogs repositories.

    Asynchronous requests run on a single worker thread, so they complete in
    submission order: a register followed by a remove for the same owner
    never interleave. The synchronous operations share one lock.

    Attributes:
        registry: Lists every source owner on the host
        connector_factory: Builds the API client used for one source
        root_url: Public root URL of the receiver; empty disables registration
        source_type: Only sources of this type are managed

    Example:
        >>> manager = WebhookRegistrationManager(registry, root_url="https://ci.example.com/")
        >>> manager.on_created(project)
        >>> manager.shutdown()
    """

    def __init__(
        self,
        registry: SourceOwnerRegistry,
        connector_factory: Optional[Callable[[GogsSCMSource], GogsAPIClient]] = None,
        root_url: Optional[str] = None,
        source_type: Type[Any] = GogsSCMSource,
    ):
        self.registry = registry
        self.connector_factory = connector_factory or _default_client_factory
        self.root_url = root_url
        self.source_type = source_type

        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._executor_lock = threading.Lock()

    # -----------------------------------------------------------------------
    # Hook description
    # -----------------------------------------------------------------------

    @property
    def hook_url(self) -> Optional[str]:
        """URL Gogs delivers to, or None when no root URL is configured."""
        if not self.root_url or not self.root_url.strip():
            return None
        root = self.root_url.strip()
        if not root.endswith("/"):
            root += "/"
        return root + FULL_PATH

    def build_hook(self) -> WebHook:
        """Describe the webhook registered on each repository.

        Raises:
            ValueError: If no root URL is configured
        """
        url = self.hook_url
        if url is None:
            raise ValueError("Root URL is not configured")
        return WebHook(
            type=HOOK_TYPE,
            active=True,
            config=HookConfig(url=url, content_type=HOOK_CONTENT_TYPE),
            events=HookEventType.keys(),
        )

    # -----------------------------------------------------------------------
    # Item lifecycle
    # -----------------------------------------------------------------------

    def on_created(self, item: Any) -> Optional[Future]:
        if not self._is_applicable(item):
            return None
        return self.register_hooks_async(item)

    def on_updated(self, item: Any) -> Optional[Future]:
        if not self._is_applicable(item):
            return None
        return self.register_hooks_async(item)

    def on_deleted(self, item: Any) -> Optional[Future]:
        if not self._is_applicable(item):
            return None
        return self.remove_hooks_async(item)

    def register_hooks_async(self, owner: SCMSourceOwner) -> Future:
        return self._get_executor().submit(self._run_safely, self.register_hooks, owner)

    def remove_hooks_async(self, owner: SCMSourceOwner) -> Future:
        return self._get_executor().submit(self._run_safely, self.remove_hooks, owner)

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    # -----------------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------------

    def register_hooks(self, owner: SCMSourceOwner) -> int:
        """Register the hook on every auto-registering source of ``owner``.

        Sources whose repository already has a hook pointing here are left
        alone, so repeated calls register at most one hook per repository.

        Returns:
            Number of hooks registered
        """
        registered = 0
        with self._lock:
            for source in self._gogs_sources(owner):
                if not source.auto_register_hook:
                    continue
                hook_url = self.hook_url
                if hook_url is None:
                    logger.warning(
                        f"Can not register hook. Root URL is not valid: {self.root_url!r}",
                        extra={"repository": source.full_name},
                    )
                    continue
                try:
                    client = self.connector_factory(source)
                    if self._find_hook(client, hook_url) is not None:
                        logger.debug(
                            f"Hook already registered for {source.full_name}",
                            extra={"repository": source.full_name, "hook_url": hook_url},
                        )
                        continue
                    logger.info(
                        f"Registering hook for {source.full_name}",
                        extra={"repository": source.full_name, "hook_url": hook_url},
                    )
                    client.register_commit_web_hook(self.build_hook())
                    registered += 1
                except Exception:
                    logger.exception(
                        f"Failed to register hook for {source.full_name}",
                        extra={"repository": source.full_name, "hook_url": hook_url},
                    )
        return registered

    def remove_hooks(self, owner: SCMSourceOwner) -> int:
        """Remove the hook of every auto-registering source of ``owner``.

        A hook stays when another registered owner still has a source for the
        same repository.

        Returns:
            Number of hooks removed
        """
        removed = 0
        with self._lock:
            for source in self._gogs_sources(owner):
                if not source.auto_register_hook:
                    continue
                hook_url = self.hook_url
                if hook_url is None:
                    continue
                try:
                    client = self.connector_factory(source)
                    hook = self._find_hook(client, hook_url)
                    if hook is None or self.is_used_somewhere_else(
                        owner, source.repo_owner, source.repository
                    ):
                        logger.debug(
                            f"NOT removing hook for {source.full_name} because it does not exist "
                            "or it is used in another project",
                            extra={"repository": source.full_name, "hook_url": hook_url},
                        )
                        continue
                    logger.info(
                        f"Removing hook for {source.full_name}",
                        extra={"repository": source.full_name, "hook_id": hook.id},
                    )
                    client.remove_commit_web_hook(hook)
                    removed += 1
                except Exception:
                    logger.exception(
                        f"Failed to remove hook for {source.full_name}",
                        extra={"repository": source.full_name, "hook_url": hook_url},
                    )
        return removed

    def is_used_somewhere_else(self, owner: SCMSourceOwner, repo_owner: str, repository: str) -> bool:
        """Return True if an owner other than ``owner`` builds the repository."""
        for other in self.registry.all_owners():
            if other is owner:
                continue
            for source in self._gogs_sources(other):
                if source.repo_owner == repo_owner and source.repository == repository:
                    return True
        return False

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    def _gogs_sources(self, owner: SCMSourceOwner) -> List[GogsSCMSource]:
        return [source for source in owner.scm_sources if isinstance(source, self.source_type)]

    @staticmethod
    def _find_hook(client: GogsAPIClient, hook_url: str) -> Optional[WebHook]:
        for hook in client.get_web_hooks():
            if hook.targets(hook_url):
                return hook
        return None

    @staticmethod
    def _is_applicable(item: Any) -> bool:
        return hasattr(item, "scm_sources") and hasattr(item, "on_scm_source_updated")

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=1, thread_name_prefix=WORKER_THREAD_PREFIX
                )
            return self._executor

    @staticmethod
    def _run_safely(operation: Callable[[SCMSourceOwner], int], owner: SCMSourceOwner) -> int:
        try:
            return operation(owner)
        except Exception:
            logger.exception(f"Webhook {operation.__name__} failed")
            raise


__all__ = ["WebhookRegistrationManager"]
