"""Folder decoration for organization and repository items.

Computes what the host shows for an organization folder or a repository
project: display name, description, link and avatar. Applying a decoration
saves the item on the host, which fires item listeners that decorate the
same item again; ``DecorationGuard`` turns those nested calls into no-ops.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Set

from .api.client import GogsConnector
from .scm.navigator import GogsSCMNavigator

logger = logging.getLogger(__name__)

ORG_ICON = "logo"
REPO_ICON = "repo"


@dataclass(frozen=True)
class FolderDecoration:
    """Presentation data for one host item."""

    kind: str
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    avatar_url: Optional[str] = None

    @property
    def icon(self) -> str:
        return ORG_ICON if self.kind == "organization" else REPO_ICON


class DecorationGuard:
    """Tracks the items being decorated on the current thread."""

    def __init__(self) -> None:
        self._local = threading.local()

    def _updating(self) -> Set[int]:
        updating = getattr(self._local, "updating", None)
        if updating is None:
            updating = self._local.updating = set()
        return updating

    def is_updating(self, item: Any) -> bool:
        return id(item) in self._updating()

    @contextmanager
    def enter(self, item: Any) -> Iterator[bool]:
        """Yield True if this call acquired ``item``, False if it is re-entrant."""
        updating = self._updating()
        key = id(item)
        if key in updating:
            yield False
            return
        updating.add(key)
        try:
            yield True
        finally:
            updating.discard(key)


DEFAULT_GUARD = DecorationGuard()


class OrganizationDecorator:
    """Decorates organization folders and their repository projects.

    Attributes:
        connector: Connector used for the lookups; one per navigator server
            is created when omitted
        guard: Re-entrancy guard; the process-wide DEFAULT_GUARD when omitted
    """

    def __init__(self, connector: Optional[GogsConnector] = None, guard: Optional[DecorationGuard] = None):
        self.connector = connector
        self.guard = guard or DEFAULT_GUARD

    def _connector_for(self, navigator: GogsSCMNavigator) -> GogsConnector:
        return self.connector or navigator.connector

    def apply_org(
        self,
        item: Any,
        navigator: GogsSCMNavigator,
        apply: Callable[[FolderDecoration], None],
    ) -> Optional[FolderDecoration]:
        """Decorate an organization folder.

        Returns:
            The decoration handed to ``apply``; None for a re-entrant call or
            when the owner is a user rather than an organization
        """
        with self.guard.enter(item) as acquired:
            if not acquired:
                return None
            logger.info(
                f"creating connector with server URL: {navigator.server_url} and repo owner: {navigator.repo_owner}",
                extra={"repo_owner": navigator.repo_owner},
            )
            client = self._connector_for(navigator).create(
                navigator.repo_owner, credentials=navigator.credentials
            )
            org = client.get_organization()
            if org is None:
                logger.info(
                    f"{navigator.repo_owner} is not an organization, nothing to decorate",
                    extra={"repo_owner": navigator.repo_owner},
                )
                return None
            logger.info(f"successfully retrieved org name: {org.name}")
            decoration = FolderDecoration(
                kind="organization",
                name=org.name,
                display_name=org.display_name,
                description=org.description,
                url=org.html_url,
                avatar_url=org.avatar_url,
            )
            apply(decoration)
            return decoration

    def apply_repo(
        self,
        item: Any,
        repository: str,
        navigator: GogsSCMNavigator,
        apply: Callable[[FolderDecoration], None],
    ) -> Optional[FolderDecoration]:
        """Decorate a repository project below an organization folder."""
        with self.guard.enter(item) as acquired:
            if not acquired:
                return None
            client = self._connector_for(navigator).create(
                navigator.repo_owner, repository, navigator.credentials
            )
            repo = client.get_repository()
            if repo is None:
                return None
            decoration = FolderDecoration(
                kind="repository",
                name=repo.repository_name or repository,
                display_name=repo.repository_name or repository,
                description=repo.description,
                url=repo.html_url,
            )
            apply(decoration)
            return decoration


__all__ = ["DEFAULT_GUARD", "DecorationGuard", "FolderDecoration", "OrganizationDecorator"]
