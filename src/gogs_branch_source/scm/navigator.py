"""Repository discovery for a Gogs organization or user."""

from __future__ import annotations

import logging
import re
import threading
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from ..api.client import GogsConnector
from ..config import Credentials, normalize_server_url
from .discovery import DiscoveryCancelled
from .registry import LoggerListener, TaskListener
from .source import SAME, GogsSCMSource

logger = logging.getLogger(__name__)


class SourceObserver(Protocol):
    def observe(self, project_name: str, source: GogsSCMSource) -> None:
        """Receive one proposed project with its source."""
        ...


class GogsSCMNavigator(BaseModel):
    """Proposes one source per repository of an owner.

    Repositories whose name does not fully match ``pattern`` are ignored.
    Proposed sources inherit the navigator's server, credentials and hook
    settings.
    """

    model_config = ConfigDict(validate_assignment=True)

    repo_owner: str
    server_url: str
    credentials: Optional[Credentials] = None
    checkout_credentials_id: Optional[str] = Field(default=SAME)
    pattern: str = Field(default=".*")
    auto_register_hooks: bool = Field(default=False)
    ssh_port: int = Field(default=-1)

    _connector: Optional[GogsConnector] = PrivateAttr(default=None)

    @field_validator("server_url")
    @classmethod
    def _validate_server_url(cls, value: str) -> str:
        return normalize_server_url(value)

    @field_validator("pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid repository name pattern {value!r}: {e}") from e
        return value

    @property
    def id(self) -> str:
        return f"{self.server_url}::{self.repo_owner}"

    @property
    def connector(self) -> GogsConnector:
        if self._connector is None:
            self._connector = GogsConnector(server_url=self.server_url)
        return self._connector

    def use_connector(self, connector: GogsConnector) -> "GogsSCMNavigator":
        self._connector = connector
        return self

    def visit_sources(
        self,
        observer: SourceObserver,
        cancel_event: Optional[threading.Event] = None,
        listener: Optional[TaskListener] = None,
    ) -> int:
        """Propose a source for every matching repository.

        Returns:
            Number of repositories proposed

        Raises:
            GogsRequestError: If the owner or its repositories cannot be read
            DiscoveryCancelled: If ``cancel_event`` is set before a proposal
        """
        listener = listener or LoggerListener(logger)
        if not self.repo_owner.strip():
            listener.log("Must specify a repository owner")
            return 0

        if self.credentials is None:
            listener.log(f"Connecting to {self.server_url} with no credentials, anonymous access")
        else:
            listener.log(f"Connecting to {self.server_url} using {self.credentials.username}")

        client = self.connector.create(self.repo_owner, credentials=self.credentials)
        if client.get_organization() is not None:
            listener.log(f"Looking up repositories of organization {self.repo_owner}")
        else:
            listener.log(f"Looking up repositories of user {self.repo_owner}")

        name_pattern = re.compile(self.pattern)
        proposed = 0
        for repo in client.get_repositories():
            name = repo.repository_name or ""
            if not name_pattern.fullmatch(name):
                listener.log(f"Ignoring {name}")
                continue
            listener.log(f"Proposing {name}")
            if cancel_event is not None and cancel_event.is_set():
                raise DiscoveryCancelled(f"Repository discovery of {self.repo_owner} interrupted")
            observer.observe(name, self.create_source(name))
            proposed += 1

        logger.info(
            f"Proposed {proposed} repositories for {self.repo_owner}",
            extra={"repo_owner": self.repo_owner, "navigator_id": self.id},
        )
        return proposed

    def create_source(self, repository: str) -> GogsSCMSource:
        """Build the source proposed for ``repository``."""
        return GogsSCMSource(
            repo_owner=self.repo_owner,
            repository=repository,
            server_url=self.server_url,
            credentials=self.credentials,
            checkout_credentials_id=self.checkout_credentials_id,
            auto_register_hook=self.auto_register_hooks,
            ssh_port=self.ssh_port,
        )


__all__ = ["GogsSCMNavigator", "SourceObserver"]
