"""Gogs SCM source, heads and revisions.

A ``GogsSCMSource`` is one configured repository on one Gogs server: where it
lives, which credentials scan it, which branches are built and whether the
push webhook is managed automatically.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..api.client import GogsAPIClient, GogsConnector
from ..config import Credentials, normalize_server_url
from .patterns import compile_pattern, matches

SAME = "SAME"
ANONYMOUS = "ANONYMOUS"
PR_BRANCH_PREFIX = "PR-"
REMOTE_NAME = "origin"


# ---------------------------------------------------------------------------
# Heads and revisions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SCMHead:
    """A named branch of a source."""

    name: str


@dataclass(frozen=True)
class SCMHeadWithOwnerAndRepo:
    """Head that also records the repository it comes from.

    Pull requests are separate repositories in Gogs with no link back to the
    destination, so the origin owner and repository travel with the head.
    ``name`` reads ``PR-<id>`` for pull request heads; ``branch_name`` is
    always the underlying branch.
    """

    repo_owner: str
    repo_name: str
    branch_name: str
    pull_request_id: Optional[int] = None

    @property
    def name(self) -> str:
        if self.pull_request_id is not None:
            return f"{PR_BRANCH_PREFIX}{self.pull_request_id}"
        return self.branch_name


@dataclass(frozen=True)
class SCMRevision:
    """A head pinned to one commit."""

    head: Union[SCMHead, SCMHeadWithOwnerAndRepo]
    hash: str

    def __str__(self) -> str:
        return self.hash


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------


class GogsSCMSource(BaseModel):
    """One Gogs repository configured as a branch source."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    repo_owner: str = Field(..., min_length=1)
    repository: str = Field(..., min_length=1)
    server_url: str
    credentials: Optional[Credentials] = Field(
        default=None, description="Scan credentials; None means anonymous"
    )
    checkout_credentials_id: Optional[str] = Field(default=SAME)
    includes: str = Field(default="*")
    excludes: str = Field(default="")
    auto_register_hook: bool = Field(default=False)
    ssh_port: int = Field(default=-1)
    build_failure_label_id: int = Field(default=0)

    @field_validator("server_url")
    @classmethod
    def _validate_server_url(cls, value: str) -> str:
        return normalize_server_url(value)

    @field_validator("includes", "excludes")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        compile_pattern(value)
        return value

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repository}"

    def is_excluded(self, branch_name: str) -> bool:
        """Return True if the branch must not be built."""
        return not matches(branch_name, self.includes, self.excludes)

    def build_client(self, connector: Optional[GogsConnector] = None) -> GogsAPIClient:
        """Create an API client scoped to this repository."""
        connector = connector or GogsConnector(server_url=self.server_url)
        return connector.create(self.repo_owner, self.repository, self.credentials)

    def remote_url(self) -> str:
        """Clone URL: SSH when an SSH port is configured, HTTP(S) otherwise."""
        if self.ssh_port > 0:
            host = urlsplit(self.server_url).hostname
            return f"ssh://git@{host}:{self.ssh_port}/{self.full_name}.git"
        return f"{self.server_url}/{self.full_name}.git"

    @property
    def remote_name(self) -> str:
        return REMOTE_NAME

    def effective_checkout_credentials(self) -> Optional[Credentials]:
        """Resolve which credentials check out code.

        ``SAME`` reuses the scan credentials, ``ANONYMOUS`` uses none. Any
        other id belongs to the host's credential store and resolves to
        ``None`` here.
        """
        if self.checkout_credentials_id == ANONYMOUS:
            return None
        if self.checkout_credentials_id == SAME:
            return self.credentials
        return None


__all__ = [
    "ANONYMOUS",
    "GogsSCMSource",
    "PR_BRANCH_PREFIX",
    "SAME",
    "SCMHead",
    "SCMHeadWithOwnerAndRepo",
    "SCMRevision",
]
