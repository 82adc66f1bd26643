"""Data models mirroring the Gogs REST API JSON payloads.

All models ignore unknown fields so that newer Gogs versions can add
attributes without breaking parsing. Instances are value snapshots: every
API call returns fresh objects and nothing is cached between calls.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class GogsModel(BaseModel):
    """Base model shared by all Gogs payloads."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ---------------------------------------------------------------------------
# Owners and repositories
# ---------------------------------------------------------------------------


class RepositoryOwner(GogsModel):
    """A user or organization on the Gogs server.

    Whether an owner is a user or an organization is not encoded here; it is
    resolved by querying the organization endpoint.
    """

    id: Optional[int] = Field(default=None, description="Numeric owner ID")
    username: str = Field(
        default="",
        validation_alias=AliasChoices("username", "login"),
        description="Owner identifier",
    )
    full_name: Optional[str] = Field(default=None, description="Display name")
    avatar_url: Optional[str] = Field(default=None, description="Avatar URL")

    @property
    def display_name(self) -> str:
        return self.full_name or self.username


class Repository(GogsModel):
    """Gogs repository metadata."""

    full_name: str = Field(..., description="Full repository name (owner/repo)")
    owner: Optional[RepositoryOwner] = Field(default=None, description="Repository owner")
    description: Optional[str] = Field(default=None, description="Repository description")
    html_url: Optional[str] = Field(default=None, description="Canonical web URL")
    private: bool = Field(
        default=False,
        validation_alias=AliasChoices("private", "is_private"),
        description="Whether repository is private",
    )

    @property
    def owner_name(self) -> Optional[str]:
        if "/" in self.full_name:
            return self.full_name.split("/", 1)[0]
        return self.owner.username if self.owner else None

    @property
    def repository_name(self) -> Optional[str]:
        if "/" in self.full_name:
            return self.full_name.split("/", 1)[1]
        return self.full_name or None


class RepositoryList(GogsModel):
    """Wrapper returned by the repository search endpoint."""

    ok: bool = True
    data: List[Repository] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Branches
# ---------------------------------------------------------------------------


class Commit(GogsModel):
    """Commit at the tip of a branch."""

    hash: str = Field(..., alias="id", description="Commit SHA")
    message: Optional[str] = Field(default=None, description="Commit message")


class Branch(GogsModel):
    """Gogs branch. ``commit`` is absent for repositories without commits."""

    name: str = Field(..., description="Branch name")
    commit: Optional[Commit] = Field(default=None, description="Tip commit")


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------


class Organization(GogsModel):
    """Gogs organization."""

    name: str = Field(..., alias="username", description="Organization name")
    display_name: Optional[str] = Field(default=None, alias="full_name")
    avatar_url: Optional[str] = Field(default=None)
    description: Optional[str] = Field(default=None)

    @property
    def html_url(self) -> Optional[str]:
        """Organization page URL, derived from the avatar URL host.

        Gogs does not return the organization URL, so the server location is
        taken from the avatar URL and the organization name appended.
        """
        if not self.avatar_url:
            return None
        endpoint = urlsplit(self.avatar_url)
        if not endpoint.scheme or not endpoint.hostname:
            return None
        netloc = endpoint.hostname
        if endpoint.port is not None:
            netloc = f"{netloc}:{endpoint.port}"
        return f"{endpoint.scheme}://{netloc}/{self.name}"


# ---------------------------------------------------------------------------
# Webhooks
# ---------------------------------------------------------------------------


class HookConfig(GogsModel):
    """Delivery configuration of a webhook."""

    url: str = Field(..., description="Target URL")
    content_type: str = Field(default="json", description="Payload content type")


class WebHook(GogsModel):
    """Repository webhook.

    ``id`` is assigned by the server when the hook is registered and is
    required to remove it later.
    """

    id: Optional[int] = Field(default=None, description="Server assigned ID")
    type: str = Field(default="gogs", description="Hook type tag")
    active: bool = Field(default=True)
    config: HookConfig
    events: List[str] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize to the hook registration request body."""
        return self.model_dump(include={"active", "type", "config", "events"})

    def targets(self, url: str) -> bool:
        return self.config.url == url


# ---------------------------------------------------------------------------
# Issues
# ---------------------------------------------------------------------------


class Issue(GogsModel):
    """Issue used to record a build status."""

    title: str
    body: str = ""
    assignee: Optional[str] = None
    labels: Optional[List[int]] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Webhook payloads
# ---------------------------------------------------------------------------


class PayloadOwner(GogsModel):
    """Owner summary embedded in webhook payloads."""

    id: Optional[int] = None
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None


class PayloadRepository(GogsModel):
    """Repository summary embedded in webhook payloads."""

    id: Optional[int] = None
    name: str
    full_name: Optional[str] = None
    html_url: Optional[str] = None
    private: Optional[bool] = None
    owner: PayloadOwner


class PushEvent(GogsModel):
    """Push (and create / pull_request) webhook payload projection."""

    ref: Optional[str] = None
    repository: PayloadRepository

    @property
    def owner(self) -> str:
        return self.repository.owner.username

    @property
    def repository_name(self) -> str:
        return self.repository.name

    @property
    def branch(self) -> Optional[str]:
        if self.ref and self.ref.startswith("refs/heads/"):
            return self.ref[len("refs/heads/"):]
        return self.ref


__all__ = [
    "Branch",
    "Commit",
    "HookConfig",
    "Issue",
    "Organization",
    "PayloadOwner",
    "PayloadRepository",
    "PushEvent",
    "Repository",
    "RepositoryList",
    "RepositoryOwner",
    "WebHook",
]
