"""Gogs API client wrapper for repository operations.

This module provides a high-level interface to the Gogs REST API (``/api/v1``)
for fetching repositories, branches and organizations, managing repository
webhooks and creating issues. One client is scoped to one repository owner
and, optionally, one repository. Developed against Gogs 0.9+.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError
from requests.auth import HTTPBasicAuth

from ..config import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    Credentials,
    ProxySettings,
    ServerSettings,
    normalize_server_url,
)
from .exceptions import GogsParseError, GogsRequestError
from .models import (
    Branch,
    Issue,
    Organization,
    Repository,
    RepositoryList,
    RepositoryOwner,
    WebHook,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

API_BASE_PATH = "/api/v1"
API_REPOSITORIES_PATH = API_BASE_PATH + "/repos/search?q=_&uid={uid}&limit={limit}"
API_REPOSITORY_PATH = API_BASE_PATH + "/repos/{owner}/{repo}"
API_BRANCHES_PATH = API_REPOSITORY_PATH + "/branches"
API_BRANCH_PATH = API_REPOSITORY_PATH + "/branches/{branch}"
API_HOOKS_PATH = API_REPOSITORY_PATH + "/hooks"
API_HOOK_PATH = API_REPOSITORY_PATH + "/hooks/{hook_id}"
API_ORGANIZATION_PATH = API_BASE_PATH + "/orgs/{owner}"
API_USER_PATH = API_BASE_PATH + "/users/{owner}"
API_CONTENT_PATH = API_REPOSITORY_PATH + "/raw/{branch}/{path}"
API_ISSUES_PATH = API_REPOSITORY_PATH + "/issues"

DEFAULT_REPOSITORY_READ_LIMIT = 1000
USER_AGENT = "gogs-branch-source"


def _segment(value: str) -> str:
    return quote(value, safe="")


# ---------------------------------------------------------------------------
# Gogs API Client
# ---------------------------------------------------------------------------


@dataclass
class GogsAPIClient:
    """High-level Gogs API client bound to one owner (and optional repository).

    Every call builds a fully-qualified URL from ``server_url`` and issues a
    blocking request with fixed connect/read timeouts. Non-2xx responses are
    raised as :class:`GogsRequestError`; the client never retries.

    Example:
        >>> client = GogsAPIClient("https://git.example.com", owner="alice", repository="proj")
        >>> [b.name for b in client.get_branches()]
        ['master', 'feature-1']
    """

    server_url: str
    owner: str
    repository: Optional[str] = None
    credentials: Optional[Credentials] = None
    proxy: Optional[ProxySettings] = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize HTTP session."""
        self.server_url = normalize_server_url(self.server_url)

        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            }
        )
        if self.credentials is not None:
            self.session.auth = HTTPBasicAuth(
                self.credentials.username,
                self.credentials.password.get_secret_value(),
            )

    # -- Repository --------------------------------------------------------

    def get_repository(self) -> Optional[Repository]:
        """Get the bound repository, or ``None`` when no repository is set.

        Raises:
            GogsRequestError: On non-200 responses or transport failure
            GogsParseError: If the response is not a repository document
        """
        if self.repository is None:
            return None
        body = self._get(self._repo_path(API_REPOSITORY_PATH))
        return self._parse(body, Repository)

    def is_private(self) -> bool:
        """Return True if the bound repository is private (False if unbound)."""
        repo = self.get_repository()
        return repo.private if repo is not None else False

    # -- Branches ----------------------------------------------------------

    def get_branches(self) -> List[Branch]:
        """List repository branches in server order.

        A repository without branches yields an empty list, not an error.
        """
        body = self._get(self._repo_path(API_BRANCHES_PATH))
        if not body.strip() or body.strip() == "null":
            return []
        return self._parse_list(body, Branch)

    def get_branch(self, name: str) -> Optional[Branch]:
        """Get a single branch, or ``None`` when no repository is set.

        Raises:
            GogsRequestError: With status 404 if the branch does not exist
        """
        if self.repository is None:
            return None
        body = self._get(self._repo_path(API_BRANCH_PATH, branch=_segment(name)))
        return self._parse(body, Branch)

    def check_path_exists(self, branch: str, path: str) -> bool:
        """Probe whether ``path`` exists at the tip of ``branch``.

        Returns False on any non-200 status and on transport failure; this
        method never raises.
        """
        url = self._url(
            self._repo_path(
                API_CONTENT_PATH,
                branch=_segment(branch),
                path=quote(path.lstrip("/"), safe="/"),
            )
        )
        logger.debug(
            f"Checking path {path} on branch {branch}",
            extra={"repository": self.full_name, "branch": branch, "path": path},
        )
        try:
            response = self._send("GET", url)
        except GogsRequestError as e:
            logger.error(
                f"Communication error while probing {path} on {self.full_name}: {e}",
                extra={"repository": self.full_name, "branch": branch},
                exc_info=True,
            )
            return False
        return response.status_code == 200

    # -- Owners ------------------------------------------------------------

    def get_organization(self) -> Optional[Organization]:
        """Get the owner as an organization.

        Returns:
            The organization, or ``None`` if the owner is a regular user
            (the organization endpoint answers 404 for users)
        """
        try:
            body = self._get(API_ORGANIZATION_PATH.format(owner=_segment(self.owner)))
        except GogsRequestError as e:
            if e.is_not_found:
                logger.debug(
                    f"{self.owner} is not an organization",
                    extra={"owner": self.owner},
                )
                return None
            raise
        return self._parse(body, Organization)

    def get_user(self) -> RepositoryOwner:
        """Get the owner through the user endpoint."""
        body = self._get(API_USER_PATH.format(owner=_segment(self.owner)))
        return self._parse(body, RepositoryOwner)

    def get_repositories(self) -> List[Repository]:
        """List all repositories visible for the owner (user or organization)."""
        user = self.get_user()
        if user.id is None:
            raise GogsParseError(f"Owner {self.owner} has no numeric ID")
        path = API_REPOSITORIES_PATH.format(uid=user.id, limit=DEFAULT_REPOSITORY_READ_LIMIT)
        body = self._get(path)
        return self._parse(body, RepositoryList).data

    # -- Webhooks ----------------------------------------------------------

    def get_web_hooks(self) -> List[WebHook]:
        """List webhooks registered on the repository."""
        path = self._repo_path(API_HOOKS_PATH)
        logger.debug(f"Listing webhooks: {path}", extra={"repository": self.full_name})
        body = self._get(path)
        if not body.strip() or body.strip() == "null":
            return []
        return self._parse_list(body, WebHook)

    def register_commit_web_hook(self, hook: WebHook) -> Optional[WebHook]:
        """Register a webhook on the repository.

        Returns:
            The created hook as returned by the server (with its ID), or
            ``None`` if the server answered without a body
        """
        logger.info(
            f"Creating webhook for {self.full_name}",
            extra={
                "repository": self.full_name,
                "hook_url": hook.config.url,
                "events": hook.events,
            },
        )
        body = self._post(self._repo_path(API_HOOKS_PATH), hook.to_payload())
        if not body.strip():
            return None
        return self._parse(body, WebHook)

    def remove_commit_web_hook(self, hook: WebHook) -> None:
        """Remove a webhook. The hook must carry its server assigned ID."""
        if hook.id is None:
            raise ValueError("Webhook ID is required to remove a webhook")
        logger.info(
            f"Deleting webhook {hook.id} for {self.full_name}",
            extra={"repository": self.full_name, "webhook_id": hook.id},
        )
        path = self._repo_path(API_HOOK_PATH, hook_id=hook.id)
        self._request("DELETE", path, ok_statuses=(200, 204))

    # -- Issues ------------------------------------------------------------

    def create_issue(self, issue: Issue) -> None:
        """Create an issue on the repository."""
        logger.info(
            f"Creating issue on {self.full_name}: {issue.title}",
            extra={"repository": self.full_name},
        )
        self._post(self._repo_path(API_ISSUES_PATH), issue.to_payload())

    # -- Helpers -----------------------------------------------------------

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}" if self.repository else self.owner

    def _repo_path(self, template: str, **params: Any) -> str:
        if self.repository is None:
            raise ValueError(f"No repository bound to the client for owner {self.owner}")
        return template.format(
            owner=_segment(self.owner), repo=_segment(self.repository), **params
        )

    def _url(self, path: str) -> str:
        return self.server_url + path

    def _proxies(self, url: str) -> Optional[Dict[str, str]]:
        if self.proxy is None or not self.proxy.applies_to(url):
            return None
        proxy_url = self.proxy.proxy_url()
        return {"http": proxy_url, "https": proxy_url}

    def _send(
        self, method: str, url: str, *, data: Optional[Dict[str, Any]] = None
    ) -> requests.Response:
        try:
            return self.session.request(
                method=method,
                url=url,
                json=data,
                timeout=(self.connect_timeout, self.read_timeout),
                proxies=self._proxies(url),
            )
        except requests.RequestException as e:
            raise GogsRequestError.communication_error(e) from e

    def _request(
        self,
        method: str,
        path: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        ok_statuses: tuple = (200,),
    ) -> str:
        """Make an HTTP request and return the response body.

        Raises:
            GogsRequestError: If the status is not one of ``ok_statuses``
        """
        response = self._send(method, self._url(path), data=data)
        if response.status_code == 204:
            return ""
        body = response.text or ""
        if response.status_code not in ok_statuses:
            raise GogsRequestError(response.status_code, body)
        return body

    def _get(self, path: str) -> str:
        return self._request("GET", path)

    def _post(self, path: str, data: Dict[str, Any]) -> str:
        return self._request("POST", path, data=data, ok_statuses=(200, 201))

    @staticmethod
    def _parse(body: str, model: Type[ModelT]) -> ModelT:
        try:
            return model.model_validate_json(body)
        except ValidationError as e:
            raise GogsParseError(f"Invalid {model.__name__} response: {e}", body) from e

    @staticmethod
    def _parse_list(body: str, model: Type[ModelT]) -> List[ModelT]:
        try:
            return TypeAdapter(List[model]).validate_json(body)  # type: ignore[valid-type]
        except ValidationError as e:
            raise GogsParseError(f"Invalid {model.__name__} list response: {e}", body) from e


# ---------------------------------------------------------------------------
# Connector
# ---------------------------------------------------------------------------


@dataclass
class GogsConnector:
    """Creates API clients for one Gogs server."""

    server_url: str
    proxy: Optional[ProxySettings] = None
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT

    def __post_init__(self) -> None:
        self.server_url = normalize_server_url(self.server_url)

    @classmethod
    def from_settings(cls, settings: ServerSettings) -> "GogsConnector":
        return cls(
            server_url=settings.server_url,
            proxy=settings.proxy,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )

    def create(
        self,
        owner: str,
        repository: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ) -> GogsAPIClient:
        return GogsAPIClient(
            server_url=self.server_url,
            owner=owner,
            repository=repository,
            credentials=credentials,
            proxy=self.proxy,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
        )


# ---------------------------------------------------------------------------
# Convenience functions
# ---------------------------------------------------------------------------


def connect(
    server_url: str,
    owner: str,
    repository: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> GogsAPIClient:
    """Create Gogs API client (convenience function).

    Blank username or password means anonymous access.
    """
    return GogsAPIClient(
        server_url=server_url,
        owner=owner,
        repository=repository,
        credentials=Credentials.from_values(username, password),
    )


__all__ = [
    "API_BASE_PATH",
    "DEFAULT_REPOSITORY_READ_LIMIT",
    "GogsAPIClient",
    "GogsConnector",
    "connect",
]
