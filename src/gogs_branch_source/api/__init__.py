"""Gogs REST API client, models and errors."""

from .client import (
    API_BASE_PATH,
    DEFAULT_REPOSITORY_READ_LIMIT,
    GogsAPIClient,
    GogsConnector,
    connect,
)
from .exceptions import GogsError, GogsParseError, GogsRequestError
from .models import (
    Branch,
    Commit,
    HookConfig,
    Issue,
    Organization,
    PayloadOwner,
    PayloadRepository,
    PushEvent,
    Repository,
    RepositoryList,
    RepositoryOwner,
    WebHook,
)

__all__ = [
    "API_BASE_PATH",
    "DEFAULT_REPOSITORY_READ_LIMIT",
    "Branch",
    "Commit",
    "GogsAPIClient",
    "GogsConnector",
    "GogsError",
    "GogsParseError",
    "GogsRequestError",
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
    "connect",
]
