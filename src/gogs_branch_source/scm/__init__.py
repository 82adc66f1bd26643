"""Branch sources, discovery and the host registry seam."""

from .discovery import (
    BranchDiscovery,
    BranchProbe,
    DiscoveryCancelled,
    DiscoveryResult,
    MarkerFileCriteria,
)
from .navigator import GogsSCMNavigator
from .patterns import compile_pattern, matches
from .registry import (
    InMemorySourceRegistry,
    LoggerListener,
    SCMSourceOwner,
    SourceOwner,
    SourceOwnerRegistry,
    TaskListener,
)
from .source import (
    ANONYMOUS,
    SAME,
    GogsSCMSource,
    SCMHead,
    SCMHeadWithOwnerAndRepo,
    SCMRevision,
)

__all__ = [
    "ANONYMOUS",
    "BranchDiscovery",
    "BranchProbe",
    "DiscoveryCancelled",
    "DiscoveryResult",
    "GogsSCMNavigator",
    "GogsSCMSource",
    "InMemorySourceRegistry",
    "LoggerListener",
    "MarkerFileCriteria",
    "SAME",
    "SCMHead",
    "SCMHeadWithOwnerAndRepo",
    "SCMRevision",
    "SCMSourceOwner",
    "SourceOwner",
    "SourceOwnerRegistry",
    "TaskListener",
    "compile_pattern",
    "matches",
]
