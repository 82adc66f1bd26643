"""Branch discovery for a Gogs SCM source.

Enumerates the branches of one repository, filters them through the
source's include/exclude patterns and an optional head criteria, and emits
one ``(head, revision)`` pair per surviving branch to the host's observer.

Example:
    >>> discovery = BranchDiscovery(source, connector)
    >>> result = discovery.retrieve(observer, criteria=MarkerFileCriteria("Jenkinsfile"))
    >>> print(result.observed, result.skipped)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from ..api.client import GogsAPIClient, GogsConnector
from ..api.exceptions import GogsError
from .registry import LoggerListener, TaskListener
from .source import GogsSCMSource, SCMHead, SCMRevision

logger = logging.getLogger(__name__)


class DiscoveryCancelled(GogsError):
    """Raised when a discovery run is interrupted."""


# ---------------------------------------------------------------------------
# Host-side protocols
# ---------------------------------------------------------------------------


class HeadObserver(Protocol):
    def observe(self, head: SCMHead, revision: SCMRevision) -> Optional[bool]:
        """Receive one head. Returning ``False`` stops discovery."""
        ...


class Probe(Protocol):
    def name(self) -> str:
        ...

    def last_modified(self) -> int:
        ...

    def exists(self, path: str) -> bool:
        ...


class HeadCriteria(Protocol):
    def is_head(self, probe: Probe, listener: TaskListener) -> bool:
        ...


# ---------------------------------------------------------------------------
# Probe and criteria
# ---------------------------------------------------------------------------


class BranchProbe:
    """Answers path-existence questions about one branch."""

    def __init__(
        self,
        client: GogsAPIClient,
        branch_name: str,
        thing: str = "branch",
        listener: Optional[TaskListener] = None,
    ):
        self.client = client
        self.branch_name = branch_name
        self.thing = thing
        self.listener = listener or LoggerListener(logger)

    def name(self) -> str:
        return self.branch_name

    def last_modified(self) -> int:
        # Gogs does not expose a cheap last-modified lookup.
        return 0

    def exists(self, path: str) -> bool:
        if self.client.check_path_exists(self.branch_name, path):
            return True
        self.listener.log(f"      ‘{path}’ does not exist in this {self.thing}")
        return False


class MarkerFileCriteria:
    """Criteria accepting branches that contain every given path."""

    def __init__(self, *paths: str):
        self.paths = [path for path in paths if path]

    def is_head(self, probe: Probe, listener: TaskListener) -> bool:
        return all(probe.exists(path) for path in self.paths)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


@dataclass
class DiscoveryResult:
    """Summary of one discovery run."""

    observed: int = 0
    skipped: List[str] = field(default_factory=list)
    stopped_early: bool = False


class BranchDiscovery:
    """Discovers the buildable branches of one source."""

    def __init__(self, source: GogsSCMSource, connector: Optional[GogsConnector] = None):
        self.source = source
        self.connector = connector or GogsConnector(server_url=source.server_url)

    def _client(self) -> GogsAPIClient:
        return self.source.build_client(self.connector)

    def retrieve(
        self,
        observer: HeadObserver,
        criteria: Optional[HeadCriteria] = None,
        cancel_event: Optional[threading.Event] = None,
        listener: Optional[TaskListener] = None,
    ) -> DiscoveryResult:
        """Emit every buildable branch to ``observer``.

        Args:
            observer: Receives ``(head, revision)`` pairs
            criteria: Optional per-branch filter consulted through a probe
            cancel_event: Checked before listing and before each branch
            listener: Task log for progress lines

        Returns:
            DiscoveryResult with the number of heads observed

        Raises:
            GogsRequestError: If the branch list cannot be fetched
            DiscoveryCancelled: If ``cancel_event`` is set during the run
        """
        listener = listener or LoggerListener(logger)
        source = self.source
        if source.credentials is None:
            listener.log(f"Connecting to {source.server_url} with no credentials, anonymous access")
        else:
            listener.log(f"Connecting to {source.server_url} using {source.credentials.username}")

        listener.log(f"Looking up {source.full_name} for branches")
        self._check_cancelled(cancel_event)
        client = self._client()
        branches = client.get_branches()
        result = DiscoveryResult()

        for branch in branches:
            self._check_cancelled(cancel_event)

            branch_name = branch.name
            listener.log(f"Checking branch {branch_name} from {source.full_name}")
            if source.is_excluded(branch_name):
                result.skipped.append(branch_name)
                continue

            try:
                if criteria is not None:
                    probe = BranchProbe(client, branch_name, "branch", listener)
                    if criteria.is_head(probe, listener):
                        listener.log("    Met criteria")
                    else:
                        listener.log("    Does not meet criteria")
                        result.skipped.append(branch_name)
                        continue

                if branch.commit is None:
                    logger.warning(
                        f"Branch {branch_name} of {source.full_name} has no commit",
                        extra={"repository": source.full_name, "branch": branch_name},
                    )
                    result.skipped.append(branch_name)
                    continue

                head = SCMHead(branch_name)
                answer = observer.observe(head, SCMRevision(head, branch.commit.hash))
                result.observed += 1
            except DiscoveryCancelled:
                raise
            except Exception:
                logger.exception(
                    f"Failed to process branch {branch_name} of {source.full_name}",
                    extra={"repository": source.full_name, "branch": branch_name},
                )
                result.skipped.append(branch_name)
                continue

            if answer is False:
                result.stopped_early = True
                break

        logger.info(
            f"Discovered {result.observed} branch(es) in {source.full_name}",
            extra={"repository": source.full_name, "skipped": len(result.skipped)},
        )
        return result

    def _check_cancelled(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise DiscoveryCancelled(f"Branch discovery of {self.source.full_name} interrupted")

    def retrieve_head(
        self, head: SCMHead, listener: Optional[TaskListener] = None
    ) -> Optional[SCMRevision]:
        """Return the current revision of ``head``, or None if it has no commit.

        Raises:
            GogsRequestError: If the branch does not exist
        """
        listener = listener or LoggerListener(logger)
        branch = self._client().get_branch(head.name)
        if branch is None:
            return None
        listener.log(f"Retrieving HEAD for {branch.name} branch")
        if branch.commit is not None:
            return SCMRevision(head, branch.commit.hash)
        logger.warning(
            f"No branch found in {self.source.full_name} with name [{head.name}]",
            extra={"repository": self.source.full_name, "branch": head.name},
        )
        return None


__all__ = [
    "BranchDiscovery",
    "BranchProbe",
    "DiscoveryCancelled",
    "DiscoveryResult",
    "HeadCriteria",
    "HeadObserver",
    "MarkerFileCriteria",
    "Probe",
]
