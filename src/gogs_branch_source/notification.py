"""Build status notification through Gogs issues.

Gogs has no commit status API, so an unsuccessful build is reported by
opening an issue on the repository naming the commit, the branch job and
the build URL. Successful builds report nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .api.client import GogsConnector
from .api.exceptions import GogsError
from .api.models import Issue
from .scm.registry import SCMSourceOwner
from .scm.source import GogsSCMSource, SCMRevision

logger = logging.getLogger(__name__)

UNCONFIGURED_ROOT_URL = "http://unconfigured-jenkins-location/"

MESSAGE_UNSTABLE = "This commit has test failures"
MESSAGE_FAILURE = "This commit cannot be built"
MESSAGE_OTHER = "Something is wrong with the build of this commit"


class BuildResult(str, Enum):
    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    ABORTED = "ABORTED"
    NOT_BUILT = "NOT_BUILT"


class CommitState(str, Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
    FAILURE = "FAILURE"


@dataclass
class BuildRun:
    """What the host knows about one build of a branch job."""

    owner: SCMSourceOwner
    job_name: str
    revision: Optional[SCMRevision] = None
    result: Optional[BuildResult] = None
    url: Optional[str] = None


def create_commit_status(
    revision_hash: str,
    state: CommitState,
    build_url: str,
    message: str,
    job_name: str,
    build_failure_label_id: int = 0,
) -> Issue:
    """Build the issue describing a build state for one commit."""
    labels = [build_failure_label_id] if build_failure_label_id > 0 else None
    return Issue(
        title=f"BUILD {state.value} for commit: {revision_hash[:7]} branch: {job_name}",
        body=f"Commit: {revision_hash}<br>{message}<br>Build URL: {build_url}",
        labels=labels,
    )


class BuildStatusNotifier:
    """Reports build results of Gogs-sourced jobs as repository issues."""

    def __init__(self, connector: Optional[GogsConnector] = None):
        self.connector = connector

    def notify(
        self,
        source: GogsSCMSource,
        job_name: str,
        revision_hash: str,
        result: Optional[BuildResult],
        build_url: Optional[str] = None,
    ) -> Optional[Issue]:
        """Open an issue for an unsuccessful build.

        Args:
            source: Source the build was checked out from
            job_name: Name of the branch job
            revision_hash: Commit that was built
            result: Build result, ``None`` while the build is running
            build_url: Absolute URL of the build page

        Returns:
            The created issue, or None when nothing was reported
        """
        build_url = build_url or UNCONFIGURED_ROOT_URL
        if result == BuildResult.UNSTABLE:
            state, message = CommitState.FAILURE, MESSAGE_UNSTABLE
        elif result == BuildResult.FAILURE:
            state, message = CommitState.FAILURE, MESSAGE_FAILURE
        elif result is not None and result != BuildResult.SUCCESS:
            state, message = CommitState.ERROR, MESSAGE_OTHER
        else:
            return None

        try:
            client = source.build_client(self.connector)
            repository = client.get_repository()
            if repository is None:
                return None
            logger.debug(
                f"{repository.html_url}/commit/{revision_hash} {state.value} from {build_url}",
                extra={"repository": source.full_name, "state": state.value},
            )
            issue = create_commit_status(
                revision_hash,
                state,
                build_url,
                message,
                job_name,
                source.build_failure_label_id,
            )
            logger.info(
                f"create issue with title: {issue.title}",
                extra={"repository": source.full_name},
            )
            client.create_issue(issue)
            return issue
        except GogsError as e:
            logger.warning(
                f"Could not update commit status. Message: {e}",
                extra={"repository": source.full_name},
                exc_info=True,
            )
            return None

    # -----------------------------------------------------------------------
    # Build lifecycle
    # -----------------------------------------------------------------------

    def on_checkout(self, run: BuildRun) -> Optional[Issue]:
        return self._notify_run(run)

    def on_completed(self, run: BuildRun) -> Optional[Issue]:
        return self._notify_run(run)

    def _notify_run(self, run: BuildRun) -> Optional[Issue]:
        source = next(
            (s for s in run.owner.scm_sources if isinstance(s, GogsSCMSource)), None
        )
        if source is None or run.revision is None:
            return None
        return self.notify(source, run.job_name, run.revision.hash, run.result, run.url)


__all__ = [
    "BuildResult",
    "BuildRun",
    "BuildStatusNotifier",
    "CommitState",
    "create_commit_status",
]
