"""Tests for build status notification."""

from unittest.mock import MagicMock, Mock

import pytest

from gogs_branch_source.api.client import GogsAPIClient
from gogs_branch_source.api.exceptions import GogsRequestError
from gogs_branch_source.api.models import Repository
from gogs_branch_source.notification import (
    BuildResult,
    BuildRun,
    BuildStatusNotifier,
    CommitState,
    create_commit_status,
)
from gogs_branch_source.scm.registry import SourceOwner
from gogs_branch_source.scm.source import SCMHead, SCMRevision

SHA = "0123456789abcdef0123456789abcdef01234567"
BUILD_URL = "https://ci.example.com/job/proj/job/master/3/"


@pytest.fixture
def client():
    client = MagicMock(spec=GogsAPIClient)
    client.get_repository.return_value = Repository(
        full_name="alice/proj", html_url="https://git.example.com/alice/proj"
    )
    return client


@pytest.fixture
def notifier(client):
    connector = Mock()
    connector.create.return_value = client
    return BuildStatusNotifier(connector)


def test_create_commit_status():
    issue = create_commit_status(SHA, CommitState.FAILURE, BUILD_URL, "This commit cannot be built", "master", 4)

    assert issue.title == "BUILD FAILURE for commit: 0123456 branch: master"
    assert issue.body == f"Commit: {SHA}<br>This commit cannot be built<br>Build URL: {BUILD_URL}"
    assert issue.labels == [4]


def test_create_commit_status_without_label():
    issue = create_commit_status(SHA, CommitState.ERROR, BUILD_URL, "x", "master")

    assert issue.labels is None
    assert "labels" not in issue.to_payload()


@pytest.mark.parametrize(
    "result,state,message",
    [
        (BuildResult.UNSTABLE, "FAILURE", "This commit has test failures"),
        (BuildResult.FAILURE, "FAILURE", "This commit cannot be built"),
        (BuildResult.ABORTED, "ERROR", "Something is wrong with the build of this commit"),
        (BuildResult.NOT_BUILT, "ERROR", "Something is wrong with the build of this commit"),
    ],
)
def test_unsuccessful_builds_open_issue(result, state, message, notifier, client, make_source):
    issue = notifier.notify(make_source(build_failure_label_id=2), "master", SHA, result, BUILD_URL)

    assert issue.title.startswith(f"BUILD {state} ")
    assert message in issue.body
    assert issue.labels == [2]
    client.create_issue.assert_called_once_with(issue)


@pytest.mark.parametrize("result", [BuildResult.SUCCESS, None])
def test_success_or_running_reports_nothing(result, notifier, client, make_source):
    assert notifier.notify(make_source(), "master", SHA, result, BUILD_URL) is None
    client.create_issue.assert_not_called()


def test_unbound_repository_reports_nothing(notifier, client, make_source):
    client.get_repository.return_value = None

    assert notifier.notify(make_source(), "master", SHA, BuildResult.FAILURE, BUILD_URL) is None
    client.create_issue.assert_not_called()


def test_request_error_is_logged(notifier, client, make_source, caplog):
    client.create_issue.side_effect = GogsRequestError(403, "forbidden")

    assert notifier.notify(make_source(), "master", SHA, BuildResult.FAILURE, BUILD_URL) is None
    assert "Could not update commit status" in caplog.text


def test_missing_build_url_uses_placeholder(notifier, make_source):
    issue = notifier.notify(make_source(), "master", SHA, BuildResult.FAILURE)

    assert issue.body.endswith("Build URL: http://unconfigured-jenkins-location/")


def test_on_completed_uses_owner_source(notifier, client, make_source):
    owner = SourceOwner(name="proj", sources=[Mock(), make_source()])
    run = BuildRun(
        owner=owner,
        job_name="master",
        revision=SCMRevision(SCMHead("master"), SHA),
        result=BuildResult.UNSTABLE,
        url=BUILD_URL,
    )

    issue = notifier.on_completed(run)

    assert issue.title == "BUILD FAILURE for commit: 0123456 branch: master"
    client.create_issue.assert_called_once()


def test_on_checkout_without_revision(notifier, client, make_source):
    run = BuildRun(owner=SourceOwner(name="proj", sources=[make_source()]), job_name="master")

    assert notifier.on_checkout(run) is None
    client.get_repository.assert_not_called()
