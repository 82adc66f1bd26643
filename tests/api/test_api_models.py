"""Tests for Gogs API data models."""

import pytest
from pydantic import ValidationError

from gogs_branch_source.api.models import (
    Branch,
    HookConfig,
    Issue,
    Organization,
    PushEvent,
    Repository,
    RepositoryOwner,
    WebHook,
)


def test_webhook_payload_round_trip():
    hook = WebHook(
        type="gogs",
        active=True,
        config=HookConfig(url="https://ci.example.com/gogs-scmsource-hook/notify", content_type="json"),
        events=["push", "create", "pull_request"],
    )

    payload = hook.to_payload()
    parsed = WebHook.model_validate(payload)

    assert set(payload) == {"active", "type", "config", "events"}
    assert set(payload["config"]) == {"url", "content_type"}
    assert (parsed.active, parsed.type, parsed.config.url, parsed.config.content_type, parsed.events) == (
        hook.active,
        hook.type,
        hook.config.url,
        hook.config.content_type,
        hook.events,
    )


def test_repository_accepts_legacy_private_flag():
    repo = Repository.model_validate({"full_name": "alice/proj", "is_private": True})

    assert repo.private is True
    assert repo.full_name == f"{repo.owner_name}/{repo.repository_name}"


def test_repository_owner_display_name_falls_back_to_username():
    assert RepositoryOwner(username="bob").display_name == "bob"
    assert RepositoryOwner(username="bob", full_name="Bob B").display_name == "Bob B"


def test_branch_without_commit():
    branch = Branch.model_validate({"name": "empty"})

    assert branch.commit is None


def test_commit_requires_id():
    with pytest.raises(ValidationError):
        Branch.model_validate({"name": "master", "commit": {"message": "no id"}})


@pytest.mark.parametrize(
    "avatar_url,expected",
    [
        ("https://git.example.com/avatars/3", "https://git.example.com/acme"),
        ("http://git.example.com:3000/avatars/3", "http://git.example.com:3000/acme"),
        (None, None),
    ],
)
def test_organization_html_url(avatar_url, expected):
    org = Organization.model_validate({"username": "acme", "avatar_url": avatar_url})

    assert org.html_url == expected


def test_issue_payload_with_labels():
    issue = Issue(title="t", body="b", labels=[4])

    assert issue.to_payload() == {"title": "t", "body": "b", "labels": [4]}


def test_push_event_accessors():
    event = PushEvent.model_validate(
        {
            "ref": "refs/heads/feature/x",
            "repository": {"name": "proj", "owner": {"username": "alice"}, "watchers": 2},
        }
    )

    assert event.owner == "alice"
    assert event.repository_name == "proj"
    assert event.branch == "feature/x"
