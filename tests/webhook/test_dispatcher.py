"""Tests for webhook event dispatching."""

import json
from contextlib import contextmanager
from unittest.mock import Mock

import pytest

from gogs_branch_source.webhook.dispatcher import HOOK_PROCESSORS, WebhookDispatcher
from gogs_branch_source.webhook.models import HookEventType


def test_every_event_type_has_a_processor():
    assert set(HOOK_PROCESSORS) == set(HookEventType)


def test_missing_header(dispatcher, push_body):
    result = dispatcher.dispatch(None, push_body)

    assert result.status == 400
    assert result.text == "X-Gogs-Event HTTP header not found"


def test_unknown_header(dispatcher, push_body):
    result = dispatcher.dispatch("issues", push_body)

    assert result.status == 400
    assert result.text == "X-Gogs-Event HTTP header invalid: issues"


def test_push_reindexes_matching_source_once(dispatcher, make_owner, make_source, reindexed, push_body):
    make_owner("proj", make_source("alice", "proj"), on_reindex=reindexed.append)
    make_owner("other", make_source("alice", "other"), on_reindex=reindexed.append)

    result = dispatcher.dispatch("push", push_body)

    assert result.ok
    assert result.text == "ok"
    assert result.reindexed == 1
    assert [(s.repo_owner, s.repository) for s in reindexed] == [("alice", "proj")]


@pytest.mark.parametrize("event", ["create", "pull_request"])
def test_create_and_pull_request_share_push_handling(
    event, dispatcher, make_owner, make_source, reindexed, push_body
):
    make_owner("proj", make_source("alice", "proj"), on_reindex=reindexed.append)

    result = dispatcher.dispatch(event, push_body)

    assert result.status == 200
    assert result.event_type == HookEventType(event)
    assert len(reindexed) == 1


def test_unparsable_body_is_ok_without_reindex(dispatcher, make_owner, make_source, reindexed):
    make_owner("proj", make_source("alice", "proj"), on_reindex=reindexed.append)

    result = dispatcher.dispatch("push", b"{broken")

    assert result.status == 200
    assert result.text == "ok"
    assert reindexed == []


def test_all_matching_owners_are_reindexed(dispatcher, make_owner, make_source, reindexed, push_body):
    make_owner("first", make_source("alice", "proj"), on_reindex=reindexed.append)
    make_owner("second", make_source("alice", "proj"), on_reindex=reindexed.append)

    assert dispatcher.dispatch("push", push_body).reindexed == 2


def test_failing_owner_does_not_stop_scan(dispatcher, make_owner, make_source, reindexed, push_body):
    def explode(source):
        raise RuntimeError("host failure")

    make_owner("broken", make_source("alice", "proj"), on_reindex=explode)
    make_owner("healthy", make_source("alice", "proj"), on_reindex=reindexed.append)

    result = dispatcher.dispatch("push", push_body)

    assert result.status == 200
    assert len(reindexed) == 1


def test_other_source_types_are_ignored(registry, make_owner, reindexed, push_body):
    foreign = Mock(repo_owner="alice", repository="proj")
    make_owner("foreign", foreign, on_reindex=reindexed.append)

    assert WebhookDispatcher(registry).dispatch("push", push_body).reindexed == 0
    assert reindexed == []


def test_reindex_runs_as_system(registry, make_owner, make_source, push_body):
    states = []
    elevated = []

    @contextmanager
    def run_as_system():
        elevated.append(True)
        try:
            yield
        finally:
            elevated.pop()

    make_owner("proj", make_source("alice", "proj"), on_reindex=lambda s: states.append(bool(elevated)))

    WebhookDispatcher(registry, run_as_system=run_as_system).dispatch("push", push_body)

    assert states == [True]
    assert elevated == []


def test_owner_name_comparison_is_exact(dispatcher, make_owner, make_source, reindexed, push_payload):
    make_owner("proj", make_source("Alice", "proj"), on_reindex=reindexed.append)

    dispatcher.dispatch("push", json.dumps(push_payload))

    assert reindexed == []
