"""Tests for the aiohttp webhook receiver."""

import json

import pytest

from gogs_branch_source.config import ReceiverSettings
from gogs_branch_source.webhook.server import WebhookServer


@pytest.fixture
def server(dispatcher):
    return WebhookServer(dispatcher, ReceiverSettings(listen_port=18080))


def test_routes_registered(server):
    paths = {
        (route.method, route.resource.canonical)
        for route in server.app.router.routes()
    }

    assert ("POST", "/gogs-scmsource-hook/notify") in paths
    assert ("GET", "/health") in paths


@pytest.mark.asyncio
async def test_health_check(server, mock_request):
    response = await server.health_check(mock_request())

    assert response.status == 200
    data = json.loads(response.body.decode())
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_push_delivery(server, mock_request, make_owner, make_source, reindexed, push_body):
    make_owner("proj", make_source("alice", "proj"), on_reindex=reindexed.append)
    request = mock_request(headers={"X-Gogs-Event": "push"}, body=push_body)

    response = await server.handle_webhook(request)

    assert response.status == 200
    assert response.text == "ok"
    assert response.content_type == "text/plain"
    assert len(reindexed) == 1


@pytest.mark.asyncio
async def test_missing_event_header(server, mock_request, push_body):
    response = await server.handle_webhook(mock_request(body=push_body))

    assert response.status == 400
    assert response.text == "X-Gogs-Event HTTP header not found"


@pytest.mark.asyncio
async def test_invalid_event_header(server, mock_request, push_body):
    response = await server.handle_webhook(mock_request(headers={"X-Gogs-Event": "fork"}, body=push_body))

    assert response.status == 400
    assert response.text == "X-Gogs-Event HTTP header invalid: fork"


@pytest.mark.asyncio
async def test_alternate_event_header(server, mock_request, make_owner, make_source, reindexed, push_body):
    make_owner("proj", make_source("alice", "proj"), on_reindex=reindexed.append)

    response = await server.handle_webhook(mock_request(headers={"X-Event-Key": "push"}, body=push_body))

    assert response.status == 200
    assert len(reindexed) == 1


@pytest.mark.asyncio
async def test_start_stop(dispatcher, unused_tcp_port):
    server = WebhookServer(dispatcher, ReceiverSettings(listen_port=unused_tcp_port))

    await server.start()
    assert server.site is not None
    await server.stop()
