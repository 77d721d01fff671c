"""
Unit tests for the Gabber REST API client.

Requests are served by an httpx.MockTransport, so no network access is needed.
"""

import json

import httpx
import pytest

from gabber.models.session_schemas import RealtimeSessionStartRequest, SessionStartRequest
from gabber.services.api_client import GabberApiClient, GabberApiError

CONNECTION_BODY = {"connection_details": {"url": "wss://room.example", "token": "join-token"}}


def make_client(handler):
    return GabberApiClient(
        "api-token",
        base_url="https://api.example.test/",
        transport=httpx.MockTransport(handler),
    )


def test_http_client_created_lazily():
    client = GabberApiClient("api-token")
    assert client._client is None
    assert client.client is client.client
    assert client.client.headers["Authorization"] == "Bearer api-token"
    assert client.client.base_url.host == "api.gabber.dev"


@pytest.mark.asyncio
async def test_start_session():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json=CONNECTION_BODY)

    async with make_client(handler) as client:
        response = await client.start_session(SessionStartRequest(persona="p-1", time_limit_s=60))

    assert response.connection_details.token == "join-token"
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/api/v1/session/start"
    assert request.headers["Authorization"] == "Bearer api-token"
    assert json.loads(request.content) == {"persona": "p-1", "time_limit_s": 60}


@pytest.mark.asyncio
async def test_start_realtime_session():
    def handler(request):
        assert request.url.path == "/api/v1/realtime/start"
        assert json.loads(request.content) == {"config": {"voice": "v1"}}
        return httpx.Response(200, json=CONNECTION_BODY)

    async with make_client(handler) as client:
        response = await client.start_realtime_session(
            RealtimeSessionStartRequest(config={"voice": "v1"})
        )
    assert response.connection_details.url == "wss://room.example"


@pytest.mark.asyncio
async def test_error_status_raises():
    def handler(request):
        return httpx.Response(401, text="invalid token")

    async with make_client(handler) as client:
        with pytest.raises(GabberApiError) as exc_info:
            await client.start_session(SessionStartRequest())
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "invalid token"


@pytest.mark.asyncio
async def test_unexpected_body_raises():
    def handler(request):
        return httpx.Response(200, json={"connection_details": {"url": "wss://x"}})

    async with make_client(handler) as client:
        with pytest.raises(GabberApiError):
            await client.start_session(SessionStartRequest())


@pytest.mark.asyncio
async def test_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(GabberApiError) as exc_info:
            await client.list_voices()
    assert exc_info.value.status_code is None


@pytest.mark.asyncio
async def test_list_voices_with_page():
    def handler(request):
        assert request.url.path == "/api/v1/voice/list"
        assert request.url.params["page"] == "cursor-2"
        return httpx.Response(200, json={
            "values": [{"id": "v1", "name": "Ava"}, {"id": "v2", "name": "Max"}],
            "total_count": 4,
            "next_page": "cursor-3",
        })

    async with make_client(handler) as client:
        page = await client.list_voices(page="cursor-2")
    assert [v.id for v in page.values] == ["v1", "v2"]
    assert page.next_page == "cursor-3"


@pytest.mark.asyncio
async def test_list_personas_and_scenarios():
    def handler(request):
        if request.url.path == "/api/v1/persona/list":
            return httpx.Response(200, json={"values": [{"id": "p1", "name": "Coach"}], "total_count": 1})
        return httpx.Response(200, json={"values": [{"id": "s1", "name": "Interview"}], "total_count": 1})

    async with make_client(handler) as client:
        personas = await client.list_personas()
        scenarios = await client.list_scenarios()
    assert personas.values[0].name == "Coach"
    assert scenarios.values[0].name == "Interview"
    assert personas.next_page is None


@pytest.mark.asyncio
async def test_get_session_messages():
    def handler(request):
        assert request.url.path == "/api/v1/session/s-42/messages"
        return httpx.Response(200, json={
            "values": [{"id": "m1", "role": "assistant", "content": "Hi",
                        "created_at": "2024-10-22T10:15:30.5Z"}],
            "total_count": 1,
        })

    async with make_client(handler) as client:
        page = await client.get_session_messages("s-42")
    assert page.values[0].content == "Hi"


@pytest.mark.asyncio
async def test_aclose_resets_client():
    client = make_client(lambda request: httpx.Response(200, json=CONNECTION_BODY))
    await client.start_session(SessionStartRequest())
    await client.aclose()
    assert client._client is None
