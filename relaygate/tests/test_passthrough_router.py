import json

import pytest
from starlette.requests import Request

from relaygate.adapters.passthrough import router as passthrough_router
from relaygate.adapters.relay.upstream import RelayReply
from relaygate.config.settings import settings
from relaygate.core.models import TeamInfo

_RELAY_BASE = "https://gateway.ai.cloudflare.com/v1/acct/gw"
_TEAM = TeamInfo(api_key="sk_test", team_id="team-a", name="Team A", created_at="2024-01-01T00:00:00+00:00")


def _build_request(path: str, subpath: str, body: bytes, query: str = "", team: TeamInfo | None = _TEAM) -> Request:
    scope = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "POST",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode("latin-1"),
        "query_string": query.encode("latin-1"),
        "headers": [
            (b"content-type", b"application/json"),
            (b"authorization", b"Bearer sk_test"),
            (b"anthropic-version", b"2023-06-01"),
        ],
        "client": ("127.0.0.1", 54321),
        "server": ("testserver", 80),
        "path_params": {"subpath": subpath},
    }

    async def receive() -> dict:
        return {"type": "http.request", "body": body, "more_body": False}

    request = Request(scope, receive)
    if team is not None:
        request.state.team = team
    return request


@pytest.fixture
def relay_calls(monkeypatch):
    monkeypatch.setattr(settings, "relay_base_url", _RELAY_BASE)
    monkeypatch.setattr(settings, "relay_token", "relay-secret")
    calls: list[dict] = []

    async def fake_forward(url, body, headers, method="POST"):
        calls.append({"url": url, "body": body, "headers": dict(headers), "method": method})
        return RelayReply(status_code=200, content=b'{"id":"resp-1"}')

    monkeypatch.setattr(passthrough_router, "forward", fake_forward)
    return calls


@pytest.mark.asyncio
async def test_openai_forwards_body_to_relay(relay_calls):
    payload = {"model": "gpt-4o-mini", "messages": [{"role": "user", "content": "hi"}]}
    request = _build_request("/openai/chat/completions", "chat/completions", json.dumps(payload).encode("utf-8"))

    response = await passthrough_router.openai_proxy("chat/completions", request)

    assert response.status_code == 200
    assert response.body == b'{"id":"resp-1"}'
    call = relay_calls[0]
    assert call["url"] == f"{_RELAY_BASE}/openai/v1/chat/completions"
    assert json.loads(call["body"]) == payload
    assert call["headers"]["Authorization"] == "Bearer relay-secret"
    assert json.loads(call["headers"]["cf-aig-metadata"]) == {"team_id": "team-a"}


@pytest.mark.asyncio
async def test_anthropic_forwards_raw_body_and_query(relay_calls):
    raw = b'{"model":"claude-3-haiku","max_tokens":5,"messages":[]}'
    request = _build_request("/anthropic/messages", "messages", raw, query="beta=true")

    await passthrough_router.anthropic_proxy("messages", request)

    call = relay_calls[0]
    assert call["url"] == f"{_RELAY_BASE}/anthropic/v1/messages?beta=true"
    assert call["body"] == raw
    assert call["headers"]["anthropic-version"] == "2023-06-01"


@pytest.mark.asyncio
async def test_workers_ai_target(relay_calls):
    request = _build_request("/workers-ai/chat/completions", "chat/completions", b'{"model":"@cf/meta/llama-3-8b-instruct"}')

    await passthrough_router.workers_ai_proxy("chat/completions", request)

    assert relay_calls[0]["url"] == f"{_RELAY_BASE}/workers-ai/v1/chat/completions"


@pytest.mark.asyncio
async def test_google_prefixes_model_for_compat_endpoint(relay_calls):
    request = _build_request("/google/chat/completions", "chat/completions", b'{"model":"gemini-1.5-flash","messages":[]}')

    await passthrough_router.google_proxy("chat/completions", request)

    call = relay_calls[0]
    assert call["url"] == f"{_RELAY_BASE}/compat/chat/completions"
    assert json.loads(call["body"])["model"] == "google-ai-studio/gemini-1.5-flash"


@pytest.mark.asyncio
async def test_google_requires_model(relay_calls):
    request = _build_request("/google/chat/completions", "chat/completions", b'{"messages":[]}')

    response = await passthrough_router.google_proxy("chat/completions", request)

    assert response.status_code == 400
    assert relay_calls == []


@pytest.mark.asyncio
async def test_azure_builds_deployment_url(monkeypatch, relay_calls):
    monkeypatch.setattr(settings, "azure_resource_name", "my-resource")
    monkeypatch.setattr(settings, "azure_api_version", "2024-12-01-preview")
    request = _build_request("/azure/chat/completions", "chat/completions", b'{"model":"gpt-4o","messages":[]}')

    await passthrough_router.azure_proxy("chat/completions", request)

    assert relay_calls[0]["url"] == (
        f"{_RELAY_BASE}/azure-openai/my-resource/gpt-4o/chat/completions?api-version=2024-12-01-preview"
    )


@pytest.mark.asyncio
async def test_azure_without_resource_is_misconfigured(monkeypatch, relay_calls):
    monkeypatch.setattr(settings, "azure_resource_name", "")
    request = _build_request("/azure/chat/completions", "chat/completions", b'{"model":"gpt-4o"}')

    response = await passthrough_router.azure_proxy("chat/completions", request)

    assert response.status_code == 500
    assert relay_calls == []


@pytest.mark.asyncio
async def test_invalid_json_body_returns_400(relay_calls):
    request = _build_request("/openai/chat/completions", "chat/completions", b"{not json")

    response = await passthrough_router.openai_proxy("chat/completions", request)

    assert response.status_code == 400
    assert json.loads(response.body)["error"]["type"] == "invalid_request_error"
    assert relay_calls == []


@pytest.mark.asyncio
async def test_upstream_error_is_returned_unchanged(monkeypatch):
    monkeypatch.setattr(settings, "relay_base_url", _RELAY_BASE)

    async def fake_forward(url, body, headers, method="POST"):
        return RelayReply(status_code=429, content=b"rate limited", content_type="text/plain")

    monkeypatch.setattr(passthrough_router, "forward", fake_forward)
    request = _build_request("/openai/chat/completions", "chat/completions", b'{"model":"gpt-4o"}')

    response = await passthrough_router.openai_proxy("chat/completions", request)

    assert response.status_code == 429
    assert response.body == b"rate limited"
    assert response.media_type == "text/plain"
