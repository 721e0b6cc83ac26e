"""Pass-through provider routes.

These providers already speak a format the relay accepts, so the body is
forwarded as-is (or with a small model rewrite) and the relay response is
returned unchanged. Only the URL prefix and the auth/metadata headers change.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response

from relaygate.adapters.relay.upstream import build_forward_headers, forward, provider_base_url
from relaygate.config.settings import settings
from relaygate.core.errors import GatewayMisconfiguredError, InvalidRequestError, RelayGateError
from relaygate.util.logger import logger


GOOGLE_MODEL_PREFIX = "google-ai-studio"

openai_router = APIRouter()
anthropic_router = APIRouter()
workers_ai_router = APIRouter()
google_router = APIRouter()
azure_router = APIRouter()


async def _json_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    try:
        payload = json.loads(raw.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidRequestError("request body must be valid JSON") from exc
    if not isinstance(payload, dict):
        raise InvalidRequestError("request body must be a JSON object")
    return payload


def _encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def _with_query(url: str, request: Request) -> str:
    query = request.url.query
    if not query:
        return url
    joiner = "&" if "?" in url else "?"
    return f"{url}{joiner}{query}"


async def _relay(
    provider: str,
    request: Request,
    build: Callable[[Request], Awaitable[tuple[str, bytes]]],
) -> Response:
    try:
        url, body = await build(request)
        headers = build_forward_headers(request.headers, getattr(request.state, "team", None))
        logger.info("passthrough forward provider=%s url=%s", provider, url)
        reply = await forward(url, body, headers, method=request.method)
    except RelayGateError as exc:
        logger.warning("passthrough failed provider=%s status=%s error=%s", provider, exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    if not reply.ok:
        logger.info("passthrough upstream status provider=%s status=%s body=%s", provider, reply.status_code, reply.content[:600])
    return Response(content=reply.content, status_code=reply.status_code, media_type=reply.content_type)


async def _openai_target(request: Request) -> tuple[str, bytes]:
    subpath = request.path_params["subpath"]
    payload = await _json_body(request)
    return _with_query(f"{provider_base_url('openai')}/v1/{subpath}", request), _encode(payload)


async def _anthropic_target(request: Request) -> tuple[str, bytes]:
    subpath = request.path_params["subpath"]
    return _with_query(f"{provider_base_url('anthropic')}/v1/{subpath}", request), await request.body()


async def _workers_ai_target(request: Request) -> tuple[str, bytes]:
    subpath = request.path_params["subpath"]
    payload = await _json_body(request)
    return _with_query(f"{provider_base_url('workers-ai')}/v1/{subpath}", request), _encode(payload)


async def _google_target(request: Request) -> tuple[str, bytes]:
    subpath = request.path_params["subpath"]
    payload = await _json_body(request)
    model = str(payload.get("model") or "").strip()
    if not model:
        raise InvalidRequestError("model is required")
    # compat 端点要求带 provider 前缀
    payload["model"] = f"{GOOGLE_MODEL_PREFIX}/{model}"
    return _with_query(f"{provider_base_url('compat')}/{subpath}", request), _encode(payload)


async def _azure_target(request: Request) -> tuple[str, bytes]:
    if not settings.azure_resource_name:
        raise GatewayMisconfiguredError("azure resource name is not configured on server")
    subpath = request.path_params["subpath"]
    payload = await _json_body(request)
    model = str(payload.get("model") or "").strip()
    if not model:
        raise InvalidRequestError("model is required")
    url = (
        f"{provider_base_url('azure-openai')}/{settings.azure_resource_name}/{quote(model, safe='')}/{subpath}"
        f"?api-version={settings.azure_api_version}"
    )
    return url, _encode(payload)


@openai_router.post("/{subpath:path}")
async def openai_proxy(subpath: str, request: Request):
    return await _relay("openai", request, _openai_target)


@anthropic_router.post("/{subpath:path}")
async def anthropic_proxy(subpath: str, request: Request):
    return await _relay("anthropic", request, _anthropic_target)


@workers_ai_router.post("/{subpath:path}")
async def workers_ai_proxy(subpath: str, request: Request):
    return await _relay("workers-ai", request, _workers_ai_target)


@google_router.post("/{subpath:path}")
async def google_proxy(subpath: str, request: Request):
    return await _relay("google-ai-studio", request, _google_target)


@azure_router.post("/{subpath:path}")
async def azure_proxy(subpath: str, request: Request):
    return await _relay("azure-openai", request, _azure_target)
