"""
中转网关（relay）HTTP 客户端：共享 httpx 连接池、转发头改写、错误正文解析。
所有 provider 的出站请求都经过这里，每个入站请求只发一次出站请求，不重试。
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

from relaygate.config.settings import settings
from relaygate.core.errors import UpstreamUnreachableError
from relaygate.core.models import TeamInfo
from relaygate.util.logger import logger, redact_headers

_HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}
_ERROR_MESSAGE_KEYS = ("message", "Message")

_relay_client: httpx.AsyncClient | None = None
_relay_client_lock: asyncio.Lock | None = None


@dataclass(frozen=True)
class RelayReply:
    status_code: int
    content: bytes
    content_type: str = "application/json"

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _relay_http_limits() -> httpx.Limits:
    return httpx.Limits(
        max_connections=max(10, int(settings.upstream_max_connections)),
        max_keepalive_connections=max(5, int(settings.upstream_max_keepalive_connections)),
    )


def _relay_http_timeout() -> httpx.Timeout:
    timeout = float(settings.upstream_timeout_seconds)
    return httpx.Timeout(connect=timeout, read=timeout, write=timeout, pool=timeout)


async def get_relay_client() -> httpx.AsyncClient:
    global _relay_client, _relay_client_lock
    if _relay_client is not None:
        return _relay_client
    if _relay_client_lock is None:
        _relay_client_lock = asyncio.Lock()
    async with _relay_client_lock:
        if _relay_client is None:
            _relay_client = httpx.AsyncClient(
                timeout=_relay_http_timeout(),
                limits=_relay_http_limits(),
            )
    return _relay_client


async def close_relay_client() -> None:
    global _relay_client
    if _relay_client is not None:
        await _relay_client.aclose()
        _relay_client = None


def provider_base_url(provider: str) -> str:
    return f"{settings.relay_base_url}/{provider.strip('/')}"


def build_forward_headers(headers: Mapping[str, str], team: TeamInfo | None) -> dict[str, str]:
    """Inbound headers rewritten for the relay: relay bearer in, team metadata attached."""

    excluded = {"host", "content-length", "authorization", *_HOP_BY_HOP_HEADERS}
    forwarded = {key: value for key, value in headers.items() if key.lower() not in excluded}
    forwarded["Authorization"] = f"Bearer {settings.relay_token}"
    if team is not None:
        forwarded[settings.relay_metadata_header] = json.dumps({"team_id": team.team_id})
    if not any(name.lower() == "content-type" for name in forwarded):
        forwarded["Content-Type"] = "application/json"
    return forwarded


def decode_json_or_text(body: bytes) -> dict[str, Any] | str:
    """Parse a JSON object body; anything else (invalid JSON, arrays, empty) comes back as text."""

    text = body.decode("utf-8", errors="replace")
    if not text:
        return ""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(parsed, dict):
        return parsed
    return text


def extract_error_message(body: bytes) -> str:
    decoded = decode_json_or_text(body)
    if isinstance(decoded, dict):
        for key in _ERROR_MESSAGE_KEYS:
            value = decoded.get(key)
            if isinstance(value, str) and value:
                return value
        return body.decode("utf-8", errors="replace")
    return decoded


async def forward(url: str, body: bytes, headers: Mapping[str, str], method: str = "POST") -> RelayReply:
    logger.debug(
        "relay forward start method=%s url=%s bytes=%d headers=%s",
        method,
        url,
        len(body),
        redact_headers(headers),
    )
    client = await get_relay_client()
    try:
        response = await client.request(method, url, content=body, headers=dict(headers))
    except httpx.HTTPError as exc:
        detail = (str(exc) or "").strip() or "connection_failed_or_timeout"
        logger.warning("relay forward http_error url=%s error=%s", url, detail)
        raise UpstreamUnreachableError(detail) from exc
    logger.debug("relay forward done url=%s status=%s", url, response.status_code)
    return RelayReply(
        status_code=response.status_code,
        content=response.content,
        content_type=response.headers.get("content-type", "application/json"),
    )
