"""FastAPI app entry."""

from __future__ import annotations

import ipaddress
import json
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from relaygate.adapters.bedrock.aliases import ModelAliasResolver, load_model_aliases
from relaygate.adapters.bedrock.router import router as bedrock_router
from relaygate.adapters.passthrough.router import (
    anthropic_router,
    azure_router,
    google_router,
    openai_router,
    workers_ai_router,
)
from relaygate.adapters.relay.upstream import close_relay_client
from relaygate.adapters.tokens.router import router as tokens_router
from relaygate.config.settings import settings
from relaygate.core.teams import get_team
from relaygate.observability.logging import log_event
from relaygate.storage import get_store as team_store, store_call
from relaygate.util.logger import logger, redact_headers


_TOKENS_PREFIX = "/tokens"
_PUBLIC_PATHS = frozenset({"/health"})
_LOOPBACK_HOSTS = {"127.0.0.1", "::1", "localhost"}
_BEARER_PREFIX = "Bearer "
_DEBUG_BODY_CHUNK_CHARS = 4000

app = FastAPI(title=settings.app_name)
app.include_router(tokens_router, prefix=_TOKENS_PREFIX)
app.include_router(openai_router, prefix="/openai")
app.include_router(anthropic_router, prefix="/anthropic")
app.include_router(workers_ai_router, prefix="/workers-ai")
app.include_router(google_router, prefix="/google")
app.include_router(azure_router, prefix="/azure")
app.include_router(bedrock_router, prefix="/bedrock")


def _is_internal_client(request: Request) -> bool:
    host = (request.client.host if request.client else "").strip()
    if not host:
        return False
    if host in _LOOPBACK_HOSTS:
        return True
    normalized = host
    if normalized.startswith("[") and normalized.endswith("]"):
        normalized = normalized[1:-1]
    try:
        ip = ipaddress.ip_address(normalized)
    except ValueError:
        return False
    return ip.is_loopback or ip.is_private or ip.is_link_local


def _extract_api_key(request: Request) -> str | None:
    header = request.headers.get(settings.api_key_header, "")
    if header.startswith(_BEARER_PREFIX):
        return header[len(_BEARER_PREFIX):].strip() or None
    return None


async def _requested_model(request: Request) -> str | None:
    if request.method.upper() not in {"POST", "PUT", "PATCH"}:
        return None
    body = await request.body()
    if not body:
        return None
    _log_body_if_debug(request, body)
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    model = payload.get("model") if isinstance(payload, dict) else None
    return str(model) if model is not None else None


def _log_body_if_debug(request: Request, body: bytes) -> None:
    """debug 级别下打印请求概要；正文仅在 log_full_request_body 开启时分段打印。"""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(
        "incoming request method=%s path=%s headers=%s body_size=%d",
        request.method,
        request.url.path,
        redact_headers(request.headers),
        len(body),
    )
    if not settings.log_full_request_body:
        return
    text = body.decode("utf-8", errors="replace")
    for offset in range(0, len(text), _DEBUG_BODY_CHUNK_CHARS):
        logger.debug(
            "incoming request body chars %d-%d of %d:\n%s",
            offset + 1,
            min(offset + _DEBUG_BODY_CHUNK_CHARS, len(text)),
            len(text),
            text[offset : offset + _DEBUG_BODY_CHUNK_CHARS],
        )


def _error_body(message: str, error_type: str) -> dict:
    return {"error": {"message": message, "type": error_type}}


@app.middleware("http")
async def gateway_boundary_middleware(request: Request, call_next):
    path = request.url.path
    if path in _PUBLIC_PATHS:
        return await call_next(request)

    if path == _TOKENS_PREFIX or path.startswith(f"{_TOKENS_PREFIX}/"):
        if settings.enforce_internal_admin and not _is_internal_client(request):
            client_host = request.client.host if request.client else ""
            logger.warning("boundary reject token admin from non-internal host=%s path=%s", client_host, path)
            return JSONResponse(status_code=403, content={"error": "admin_endpoint_network_restricted"})
        return await call_next(request)

    api_key = _extract_api_key(request)
    team = await store_call(get_team, team_store(), api_key) if api_key else None
    if team is None:
        logger.info("boundary reject unauthenticated path=%s key_present=%s", path, bool(api_key))
        return PlainTextResponse("Unauthorized", status_code=401)
    request.state.team = team

    log_event(
        "provider_request",
        team_id=team.team_id,
        team_name=team.name,
        model=await _requested_model(request),
        path=path,
    )
    try:
        return await call_next(request)
    except Exception:  # pragma: no cover - fail-safe
        logger.exception("gateway unhandled exception path=%s", path)
        return JSONResponse(status_code=500, content=_error_body("Internal Server Error", "api_error"))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("invalid request body path=%s errors=%d", request.url.path, len(exc.errors()))
    return JSONResponse(
        status_code=400,
        content=_error_body("Invalid request body: expected a JSON object", "invalid_request_error"),
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.on_event("startup")
async def startup_load_aliases() -> None:
    aliases = load_model_aliases(settings.bedrock_model_aliases_path)
    app.state.model_aliases = ModelAliasResolver(aliases)
    logger.info("bedrock model aliases ready count=%d region=%s", len(aliases), settings.aws_region)


@app.on_event("shutdown")
async def shutdown_cleanup() -> None:
    await close_relay_client()
