"""Bedrock routes: OpenAI chat completions served by the Bedrock Converse API.

Flow for ``POST /chat/completions``::

    resolve alias -> translate request -> SigV4 sign (direct Bedrock URL)
    -> add relay bearer -> POST to relay -> translate response

Any other path under the prefix answers 501.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from relaygate.adapters.bedrock.aliases import ModelAliasResolver
from relaygate.adapters.bedrock.auth import compose_relay_headers
from relaygate.adapters.bedrock.mapper import to_chat_response, to_converse_request
from relaygate.adapters.bedrock.signer import AwsCredentials, direct_converse_url, sign_request
from relaygate.adapters.relay.upstream import (
    decode_json_or_text,
    extract_error_message,
    forward,
    provider_base_url,
)
from relaygate.config.settings import settings
from relaygate.core.context import ConverseCallContext
from relaygate.core.errors import (
    InvalidRequestError,
    RelayGateError,
    UnsupportedEndpointError,
    UpstreamError,
)
from relaygate.core.models import ChatRequest
from relaygate.util.logger import logger


PROVIDER_NAME = "aws-bedrock"
_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]
_JSON_HEADERS = {"Content-Type": "application/json"}

router = APIRouter()
_default_resolver = ModelAliasResolver()


def _resolver(request: Request) -> ModelAliasResolver:
    app = request.scope.get("app")
    resolver = getattr(getattr(app, "state", None), "model_aliases", None)
    return resolver if isinstance(resolver, ModelAliasResolver) else _default_resolver


def relay_converse_url(region: str, model_id: str) -> str:
    return f"{provider_base_url(PROVIDER_NAME)}/bedrock-runtime/{region}/model/{model_id}/converse"


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid')}" if location else str(error.get("msg")))
    return "Invalid request body: " + "; ".join(parts)


def _error_response(exc: RelayGateError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def _translate_request(ctx: ConverseCallContext, chat: ChatRequest, resolver: ModelAliasResolver) -> ConverseCallContext:
    model_id = resolver.resolve(chat.model)
    body = _encode(to_converse_request(chat))
    return ctx.evolve(
        model_id=model_id,
        body=body,
        direct_url=direct_converse_url(ctx.region, model_id),
        relay_url=relay_converse_url(ctx.region, model_id),
    )


def _encode(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def _authenticate(ctx: ConverseCallContext) -> dict[str, str]:
    signed = sign_request(
        ctx.direct_url,
        "POST",
        _JSON_HEADERS,
        ctx.body,
        AwsCredentials.from_settings(settings),
    )
    return compose_relay_headers(signed, settings.relay_token, settings.relay_auth_header)


async def _converse(ctx: ConverseCallContext, headers: dict[str, str]) -> dict[str, Any]:
    reply = await forward(ctx.relay_url, ctx.body, headers)
    if not reply.ok:
        message = extract_error_message(reply.content)
        logger.warning(
            "bedrock relay error model=%s status=%s message=%s",
            ctx.model_id,
            reply.status_code,
            message[:600],
        )
        raise UpstreamError(reply.status_code, f"Bedrock API error: {message}")

    decoded = decode_json_or_text(reply.content)
    if not isinstance(decoded, dict):
        raise UpstreamError(502, "Bedrock API error: relay returned a non-JSON response")
    try:
        return to_chat_response(decoded, ctx.original_model)
    except ValidationError as exc:
        logger.warning("bedrock relay reply shape invalid model=%s errors=%d", ctx.model_id, len(exc.errors()))
        raise UpstreamError(502, "Bedrock API error: relay returned an unexpected response shape") from exc


@router.post("/chat/completions")
async def chat_completions(payload: dict, request: Request):
    try:
        chat = ChatRequest.model_validate(payload)
    except ValidationError as exc:
        return _error_response(InvalidRequestError(_validation_message(exc)))
    if payload.get("stream") is True:
        logger.info("bedrock stream requested, answering with a single response model=%s", chat.model)

    ctx = ConverseCallContext(original_model=chat.model, region=settings.aws_region)
    try:
        ctx = _translate_request(ctx, chat, _resolver(request))
        headers = _authenticate(ctx)
        logger.info("bedrock converse model=%s resolved=%s region=%s", ctx.original_model, ctx.model_id, ctx.region)
        return JSONResponse(content=await _converse(ctx, headers))
    except RelayGateError as exc:
        logger.warning("bedrock request failed model=%s status=%s error=%s", ctx.original_model, exc.status_code, exc.message)
        return _error_response(exc)


@router.api_route("/{subpath:path}", methods=_ALL_METHODS)
async def unsupported_endpoint(subpath: str, request: Request):
    path = request.url.path
    logger.info("bedrock unsupported endpoint path=%s method=%s", path, request.method)
    return _error_response(
        UnsupportedEndpointError(
            f"The endpoint {path} is not supported for Bedrock. Only /chat/completions is currently available."
        )
    )
