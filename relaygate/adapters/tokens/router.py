"""Routes for team token management."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from relaygate.core.models import CreateTokenRequest
from relaygate.core.teams import create_team_token, get_team, refresh_team_token
from relaygate.storage import get_store, store_call
from relaygate.util.logger import logger


router = APIRouter()


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Token not found"})


@router.post("")
@router.post("/")
async def create_token(request: Request) -> JSONResponse:
    try:
        body = await request.json()
        token_request = CreateTokenRequest.model_validate(body)
    except (ValueError, ValidationError):
        return JSONResponse(status_code=400, content={"error": "invalid_json"})

    try:
        team = await store_call(create_team_token, get_store(), token_request)
    except ValueError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    return JSONResponse(status_code=201, content=team.to_public())


@router.get("/{api_key}")
async def read_token(api_key: str) -> JSONResponse:
    team = await store_call(get_team, get_store(), api_key)
    if team is None:
        return _not_found()
    return JSONResponse(content=team.to_public())


@router.post("/{api_key}/refresh")
async def refresh_token(api_key: str) -> JSONResponse:
    team = await store_call(refresh_team_token, get_store(), api_key)
    if team is None:
        logger.info("token refresh for unknown key")
        return _not_found()
    return JSONResponse(content=team.to_public())
