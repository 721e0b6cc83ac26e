"""
团队 API Key 的签发、查询与轮换。Key 作为存储主键，TeamInfo 为值。
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone

from relaygate.core.models import CreateTokenRequest, TeamInfo
from relaygate.storage.kv import TeamStore
from relaygate.util.logger import logger

API_KEY_PREFIX = "sk_"
_API_KEY_BYTES = 32


def generate_api_key() -> str:
    return API_KEY_PREFIX + secrets.token_hex(_API_KEY_BYTES)


def _key_hint(api_key: str) -> str:
    return f"{api_key[:7]}..." if len(api_key) > 7 else "***"


def create_team_token(store: TeamStore, request: CreateTokenRequest) -> TeamInfo:
    team_id = request.team_id.strip()
    if not team_id:
        raise ValueError("teamId is required")
    team = TeamInfo(
        api_key=generate_api_key(),
        team_id=team_id,
        name=request.name,
        created_at=datetime.now(tz=timezone.utc).isoformat(),
        limited=request.limited,
    )
    store.put_team(team)
    logger.info("team token created team_id=%s key=%s", team.team_id, _key_hint(team.api_key))
    return team


def get_team(store: TeamStore, api_key: str) -> TeamInfo | None:
    if not api_key:
        return None
    return store.get_team(api_key)


def refresh_team_token(store: TeamStore, old_api_key: str) -> TeamInfo | None:
    """Issue a new key for the same team and invalidate the old one. Unknown key returns None."""

    existing = store.get_team(old_api_key)
    if existing is None:
        return None
    refreshed = existing.model_copy(update={"api_key": generate_api_key()})
    store.delete_team(old_api_key)
    store.put_team(refreshed)
    logger.info(
        "team token refreshed team_id=%s old=%s new=%s",
        refreshed.team_id,
        _key_hint(old_api_key),
        _key_hint(refreshed.api_key),
    )
    return refreshed
