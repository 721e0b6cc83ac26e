"""Redis-backed team key store for multi-instance deployments."""

from __future__ import annotations

import json

from relaygate.core.models import TeamInfo
from relaygate.storage.kv import TeamStore

try:
    import redis
except Exception:  # pragma: no cover - optional dependency
    redis = None


class RedisTeamStore(TeamStore):
    def __init__(self, *, redis_url: str = "", key_prefix: str = "relaygate", client=None) -> None:
        if client is None:
            if redis is None:  # pragma: no cover - depends on optional package
                raise RuntimeError("redis package is not installed, cannot use RedisTeamStore")
            client = redis.Redis.from_url(redis_url, decode_responses=True)
        self.client = client
        self.key_prefix = key_prefix.strip() or "relaygate"

    def _team_key(self, api_key: str) -> str:
        return f"{self.key_prefix}:team:{api_key}"

    def get_team(self, api_key: str) -> TeamInfo | None:
        raw = self.client.get(self._team_key(api_key))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return TeamInfo.model_validate(json.loads(raw))

    def put_team(self, team: TeamInfo) -> None:
        self.client.set(self._team_key(team.api_key), json.dumps(team.to_public(), ensure_ascii=False))

    def delete_team(self, api_key: str) -> bool:
        return bool(self.client.delete(self._team_key(api_key)))
