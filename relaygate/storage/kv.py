"""KV abstraction for team API keys."""

from __future__ import annotations

from abc import ABC, abstractmethod

from relaygate.core.models import TeamInfo


class TeamStore(ABC):
    @abstractmethod
    def get_team(self, api_key: str) -> TeamInfo | None:
        pass

    @abstractmethod
    def put_team(self, team: TeamInfo) -> None:
        """Insert or overwrite the record keyed by ``team.api_key``."""
        pass

    @abstractmethod
    def delete_team(self, api_key: str) -> bool:
        pass
