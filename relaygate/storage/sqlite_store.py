"""SQLite-backed team key store."""

from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import Callable, TypeVar

from relaygate.core.models import TeamInfo
from relaygate.storage.kv import TeamStore
from relaygate.util.logger import logger


T = TypeVar("T")

_LOCK_RETRIES = 5
_BUSY_TIMEOUT_MS = 5000
_SCHEMA = """
CREATE TABLE IF NOT EXISTS team_info (
  api_key TEXT PRIMARY KEY,
  payload TEXT NOT NULL
)
"""


class SqliteTeamStore(TeamStore):
    def __init__(self, db_path: str = "logs/relaygate.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._open()
        try:
            with conn:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute(_SCHEMA)
        finally:
            conn.close()
        logger.info("sqlite team store ready path=%s", self.db_path)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=_BUSY_TIMEOUT_MS / 1000)
        conn.execute(f"PRAGMA busy_timeout={_BUSY_TIMEOUT_MS}")
        return conn

    def _locked_retry(self, op: Callable[[sqlite3.Connection], T]) -> T:
        # 多进程共享同一个库文件时，写锁冲突短暂退避后重试
        last_error: sqlite3.OperationalError | None = None
        for attempt in range(1, _LOCK_RETRIES + 1):
            conn = self._open()
            try:
                with conn:
                    return op(conn)
            except sqlite3.OperationalError as exc:
                if "locked" not in str(exc).lower():
                    raise
                last_error = exc
                time.sleep(0.01 * attempt)
            finally:
                conn.close()
        assert last_error is not None
        raise last_error

    def get_team(self, api_key: str) -> TeamInfo | None:
        row = self._locked_retry(
            lambda conn: conn.execute("SELECT payload FROM team_info WHERE api_key = ?", (api_key,)).fetchone()
        )
        if row is None:
            return None
        return TeamInfo.model_validate(json.loads(row[0]))

    def put_team(self, team: TeamInfo) -> None:
        payload = json.dumps(team.to_public(), ensure_ascii=False)
        self._locked_retry(
            lambda conn: conn.execute(
                "INSERT INTO team_info (api_key, payload) VALUES (?, ?) "
                "ON CONFLICT(api_key) DO UPDATE SET payload = excluded.payload",
                (team.api_key, payload),
            )
        )

    def delete_team(self, api_key: str) -> bool:
        deleted = self._locked_retry(
            lambda conn: conn.execute("DELETE FROM team_info WHERE api_key = ?", (api_key,)).rowcount
        )
        return deleted > 0
