"""Project logger and log-safe helpers."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping

from relaygate.config.settings import settings


MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 10
_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_REDACTED = "***"
_SENSITIVE_HEADER_HINTS = ("authorization", "key", "secret", "token", "signature", "credential")


def _normalize_level(raw: str) -> int:
    level = logging.getLevelName(str(raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _build_logger() -> logging.Logger:
    configured = logging.getLogger("relaygate")
    if configured.handlers:
        return configured

    level = _normalize_level(settings.log_level)
    configured.setLevel(level)
    formatter = logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    configured.addHandler(stream_handler)

    log_dir = Path(settings.log_dir)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / "relaygate.log",
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        configured.addHandler(file_handler)
    except OSError:
        # 日志目录不可写时只输出到 stderr
        pass

    configured.propagate = False
    return configured


logger = _build_logger()


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the relaygate namespace."""

    return logger.getChild(name)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of ``headers`` with credential-bearing values masked, for debug logs."""

    safe: dict[str, str] = {}
    for key, value in headers.items():
        lowered = key.lower()
        safe[key] = _REDACTED if any(hint in lowered for hint in _SENSITIVE_HEADER_HINTS) else value
    return safe
