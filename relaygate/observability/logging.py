"""Per-request event lines for relay traffic."""

from __future__ import annotations

from relaygate.util.logger import get_logger

_events = get_logger("events")


def format_event(event: str, **payload: object) -> str:
    fields = " ".join(f"{key}={value}" for key, value in sorted(payload.items()) if value is not None)
    return f"event={event} {fields}".rstrip()


def log_event(event: str, **payload: object) -> None:
    """Emit one ``event=... key=value`` line; ``None`` fields are dropped."""

    _events.info(format_event(event, **payload))
