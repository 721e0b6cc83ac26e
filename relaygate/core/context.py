"""Per-request context threaded through the Bedrock pipeline."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True, slots=True)
class ConverseCallContext:
    original_model: str
    region: str
    model_id: str = ""
    body: bytes = b""
    direct_url: str = ""
    relay_url: str = ""

    def evolve(self, **changes: object) -> "ConverseCallContext":
        return replace(self, **changes)
