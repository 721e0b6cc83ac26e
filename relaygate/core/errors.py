"""Project error hierarchy.

Each error knows the HTTP status and OpenAI-style error ``type`` it is
reported with, so handlers can turn any of them into the same body shape.
"""

from __future__ import annotations

from typing import Iterable


class RelayGateError(Exception):
    """Base error."""

    status_code = 500
    error_type = "api_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"error": {"message": self.message, "type": self.error_type}}


class InvalidRequestError(RelayGateError):
    """Client sent something we cannot proxy; never retried, never a 5xx."""

    status_code = 400
    error_type = "invalid_request_error"


class ModelAliasNotFound(InvalidRequestError):
    def __init__(self, identifier: str, known_aliases: Iterable[str]) -> None:
        self.identifier = identifier
        self.known_aliases = tuple(known_aliases)
        super().__init__(
            f"Unknown model: {identifier}. Use a Bedrock model ID or one of: {', '.join(self.known_aliases)}"
        )


class UnsupportedEndpointError(RelayGateError):
    status_code = 501
    error_type = "invalid_request_error"


class GatewayMisconfiguredError(RelayGateError):
    """Raised when required relay or provider credentials are missing."""


class UpstreamError(RelayGateError):
    """Relay or provider answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnreachableError(UpstreamError):
    def __init__(self, detail: str) -> None:
        super().__init__(502, f"upstream_unreachable: {detail}")
