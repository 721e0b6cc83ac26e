"""Dual authentication for relayed Bedrock calls.

Bedrock checks the SigV4 ``Authorization`` header; the relay checks its own
bearer header. A call missing either one is rejected (403 from Bedrock,
401 from the relay), so both are required here.
"""

from __future__ import annotations

from typing import Mapping

from relaygate.core.errors import GatewayMisconfiguredError


def compose_relay_headers(
    signed_headers: Mapping[str, str],
    relay_token: str,
    header_name: str = "cf-aig-authorization",
) -> dict[str, str]:
    if not relay_token.strip():
        raise GatewayMisconfiguredError("relay token is not configured on server")
    if not any(key.lower() == "authorization" for key in signed_headers):
        raise GatewayMisconfiguredError("request signature is missing")
    if header_name.lower() == "authorization":
        raise GatewayMisconfiguredError("relay auth header must differ from the signature header")

    final_headers = dict(signed_headers)
    final_headers[header_name] = f"Bearer {relay_token.strip()}"
    return final_headers
