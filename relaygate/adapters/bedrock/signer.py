"""AWS Signature V4 for Bedrock requests sent through the relay.

The signature covers the *direct* Bedrock URL (host, region, model path) even
though the bytes are posted to the relay; the relay forwards them unchanged and
Bedrock verifies the signature as if it had been called directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from relaygate.config.settings import Settings
from relaygate.core.errors import GatewayMisconfiguredError


BEDROCK_SIGNING_SERVICE = "bedrock"


@dataclass(frozen=True)
class AwsCredentials:
    access_key_id: str
    secret_access_key: str
    region: str
    service: str = BEDROCK_SIGNING_SERVICE
    session_token: str | None = None

    @classmethod
    def from_settings(cls, config: Settings) -> "AwsCredentials":
        if not config.aws_access_key_id or not config.aws_secret_access_key:
            raise GatewayMisconfiguredError("AWS credentials are not configured on server")
        return cls(
            access_key_id=config.aws_access_key_id,
            secret_access_key=config.aws_secret_access_key,
            region=config.aws_region,
            session_token=config.aws_session_token or None,
        )


def direct_converse_url(region: str, model_id: str) -> str:
    return f"https://bedrock-runtime.{region}.amazonaws.com/model/{model_id}/converse"


def sign_request(
    url: str,
    method: str,
    headers: Mapping[str, str],
    body: bytes,
    credentials: AwsCredentials,
) -> dict[str, str]:
    """Return ``headers`` plus the SigV4 ``X-Amz-Date``/``Authorization`` pair.

    The signature embeds the current timestamp: call once per outbound request.
    """

    request = AWSRequest(method=method.upper(), url=url, data=body, headers=dict(headers))
    signer = SigV4Auth(
        Credentials(credentials.access_key_id, credentials.secret_access_key, credentials.session_token),
        credentials.service,
        credentials.region,
    )
    signer.add_auth(request)
    return {key: str(value) for key, value in request.headers.items()}
