# Overview: Client for the cloud dashboard's token validation RPC.

"""
Delegated authentication.

The cloud dashboard issues access tokens for a given device. We forward a
presented token, together with this site's device id, to the identity
service's validate_access_token RPC and trust its verdict.
"""
from __future__ import annotations

from dataclasses import dataclass

import httpx


class IdentityServiceError(Exception):
    """The identity service could not be reached or answered nonsense."""


@dataclass(frozen=True)
class TokenVerdict:
    valid: bool
    user_id: str | None = None


class IdentityClient:
    """
    Thin httpx wrapper; one instance per app (stored in app.extensions).

    transport is injectable so tests can use httpx.MockTransport.
    """

    RPC_PATH = "/rest/v1/rpc/validate_access_token"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_config(cls, config) -> "IdentityClient":
        return cls(
            config.get("IDENTITY_SERVICE_URL", ""),
            config.get("IDENTITY_SERVICE_KEY", ""),
            timeout=config.get("OUTBOUND_TIMEOUT_SECONDS", 10.0),
        )

    def validate_token(self, token: str, device_id: str | None) -> TokenVerdict:
        """
        Ask the identity service whether token is valid for this device.

        Raises IdentityServiceError on transport failures, non-2xx answers
        and unparseable bodies. A well-formed "not valid" answer is a normal
        TokenVerdict(valid=False).
        """
        if not self.base_url:
            raise IdentityServiceError("Identity service URL is not configured")

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(
                    f"{self.base_url}{self.RPC_PATH}",
                    json={"token": token, "pi_device_id": device_id},
                    headers={"apikey": self.api_key},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise IdentityServiceError(str(exc)) from exc

        if isinstance(data, dict) and data.get("valid"):
            user_id = data.get("user_id")
            return TokenVerdict(valid=True, user_id=str(user_id) if user_id is not None else None)
        return TokenVerdict(valid=False)
