"""The ``iGptApi`` credential type the host stores for gateway nodes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from igpt.config import settings
from igpt.gateway import (
    AuthExchangeError,
    ConfigurationError,
    Credential,
    TokenGatewayClient,
)

logger = logging.getLogger(__name__)

IGPT_CREDENTIAL_TYPE = "iGptApi"


@dataclass(frozen=True)
class CredentialField:
    name: str
    display_name: str
    default: str = ""
    required: bool = True
    password: bool = False


@dataclass
class CredentialTestResult:
    ok: bool
    message: str


class IGptApiCredentialType:
    """Field descriptor plus the credential test the host runs on save."""

    name = IGPT_CREDENTIAL_TYPE
    display_name = "iGPT API"

    def __init__(self, token_client: TokenGatewayClient | None = None) -> None:
        self._token_client = token_client

    @property
    def fields(self) -> list[CredentialField]:
        return [
            CredentialField("tokenUrl", "Token url", default=settings.token_url),
            CredentialField("clientId", "Client ID"),
            CredentialField("clientSecret", "Client Secret", password=True),
        ]

    async def test(self, credential: Credential | Mapping[str, Any]) -> CredentialTestResult:
        """Try a token exchange and report the outcome instead of raising."""
        token_client = self._token_client or TokenGatewayClient()
        try:
            await token_client.fetch_token(credential)
        except (ConfigurationError, AuthExchangeError) as exc:
            logger.info("Credential test failed: %s", exc)
            return CredentialTestResult(ok=False, message=str(exc))
        return CredentialTestResult(ok=True, message="Connection successful")
