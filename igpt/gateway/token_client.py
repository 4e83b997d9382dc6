"""OAuth2 client_credentials exchange against the gateway's token endpoint.

Every call performs a fresh round trip: there is no token cache, no
proactive refresh and no lock, so concurrent invocations each fetch their
own token. Retrying a failed exchange is left to the host.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from igpt.config import settings
from igpt.gateway.credentials import Credential
from igpt.gateway.errors import AuthExchangeError, ConfigurationError
from igpt.gateway.proxy import ProxyDispatcher, get_default_dispatcher

logger = logging.getLogger(__name__)

_FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}
_UNSET: Any = object()


@dataclass(frozen=True)
class TokenResponse:
    """A bearer token, good for exactly one downstream call."""
    access_token: str = field(repr=False)
    token_type: str | None = None
    expires_in: int | None = None   # reported by the endpoint, not tracked


class TokenGatewayClient:
    """Exchanges a :class:`Credential` for a bearer token through the proxy.

    Args:
        dispatcher: Proxy dispatcher for the token request. Defaults to the
            process-wide one built from settings.
        timeout: Deadline in seconds for a whole exchange, ``None`` for no
            deadline. Can be overridden per call.
    """

    def __init__(
        self,
        dispatcher: ProxyDispatcher | None = None,
        *,
        timeout: float | None = _UNSET,
    ) -> None:
        self._dispatcher = dispatcher or get_default_dispatcher()
        self._timeout = _check_deadline(settings.token_timeout if timeout is _UNSET else timeout)

    @property
    def dispatcher(self) -> ProxyDispatcher:
        return self._dispatcher

    async def fetch_token(
        self,
        credential: Credential | Mapping[str, Any],
        *,
        timeout: float | None = _UNSET,
    ) -> TokenResponse:
        """Fetch a new bearer token for ``credential``.

        Raises:
            ConfigurationError: the credential or the deadline is malformed
                (no request is made).
            AuthExchangeError: non-2xx status, malformed body, transport
                failure, or the deadline expired.
        """
        if not isinstance(credential, Credential):
            credential = Credential.from_mapping(credential)
        deadline = self._timeout if timeout is _UNSET else _check_deadline(timeout)

        logger.info("Requesting gateway token: %s", credential.log_fields())

        try:
            return await asyncio.wait_for(self._exchange(credential, deadline), deadline)
        except asyncio.TimeoutError as exc:
            raise AuthExchangeError(
                f"token exchange failed: no response within {deadline}s",
                cause=exc,
            ) from exc

    async def _exchange(self, credential: Credential, deadline: float | None) -> TokenResponse:
        try:
            async with self._dispatcher.async_client(timeout=deadline) as client:
                resp = await client.post(
                    credential.token_url,
                    data=credential.token_form(),
                    headers=_FORM_HEADERS,
                )
        except httpx.HTTPError as exc:
            logger.warning(
                "Token request to %s failed: %s", credential.token_url, type(exc).__name__,
            )
            raise AuthExchangeError(
                f"token exchange failed: {type(exc).__name__}: {exc}",
                cause=exc,
            ) from exc

        if not resp.is_success:
            logger.warning(
                "Token endpoint %s answered HTTP %d", credential.token_url, resp.status_code,
            )
            raise AuthExchangeError(
                f"token exchange failed: HTTP {resp.status_code}",
                status=resp.status_code,
            )

        token = _parse_token_body(resp)
        logger.info(
            "Gateway token acquired: token_type=%s expires_in=%s",
            token.token_type, token.expires_in,
        )
        return token


def _parse_token_body(resp: httpx.Response) -> TokenResponse:
    try:
        body = resp.json()
    except ValueError as exc:
        raise AuthExchangeError(
            "token exchange failed: malformed token response (body is not JSON)",
            status=resp.status_code,
            cause=exc,
        ) from exc

    if not isinstance(body, dict):
        raise AuthExchangeError(
            "token exchange failed: malformed token response (expected a JSON object)",
            status=resp.status_code,
        )

    access_token = body.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise AuthExchangeError(
            "token exchange failed: malformed token response (missing access_token)",
            status=resp.status_code,
        )

    expires_in = body.get("expires_in")
    token_type = body.get("token_type")
    return TokenResponse(
        access_token=access_token,
        token_type=token_type if isinstance(token_type, str) else None,
        expires_in=expires_in if isinstance(expires_in, int) else None,
    )


def _check_deadline(timeout: float | None) -> float | None:
    # None is the only way to disable the deadline
    if timeout is not None and timeout <= 0:
        raise ConfigurationError(
            f"token exchange deadline must be a positive number of seconds, got {timeout}; "
            "use None for no deadline"
        )
    return timeout
