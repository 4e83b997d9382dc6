"""Service-account credential for the gateway's OAuth2 token endpoint.

The host owns the credential; this module only validates it and renders the
client_credentials form. The secret is kept out of ``repr`` and out of
:meth:`Credential.log_fields`, which is the only view of a credential that
may be passed to a logger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from igpt.gateway.errors import ConfigurationError

GRANT_TYPE = "client_credentials"

# Host mappings use camelCase; accept snake_case too
_FIELD_ALIASES = {
    "token_url": ("tokenUrl", "token_url"),
    "client_id": ("clientId", "client_id"),
    "client_secret": ("clientSecret", "client_secret"),
}


@dataclass(frozen=True)
class Credential:
    token_url: str
    client_id: str
    client_secret: str = field(repr=False)

    def __post_init__(self) -> None:
        _check_token_url(self.token_url)
        if not isinstance(self.client_id, str) or not self.client_id.strip():
            raise ConfigurationError("credential clientId must be a non-empty string")
        if not isinstance(self.client_secret, str) or not self.client_secret:
            raise ConfigurationError("credential clientSecret must be a non-empty string")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Credential:
        """Build a credential from the host's secret-store mapping."""
        values: dict[str, Any] = {}
        for name, keys in _FIELD_ALIASES.items():
            values[name] = next((data[k] for k in keys if data.get(k) is not None), "")
        return cls(**values)

    def token_form(self) -> dict[str, str]:
        """Form fields for one token request, in wire order."""
        return {
            "grant_type": GRANT_TYPE,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }

    def log_fields(self) -> dict[str, str]:
        return {"token_url": self.token_url, "client_id": self.client_id}


def _check_token_url(token_url: Any) -> None:
    if not isinstance(token_url, str) or not token_url:
        raise ConfigurationError("credential tokenUrl must be a non-empty string")
    try:
        url = httpx.URL(token_url)
    except httpx.InvalidURL as exc:
        raise ConfigurationError(f"credential tokenUrl is not a valid URL: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            "credential tokenUrl must be an absolute http(s) URL, got %r" % token_url
        )
