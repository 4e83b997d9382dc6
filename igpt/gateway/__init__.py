"""Gateway access: OAuth2 token exchange, proxy routing, model-client config."""

from igpt.gateway.client_config import (
    GatewayOptions,
    ModelClientConfig,
    build_model_client_config,
)
from igpt.gateway.credentials import Credential
from igpt.gateway.errors import AuthExchangeError, ConfigurationError
from igpt.gateway.proxy import ProxyDispatcher, get_default_dispatcher, redact_proxy_url
from igpt.gateway.token_client import TokenGatewayClient, TokenResponse

__all__ = [
    "AuthExchangeError",
    "ConfigurationError",
    "Credential",
    "GatewayOptions",
    "ModelClientConfig",
    "ProxyDispatcher",
    "TokenGatewayClient",
    "TokenResponse",
    "build_model_client_config",
    "get_default_dispatcher",
    "redact_proxy_url",
]
