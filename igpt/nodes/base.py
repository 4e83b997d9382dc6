"""Shared adapter flow for gateway-backed nodes.

Every node does the same thing on each invocation::

    options  = parse host options          (ConfigurationError, no I/O)
    token    = fetch_token(credential)     (AuthExchangeError)
    config   = build_model_client_config(...)
    client   = create_client(config)       (external LangChain client)

Subclasses only supply their defaults, their options model and
``create_client``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

from igpt.config_loader import load_node_overrides
from igpt.gateway import (
    Credential,
    GatewayOptions,
    ModelClientConfig,
    ProxyDispatcher,
    TokenGatewayClient,
    build_model_client_config,
    get_default_dispatcher,
    redact_proxy_url,
)
from igpt.nodes.credential_type import IGPT_CREDENTIAL_TYPE

logger = logging.getLogger(__name__)


@dataclass
class SupplyData:
    """What a node hands back to the host: the model client handle."""
    response: Any


class GatewayNode(ABC):
    name: ClassVar[str]
    display_name: ClassVar[str]
    credential_type: ClassVar[str] = IGPT_CREDENTIAL_TYPE
    default_model: ClassVar[str]
    options_model: ClassVar[type[GatewayOptions]] = GatewayOptions

    def __init__(
        self,
        *,
        dispatcher: ProxyDispatcher | None = None,
        token_client: TokenGatewayClient | None = None,
        overrides: Mapping[str, Any] | None = None,
    ) -> None:
        self.dispatcher = dispatcher or get_default_dispatcher()
        self.token_client = token_client or TokenGatewayClient(self.dispatcher)
        if overrides is None:
            overrides = load_node_overrides().get(self.name, {})
        self.overrides = dict(overrides)

    @property
    @abstractmethod
    def provider_base_url(self) -> str:
        """Built-in base URL for this node's provider."""

    @property
    def default_base_url(self) -> str:
        return self.overrides.get("base_url") or self.provider_base_url

    def parse_options(self, raw: Mapping[str, Any] | None) -> GatewayOptions:
        merged = dict(raw or {})
        if "timeout" in self.overrides:
            merged.setdefault("timeout", self.overrides["timeout"])
        return self.options_model.parse(merged)

    def resolve_model_name(self, parameters: Mapping[str, Any]) -> str:
        """Read the model parameter: a plain string or a ``{"mode", "value"}`` locator."""
        model = parameters.get("model")
        if isinstance(model, Mapping):
            model = model.get("value")
        return model or self.overrides.get("default_model") or self.default_model

    async def supply_data(
        self,
        credential: Credential | Mapping[str, Any],
        parameters: Mapping[str, Any] | None = None,
    ) -> SupplyData:
        """Fetch a fresh token and build this node's model client."""
        parameters = parameters or {}
        if not isinstance(credential, Credential):
            credential = Credential.from_mapping(credential)
        options = self.parse_options(parameters.get("options"))
        model_name = self.resolve_model_name(parameters)

        token = await self.token_client.fetch_token(credential)
        config = build_model_client_config(
            self.default_base_url,
            token.access_token,
            self.dispatcher,
            options,
            model_name=model_name,
        )
        logger.info(
            "Supplying %s: model=%s base_url=%s proxy=%s",
            self.name, config.model_name, config.base_url,
            redact_proxy_url(config.proxy_dispatcher.proxy_url) if config.proxy_dispatcher else None,
        )
        return SupplyData(response=self.create_client(config))

    @abstractmethod
    def create_client(self, config: ModelClientConfig) -> Any:
        """Construct the external LangChain client from ``config``."""
