"""iGpt chat-model node: ChatOpenAI pointed at the gateway's inference API."""

from __future__ import annotations

import logging
from typing import Any, Collection

from pydantic import AliasChoices, Field

from igpt.config import settings
from igpt.gateway import GatewayOptions, ModelClientConfig
from igpt.nodes.base import GatewayNode
from igpt.tracing import UsageTracingHandler

logger = logging.getLogger(__name__)

MIN_THINKING_BUDGET = 1024
DEFAULT_MAX_TOKENS = 4096

# (display name, model id) offered by the host's model picker
KNOWN_MODELS: list[tuple[str, str]] = [
    ("Claude 4 Sonnet", "claude-sonnet-4"),
]

# Sampling keys this node maps onto ChatOpenAI fields itself
_SAMPLING_KEYS = {
    "max_tokens_to_sample", "temperature", "top_k", "top_p", "thinking", "thinking_budget",
}


class ChatOptions(GatewayOptions):
    max_tokens_to_sample: int | None = Field(
        default=DEFAULT_MAX_TOKENS,
        validation_alias=AliasChoices("max_tokens_to_sample", "maxTokensToSample"),
    )
    temperature: float | None = 0.7
    top_k: int | None = Field(default=-1, validation_alias=AliasChoices("top_k", "topK"))
    top_p: float | None = Field(default=1.0, validation_alias=AliasChoices("top_p", "topP"))
    thinking: bool = False
    thinking_budget: int | None = Field(
        default=MIN_THINKING_BUDGET,
        validation_alias=AliasChoices("thinking_budget", "thinkingBudget"),
    )


class LmChatIGpt(GatewayNode):
    name = "lmChatiGpt"
    display_name = "iGpt Chat Model"
    default_model = "claude-sonnet-4"
    options_model = ChatOptions

    @property
    def provider_base_url(self) -> str:
        return settings.chat_base_url

    def search_models(self, filter: str | None = None) -> list[dict[str, str]]:
        """Model list for the host's searchable picker."""
        needle = (filter or "").lower()
        return [
            {"name": name, "value": value}
            for name, value in KNOWN_MODELS
            if needle in name.lower() or needle in value.lower()
        ]

    def create_client(self, config: ModelClientConfig) -> Any:
        from langchain_openai import ChatOpenAI

        kwargs = chat_sampling_kwargs(config.sampling, client_fields(ChatOpenAI))
        # Token, base URL and proxy clients are never overridable by options
        kwargs.update(config.openai_client_kwargs())
        kwargs["callbacks"] = [UsageTracingHandler(self.name)]

        logger.info("Creating ChatOpenAI: model=%s, base_url=%s", config.model_name, config.base_url)
        return ChatOpenAI(**kwargs)


def client_fields(model_cls: Any) -> frozenset[str]:
    """Constructor field names and aliases of a pydantic model class."""
    fields = model_cls.model_fields
    names = set(fields)
    names.update(f.alias for f in fields.values() if f.alias)
    return frozenset(names)


def chat_sampling_kwargs(
    sampling: dict[str, Any],
    known_fields: Collection[str] = (),
) -> dict[str, Any]:
    """Map node sampling options onto ChatOpenAI keyword arguments.

    ``top_k`` is not an OpenAI parameter, so it travels in the request body
    (``-1`` disables it). With thinking enabled the gateway requires a token
    budget and a ``max_tokens`` above it, and rejects temperature/top_p/top_k.

    Any other option named in ``known_fields`` (e.g. ``seed``,
    ``frequency_penalty``) is passed as its own keyword. The rest go into
    ``model_kwargs``.
    """
    kwargs: dict[str, Any] = {}
    extra_body: dict[str, Any] = {}

    max_tokens = sampling.get("max_tokens_to_sample")
    if max_tokens is not None:
        kwargs["max_tokens"] = max_tokens

    if sampling.get("thinking"):
        extra_body["thinking"] = {
            "type": "enabled",
            "budget_tokens": sampling.get("thinking_budget") or MIN_THINKING_BUDGET,
        }
        kwargs["max_tokens"] = max_tokens or DEFAULT_MAX_TOKENS
    else:
        if sampling.get("temperature") is not None:
            kwargs["temperature"] = sampling["temperature"]
        if sampling.get("top_p") is not None:
            kwargs["top_p"] = sampling["top_p"]
        top_k = sampling.get("top_k")
        if top_k is not None and top_k != -1:
            extra_body["top_k"] = top_k

    if extra_body:
        kwargs["extra_body"] = extra_body

    passthrough = {}
    for key, value in sampling.items():
        if key in _SAMPLING_KEYS:
            continue
        if key in known_fields:
            kwargs[key] = value
        else:
            passthrough[key] = value
    if passthrough:
        kwargs["model_kwargs"] = passthrough
    return kwargs
