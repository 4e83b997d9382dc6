"""Model-client configuration handed to the LangChain OpenAI clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from igpt.gateway.errors import ConfigurationError
from igpt.gateway.proxy import ProxyDispatcher

# Option fields that configure the client rather than the model
_CLIENT_FIELDS = {"base_url", "timeout", "max_retries"}


class GatewayOptions(BaseModel):
    """Per-invocation user options.

    Unknown keys are kept and passed through to the model client as
    sampling parameters. Nodes subclass this to declare their own.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    base_url: str | None = Field(
        default=None, validation_alias=AliasChoices("base_url", "baseURL"),
    )
    timeout: float | None = None
    max_retries: int | None = Field(
        default=None, ge=0, validation_alias=AliasChoices("max_retries", "maxRetries"),
    )

    @field_validator("base_url")
    @classmethod
    def _empty_base_url_is_unset(cls, v: str | None) -> str | None:
        return v or None

    @field_validator("timeout")
    @classmethod
    def _positive_timeout(cls, v: float | None) -> float | None:
        # -1 historically meant either "no timeout" or "transport default"
        if v is not None and v <= 0:
            raise ValueError(
                f"timeout must be a positive number of seconds, got {v}; "
                "leave it unset to use the transport default"
            )
        return v

    @classmethod
    def parse(cls, raw: Mapping[str, Any] | None) -> GatewayOptions:
        """Validate host-supplied options, raising ConfigurationError on bad input."""
        try:
            return cls.model_validate(dict(raw or {}))
        except ValidationError as exc:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in e['loc']) or 'options'}: {e['msg']}"
                for e in exc.errors()
            )
            raise ConfigurationError(f"invalid options: {errors}") from exc

    def sampling_params(self) -> dict[str, Any]:
        """Everything that is not a client setting, with unset values dropped."""
        params = self.model_dump(exclude=_CLIENT_FIELDS, exclude_none=True)
        return {k: v for k, v in params.items() if v is not None}


@dataclass(frozen=True)
class ModelClientConfig:
    base_url: str
    api_key: str = field(repr=False)
    proxy_dispatcher: ProxyDispatcher | None = None
    timeout: float | None = None
    max_retries: int | None = None
    model_name: str | None = None
    sampling: dict[str, Any] = field(default_factory=dict)

    def openai_client_kwargs(self) -> dict[str, Any]:
        """Keyword arguments understood by ChatOpenAI and OpenAIEmbeddings."""
        kwargs: dict[str, Any] = {
            "base_url": self.base_url,
            "api_key": self.api_key,
        }
        if self.model_name:
            kwargs["model"] = self.model_name
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        if self.max_retries is not None:
            kwargs["max_retries"] = self.max_retries
        if self.proxy_dispatcher is not None:
            kwargs["http_client"] = self.proxy_dispatcher.http_client()
            kwargs["http_async_client"] = self.proxy_dispatcher.http_async_client()
        return kwargs


def build_model_client_config(
    base_url: str,
    token: str,
    dispatcher: ProxyDispatcher | None = None,
    options: GatewayOptions | Mapping[str, Any] | None = None,
    *,
    model_name: str | None = None,
) -> ModelClientConfig:
    """Assemble the configuration for one model client. No I/O.

    ``base_url`` is the provider default; a non-empty ``options.base_url``
    replaces it. The dispatcher is attached only when it has a proxy URL.
    """
    if not token:
        raise ConfigurationError("bearer token must be a non-empty string")
    if not isinstance(options, GatewayOptions):
        options = GatewayOptions.parse(options)

    attach = dispatcher is not None and bool(dispatcher.proxy_url)
    return ModelClientConfig(
        base_url=options.base_url or base_url,
        api_key=token,
        proxy_dispatcher=dispatcher if attach else None,
        timeout=options.timeout,
        max_retries=options.max_retries,
        model_name=model_name,
        sampling=options.sampling_params(),
    )
