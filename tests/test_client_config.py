"""Tests for credentials, options and build_model_client_config."""

from __future__ import annotations

import httpx
import pytest

from igpt.gateway import (
    ConfigurationError,
    Credential,
    GatewayOptions,
    ProxyDispatcher,
    TokenGatewayClient,
    build_model_client_config,
)

from conftest import PROXY_URL, TOKEN_URL, TokenEndpoint

DEFAULT_URL = "https://gateway.example/generativeaiinference/v4"


class TestCredential:
    def test_from_mapping_accepts_camel_and_snake_case(self):
        camel = Credential.from_mapping(
            {"tokenUrl": TOKEN_URL, "clientId": "id1", "clientSecret": "secret1"}
        )
        snake = Credential.from_mapping(
            {"token_url": TOKEN_URL, "client_id": "id1", "client_secret": "secret1"}
        )
        assert camel == snake

    def test_token_form_order(self, credential):
        assert list(credential.token_form().items()) == [
            ("grant_type", "client_credentials"),
            ("client_id", "id1"),
            ("client_secret", "secret1"),
        ]

    def test_log_fields_exclude_secret(self, credential):
        assert credential.log_fields() == {"token_url": TOKEN_URL, "client_id": "id1"}

    @pytest.mark.parametrize(
        "token_url",
        ["", "not a url", "/v1/auth/token", "ftp://auth.example/token", "https://"],
    )
    def test_rejects_bad_token_url(self, token_url):
        with pytest.raises(ConfigurationError, match="tokenUrl"):
            Credential(token_url=token_url, client_id="id1", client_secret="secret1")

    @pytest.mark.parametrize("client_id,client_secret", [("", "s"), ("   ", "s"), ("id", "")])
    def test_rejects_empty_id_or_secret(self, client_id, client_secret):
        with pytest.raises(ConfigurationError):
            Credential(token_url=TOKEN_URL, client_id=client_id, client_secret=client_secret)

    def test_missing_keys_in_mapping(self):
        with pytest.raises(ConfigurationError):
            Credential.from_mapping({"tokenUrl": TOKEN_URL})

    def test_error_message_never_contains_secret(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Credential(token_url="nope", client_id="id1", client_secret="secret1")
        assert "secret1" not in str(exc_info.value)


class TestGatewayOptions:
    def test_defaults(self):
        options = GatewayOptions.parse(None)
        assert options.base_url is None
        assert options.timeout is None
        assert options.max_retries is None
        assert options.sampling_params() == {}

    def test_host_aliases(self):
        options = GatewayOptions.parse({"baseURL": "https://o.example/v1", "maxRetries": 3})
        assert options.base_url == "https://o.example/v1"
        assert options.max_retries == 3

    def test_extra_keys_pass_through_as_sampling(self):
        options = GatewayOptions.parse({"timeout": 10, "temperature": 0.2, "seed": None})
        assert options.sampling_params() == {"temperature": 0.2}

    @pytest.mark.parametrize("timeout", [-1, 0, -0.5])
    def test_non_positive_timeout_is_rejected(self, timeout):
        with pytest.raises(ConfigurationError, match="timeout"):
            GatewayOptions.parse({"timeout": timeout})

    @pytest.mark.parametrize("raw", [{"timeout": "soon"}, {"maxRetries": -1}, {"max_retries": "x"}])
    def test_wrong_types_are_configuration_errors(self, raw):
        with pytest.raises(ConfigurationError):
            GatewayOptions.parse(raw)


class TestBuildModelClientConfig:
    def test_default_base_url_when_not_overridden(self):
        config = build_model_client_config(DEFAULT_URL, "tok", None, {})
        assert config.base_url == DEFAULT_URL

    def test_override_base_url_is_used_exactly(self):
        config = build_model_client_config(
            DEFAULT_URL, "tok", None, {"baseURL": "https://override.example/v1"}
        )
        assert config.base_url == "https://override.example/v1"

    def test_empty_override_falls_back_to_default(self):
        config = build_model_client_config(DEFAULT_URL, "tok", None, {"baseURL": ""})
        assert config.base_url == DEFAULT_URL

    def test_attaches_dispatcher_only_with_proxy_url(self):
        proxied = ProxyDispatcher(PROXY_URL)
        direct = ProxyDispatcher("")

        assert build_model_client_config(DEFAULT_URL, "tok", proxied).proxy_dispatcher is proxied
        assert build_model_client_config(DEFAULT_URL, "tok", direct).proxy_dispatcher is None
        assert build_model_client_config(DEFAULT_URL, "tok", None).proxy_dispatcher is None

    def test_passes_through_client_settings(self):
        config = build_model_client_config(
            DEFAULT_URL, "tok", None, {"timeout": 12.5, "maxRetries": 2, "temperature": 0.1},
            model_name="claude-sonnet-4",
        )
        assert config.api_key == "tok"
        assert config.timeout == 12.5
        assert config.max_retries == 2
        assert config.model_name == "claude-sonnet-4"
        assert config.sampling == {"temperature": 0.1}

    def test_rejects_empty_token(self):
        with pytest.raises(ConfigurationError):
            build_model_client_config(DEFAULT_URL, "", None)

    def test_legacy_minus_one_timeout_is_rejected(self):
        with pytest.raises(ConfigurationError):
            build_model_client_config(DEFAULT_URL, "tok", None, {"timeout": -1})

    def test_repr_hides_token(self):
        config = build_model_client_config(DEFAULT_URL, "tok-secret-value", None)
        assert "tok-secret-value" not in repr(config)

    def test_openai_client_kwargs(self):
        dispatcher = ProxyDispatcher(PROXY_URL)
        config = build_model_client_config(
            DEFAULT_URL, "tok", dispatcher, {"timeout": 5}, model_name="m",
        )

        kwargs = config.openai_client_kwargs()

        assert kwargs["base_url"] == DEFAULT_URL
        assert kwargs["api_key"] == "tok"
        assert kwargs["model"] == "m"
        assert kwargs["timeout"] == 5
        assert "max_retries" not in kwargs
        assert isinstance(kwargs["http_client"], httpx.Client)
        assert isinstance(kwargs["http_async_client"], httpx.AsyncClient)
        # Shared for the process lifetime
        assert dispatcher.http_client() is kwargs["http_client"]
        assert dispatcher.http_async_client() is kwargs["http_async_client"]


@pytest.mark.asyncio
async def test_end_to_end_token_becomes_api_key():
    def expect_form(request: httpx.Request) -> httpx.Response:
        if request.content != b"grant_type=client_credentials&client_id=id1&client_secret=secret1":
            return httpx.Response(400, json={"error": "unexpected body"})
        return httpx.Response(200, json={"access_token": "tok-xyz"})

    endpoint = TokenEndpoint(expect_form)
    dispatcher = endpoint.dispatcher()
    credential = Credential(
        token_url="https://auth.example/token", client_id="id1", client_secret="secret1",
    )

    token = await TokenGatewayClient(dispatcher).fetch_token(credential)
    config = build_model_client_config(DEFAULT_URL, token.access_token, dispatcher, {})

    assert config.api_key == "tok-xyz"
    assert config.proxy_dispatcher is dispatcher
