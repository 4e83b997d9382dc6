from pydantic import PositiveFloat, SecretStr
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OAuth2 token endpoint (client_credentials grant)
    token_url: str = "https://apis-internal.intel.com/v1/auth/token"
    token_timeout: PositiveFloat | None = 30.0   # seconds, None for no deadline

    # Forward proxy for all gateway traffic; empty string disables it
    proxy_url: str = "http://proxy-chain.intel.com:912"

    # Provider defaults per node type
    chat_base_url: str = "https://apis-internal.intel.com/generativeaiinference/v4"
    embeddings_base_url: str = "https://apis-internal.intel.com/generativeaiembedding/v2"

    # Service account, only read by scripts/check_token.py
    client_id: str = ""
    client_secret: SecretStr = SecretStr("")

    # Optional YAML file with per-node overrides
    nodes_config_path: str = ""

    model_config = {"env_file": ".env", "env_prefix": "IGPT_", "extra": "ignore"}


settings = Settings()
