"""
Configuration for the Stacks + Bitcoin utility API.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    API configuration settings.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Server
    host: str = Field(default="127.0.0.1", description="API host")
    port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")
    allowed_origins: list[str] = Field(
        default=["*"],
        description="CORS allowed origins"
    )

    # Upstream endpoints
    stacks_api_url: str = Field(
        default="https://api.mainnet.hiro.so",
        description="Stacks node / extended API URL"
    )
    blockchain_info_api_url: str = Field(
        default="https://blockchain.info",
        description="blockchain.info API URL (BTC balances and transactions)"
    )
    stacks_explorer_url: str = Field(
        default="https://explorer.hiro.so",
        description="Stacks explorer used for links"
    )
    bitcoin_explorer_url: str = Field(
        default="https://www.blockchain.com",
        description="Bitcoin explorer used for links"
    )
    fetch_timeout: float = Field(default=15.0, gt=0, description="Upstream request timeout (seconds)")

    # Read-only calls
    default_sender: str = Field(
        default="STM9EQRAB3QAKF8NKTP15WJT7VHH4EWG3DJB4W29",
        description="Sender used for read-only calls when none is given"
    )

    # Chain-tip cache
    cache_enabled: bool = Field(default=True, description="Enable chain-tip ETag caching")
    chain_tip_ttl_seconds: float = Field(
        default=5.0,
        ge=0,
        description="How long a fetched chain tip is reused before asking the node again"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
