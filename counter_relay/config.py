from __future__ import annotations

"""
Configuration loader for the Sui Counter Relay.

- Reads environment variables (optionally from `.env`) via pydantic-settings.
- Settings are frozen: they are resolved once at startup and handed to
  request handlers through :class:`counter_relay.context.RelayContext`.
- Exposes a cached `load_config()` accessor.

Environment variables (high-level):
    SUI_NETWORK                   (str, default "testnet") - mainnet|testnet|devnet|localnet
    SUI_RPC_URL                   (str, optional)          - overrides the network's full-node URL
    SUI_MNEMONIC                  (str, optional)          - BIP-39 phrase for the signer
    SUI_PRIVATE_KEY               (str, optional)          - base64 secret (65/64/32 bytes)
    PACKAGE_ID                    (str, required)          - deployed Move package id
    COUNTER_ID                    (str, optional)          - default counter object id
    LOG_LEVEL                     (str, default "INFO")

Gas:
    SUI_GAS_BUDGET                (number, optional)       - default budget override
    SUI_GAS_PRICE                 (number, optional)       - default price override
    SUI_DEFAULT_GAS_BUDGET        (int, default 100000000) - budget when no override applies

Transport:
    RPC_TIMEOUT_S                 (float, default 30)
    RPC_MAX_RETRIES               (int, default 2)
    FINALITY_TIMEOUT_S            (float, default 60)
    FINALITY_POLL_INTERVAL_S      (float, default 2)

CORS:
    CORS_ALLOW_ORIGIN_REGEX       (str, default "http://localhost:3\\d{2,4}")
    CORS_ALLOW_CREDENTIALS        (bool, default True)

Notes
-----
- SUI_GAS_BUDGET / SUI_GAS_PRICE are kept as raw strings; the gas resolver
  treats a non-numeric value as absent rather than failing startup.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Full-node endpoints per network, as published by Mysten Labs.
FULLNODE_URLS = {
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "devnet": "https://fullnode.devnet.sui.io:443",
    "localnet": "http://127.0.0.1:9000",
}

COUNTER_MODULE = "counter"
COUNTER_STRUCT = "Counter"


class Settings(BaseSettings):
    # Core
    sui_network: str = Field("testnet", description="Sui network selector")
    sui_rpc_url: Optional[str] = Field(None, description="Explicit full-node JSON-RPC URL")
    sui_mnemonic: Optional[str] = Field(None, repr=False)
    sui_private_key: Optional[str] = Field(None, repr=False)
    package_id: Optional[str] = Field(None, description="Deployed counter package id")
    counter_id: Optional[str] = Field(None, description="Default counter object id")

    # Gas
    sui_gas_budget: Optional[str] = None
    sui_gas_price: Optional[str] = None
    sui_default_gas_budget: int = Field(100_000_000, gt=0, le=2**64 - 1)

    # Transport
    rpc_timeout_s: float = Field(30.0, gt=0)
    rpc_max_retries: int = Field(2, ge=0)
    finality_timeout_s: float = Field(60.0, gt=0)
    finality_poll_interval_s: float = Field(2.0, gt=0)

    # HTTP
    host: str = "0.0.0.0"
    port: int = 4000
    cors_allow_origin_regex: str = r"http://localhost:3\d{2,4}"
    cors_allow_credentials: bool = True

    # Logging
    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    log_format: str = "json"

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", case_sensitive=False, extra="ignore", frozen=True
    )

    @field_validator(
        "sui_rpc_url", "sui_mnemonic", "sui_private_key", "package_id", "counter_id",
        "sui_gas_budget", "sui_gas_price",
        mode="before",
    )
    @classmethod
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("sui_network", mode="before")
    @classmethod
    def _lower_network(cls, v):
        return str(v).strip().lower() if v is not None else "testnet"

    # Helpers -----------------------------------------------------------------

    @property
    def rpc_url(self) -> str:
        """Resolved JSON-RPC endpoint; raises ValueError for an unknown network."""
        if self.sui_rpc_url:
            return self.sui_rpc_url
        try:
            return FULLNODE_URLS[self.sui_network]
        except KeyError:
            raise ValueError(
                f"Unknown SUI_NETWORK {self.sui_network!r}; expected one of {sorted(FULLNODE_URLS)}"
            ) from None

    def to_cors_config(self):
        """Convert to the security.cors CORSConfig model."""
        from .security.cors import CORSConfig

        return CORSConfig(
            allow_origins=[],
            allow_origin_regex=self.cors_allow_origin_regex or None,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization"],
            expose_headers=["X-Request-Id"],
            allow_credentials=self.cors_allow_credentials,
            max_age=600,
        )


@lru_cache(maxsize=1)
def load_config() -> Settings:
    """Return the cached settings instance (reads .env automatically)."""
    return Settings()  # type: ignore[call-arg]


__all__ = [
    "COUNTER_MODULE",
    "COUNTER_STRUCT",
    "FULLNODE_URLS",
    "Settings",
    "load_config",
]
