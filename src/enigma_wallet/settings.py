"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import (
    ALCHEMY_ETH_URL_TEMPLATE,
    BALANCE_CACHE_TTL,
    CACHE_MAX_ENTRIES,
    DEFAULT_BLOCKCYPHER_API_URL,
    DEFAULT_COINGECKO_API_URL,
    DEFAULT_SOLANA_TOKEN_LIST_URL,
    MARKET_DATA_CACHE_TTL,
    PRICE_CACHE_TTL,
    TOKEN_LIST_CACHE_TTL,
    TOKEN_METADATA_CACHE_TTL,
)
from .errors import REDACTED

load_dotenv()

CONFIG_ENV_VAR = "ENIGMA_WALLET_CONFIG"
SECRET_FIELDS = ("alchemy_api_key", "solana_rpc_url", "blockcypher_api_token")


class WalletSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with ENIGMA_WALLET_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- upstream credentials (env / CLI only) ---
    alchemy_api_key: SecretStr | None = None
    solana_rpc_url: SecretStr | None = None
    blockcypher_api_token: SecretStr | None = None

    # --- upstream endpoints ---
    ethereum_network: str = "mainnet"
    blockcypher_api_url: str = DEFAULT_BLOCKCYPHER_API_URL
    coingecko_api_url: str = DEFAULT_COINGECKO_API_URL
    solana_token_list_url: str = DEFAULT_SOLANA_TOKEN_LIST_URL
    http_timeout: float = Field(default=15.0, gt=0)

    # --- cache TTLs (seconds) ---
    balance_cache_ttl: int = Field(default=BALANCE_CACHE_TTL, gt=0)
    price_cache_ttl: int = Field(default=PRICE_CACHE_TTL, gt=0)
    token_list_cache_ttl: int = Field(default=TOKEN_LIST_CACHE_TTL, gt=0)
    token_metadata_cache_ttl: int = Field(default=TOKEN_METADATA_CACHE_TTL, gt=0)
    market_data_cache_ttl: int = Field(default=MARKET_DATA_CACHE_TTL, gt=0)
    stale_grace_seconds: int = Field(default=600, ge=0)
    cache_prune_interval: float = Field(default=300.0, gt=0)
    cache_max_entries: int = Field(default=CACHE_MAX_ENTRIES, ge=1)
    cache_path: Path | None = None

    # --- retries and RPC throttling ---
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    rpc_max_concurrent_calls: int = Field(default=5, ge=1)

    # --- API server ---
    api_host: str = "0.0.0.0"
    api_port: int = 7777

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="ENIGMA_WALLET_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator(*SECRET_FIELDS, mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr; treat empty strings as unset."""
        if v is None or isinstance(v, SecretStr):
            return v
        if isinstance(v, str) and not v.strip():
            return None
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        return str(v).upper()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get(CONFIG_ENV_VAR)
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("enigma-wallet.toml")
                    user_config = (
                        Path.home() / ".config" / "enigma-wallet" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [enigma_wallet]
                body = data.get("enigma_wallet", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key) is not None:
                data[key] = REDACTED
        return data

    def missing_credentials(self) -> list[str]:
        return [key for key in SECRET_FIELDS if getattr(self, key) is None]

    def require_credentials(self) -> None:
        """Fail fast when an upstream credential is not configured.

        Raises:
            ValueError: Naming every missing credential.
        """
        missing = self.missing_credentials()
        if missing:
            env_names = ", ".join(f"ENIGMA_WALLET_{key.upper()}" for key in missing)
            raise ValueError(f"Missing required credentials: {env_names}")

    def secret_values(self) -> list[str]:
        """Plain secret values, used to scrub diagnostic text."""
        values = [
            secret.get_secret_value()
            for secret in (getattr(self, key) for key in SECRET_FIELDS)
            if secret is not None
        ]
        return [value for value in values if value]

    @property
    def ethereum_rpc_url(self) -> str:
        """Alchemy JSON-RPC endpoint for the configured network."""
        if self.alchemy_api_key is None:
            raise ValueError("alchemy_api_key must be configured")
        return ALCHEMY_ETH_URL_TEMPLATE.format(
            network=self.ethereum_network,
            api_key=self.alchemy_api_key.get_secret_value(),
        )

    @property
    def solana_rpc_url_required(self) -> str:
        if self.solana_rpc_url is None:
            raise ValueError("solana_rpc_url must be configured")
        return self.solana_rpc_url.get_secret_value()

    @property
    def blockcypher_api_token_required(self) -> str:
        if self.blockcypher_api_token is None:
            raise ValueError("blockcypher_api_token must be configured")
        return self.blockcypher_api_token.get_secret_value()

    @property
    def cache_path_resolved(self) -> Path:
        """Location of the persistent CLI cache."""
        if self.cache_path is not None:
            return self.cache_path
        return Path.home() / ".cache" / "enigma-wallet" / "cache.json"
