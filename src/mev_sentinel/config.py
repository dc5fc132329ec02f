"""Configuration management service with Pydantic Settings.

This module provides centralized configuration management for MEV
Sentinel, loading and validating environment variables at startup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_ENV_FILE = ".env"
_ENV_FILE_ENCODING = "utf-8"

SUPPORTED_CHAIN_NAMES = (
    "ethereum",
    "sepolia",
    "polygon",
    "arbitrum",
    "optimism",
    "base",
    "bsc",
    "zksync",
)


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    url: str = Field(
        default="sqlite+aiosqlite:///mev_sentinel.db",
        alias="DATABASE_URL",
        description="PostgreSQL (or SQLite for local runs) connection string",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate database URL format."""
        if not v.startswith(("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError("DATABASE_URL must be a PostgreSQL or sqlite+aiosqlite connection string")
        return v


class RedisSettings(BaseSettings):
    """Redis connection settings (optional block cache)."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    url: str | None = Field(
        default=None,
        alias="REDIS_URL",
        description="Redis connection string; block caching is disabled when unset",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Validate Redis URL format."""
        if v is not None and not v.startswith("redis://"):
            raise ValueError("REDIS_URL must start with redis://")
        return v


class ChainSettings(BaseSettings):
    """Per-network RPC endpoints and shared RPC client limits."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    ethereum_rpc_url: str | None = Field(default=None, alias="ETHEREUM_RPC_URL")
    sepolia_rpc_url: str | None = Field(default=None, alias="SEPOLIA_RPC_URL")
    polygon_rpc_url: str | None = Field(default=None, alias="POLYGON_RPC_URL")
    arbitrum_rpc_url: str | None = Field(default=None, alias="ARBITRUM_RPC_URL")
    optimism_rpc_url: str | None = Field(default=None, alias="OPTIMISM_RPC_URL")
    base_rpc_url: str | None = Field(default=None, alias="BASE_RPC_URL")
    bsc_rpc_url: str | None = Field(default=None, alias="BSC_RPC_URL")
    zksync_rpc_url: str | None = Field(default=None, alias="ZKSYNC_RPC_URL")

    ethereum_fallback_rpc_url: str | None = Field(default=None, alias="ETHEREUM_FALLBACK_RPC_URL")
    sepolia_fallback_rpc_url: str | None = Field(default=None, alias="SEPOLIA_FALLBACK_RPC_URL")
    polygon_fallback_rpc_url: str | None = Field(default=None, alias="POLYGON_FALLBACK_RPC_URL")
    arbitrum_fallback_rpc_url: str | None = Field(default=None, alias="ARBITRUM_FALLBACK_RPC_URL")
    optimism_fallback_rpc_url: str | None = Field(default=None, alias="OPTIMISM_FALLBACK_RPC_URL")
    base_fallback_rpc_url: str | None = Field(default=None, alias="BASE_FALLBACK_RPC_URL")
    bsc_fallback_rpc_url: str | None = Field(default=None, alias="BSC_FALLBACK_RPC_URL")
    zksync_fallback_rpc_url: str | None = Field(default=None, alias="ZKSYNC_FALLBACK_RPC_URL")

    rpc_timeout_seconds: float = Field(
        default=30.0,
        alias="CHAIN_RPC_TIMEOUT_SECONDS",
        gt=0.0,
        le=300.0,
        description="Hard timeout for a single block fetch",
    )
    max_requests_per_second: float = Field(
        default=25.0,
        alias="CHAIN_MAX_REQUESTS_PER_SECOND",
        gt=0.0,
        le=10_000.0,
        description="Token-bucket rate limit per RPC client",
    )
    max_retries: int = Field(
        default=3,
        alias="CHAIN_MAX_RETRIES",
        ge=1,
        le=10,
        description="Retry attempts per RPC call before failing over",
    )
    block_cache_ttl_seconds: int = Field(
        default=3600,
        alias="CHAIN_BLOCK_CACHE_TTL_SECONDS",
        ge=0,
        le=7 * 24 * 3600,
        description="Redis TTL for decoded blocks",
    )

    @field_validator(
        "ethereum_rpc_url",
        "sepolia_rpc_url",
        "polygon_rpc_url",
        "arbitrum_rpc_url",
        "optimism_rpc_url",
        "base_rpc_url",
        "bsc_rpc_url",
        "zksync_rpc_url",
        "ethereum_fallback_rpc_url",
        "sepolia_fallback_rpc_url",
        "polygon_fallback_rpc_url",
        "arbitrum_fallback_rpc_url",
        "optimism_fallback_rpc_url",
        "base_fallback_rpc_url",
        "bsc_fallback_rpc_url",
        "zksync_fallback_rpc_url",
    )
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Validate RPC URL format."""
        if v is None:
            return v
        if not v.startswith(("http://", "https://")):
            raise ValueError("RPC URL must be an HTTP(S) endpoint")
        return v

    def rpc_url_for(self, chain: str) -> str | None:
        """Return the configured RPC URL for a network, if any."""
        if chain not in SUPPORTED_CHAIN_NAMES:
            return None
        url: str | None = getattr(self, f"{chain}_rpc_url")
        return url

    def fallback_rpc_url_for(self, chain: str) -> str | None:
        """Secondary RPC URL used after the primary exhausts its retries."""
        if chain not in SUPPORTED_CHAIN_NAMES:
            return None
        url: str | None = getattr(self, f"{chain}_fallback_rpc_url")
        return url

    def configured_chains(self) -> tuple[str, ...]:
        return tuple(c for c in SUPPORTED_CHAIN_NAMES if self.rpc_url_for(c))


class DetectionSettings(BaseSettings):
    """Detector thresholds that are operator-tunable."""

    model_config = SettingsConfigDict(env_prefix="DETECTION_", extra="ignore")

    high_value_max_ether: Decimal = Field(
        default=Decimal("10"),
        alias="DETECTION_HIGH_VALUE_MAX_ETHER",
        description="Single-transaction value (native units) that marks a set as high-value",
    )
    high_value_total_ether: Decimal = Field(
        default=Decimal("50"),
        alias="DETECTION_HIGH_VALUE_TOTAL_ETHER",
        description="Summed value (native units) that marks a set as high-value",
    )
    stats_sample_limit: int = Field(
        default=1000,
        alias="DETECTION_STATS_SAMPLE_LIMIT",
        ge=1,
        le=100_000,
        description="Most recent alerts folded into contract statistics",
    )

    @field_validator("high_value_max_ether", "high_value_total_ether")
    @classmethod
    def validate_positive(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError("high-value thresholds must be > 0")
        return v


@dataclass(frozen=True)
class MonitorTarget:
    """A monitored (chain, contract) pair."""

    chain: str
    contract_address: str


class MonitorSettings(BaseSettings):
    """Block polling loop settings."""

    model_config = SettingsConfigDict(env_prefix="MONITOR_", extra="ignore")

    contracts: Annotated[tuple[MonitorTarget, ...], NoDecode] = Field(
        default=(),
        alias="MONITOR_CONTRACTS",
        description="Comma-separated chain:address pairs to monitor",
    )
    poll_interval_seconds: float = Field(
        default=12.0,
        alias="MONITOR_POLL_INTERVAL_SECONDS",
        ge=1.0,
        le=3600.0,
        description="How often to poll each chain for new blocks",
    )
    max_concurrency_per_chain: int = Field(
        default=4,
        alias="MONITOR_MAX_CONCURRENCY_PER_CHAIN",
        ge=1,
        le=256,
        description="Concurrent block analyses per chain (RPC rate-limit guard)",
    )
    max_blocks_per_tick: int = Field(
        default=10,
        alias="MONITOR_MAX_BLOCKS_PER_TICK",
        ge=1,
        le=1000,
        description="Upper bound on blocks processed per chain per poll",
    )

    @field_validator("contracts", mode="before")
    @classmethod
    def _parse_contracts(cls, v: object) -> tuple[MonitorTarget, ...]:
        if v is None or v == "":
            return ()
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
        elif isinstance(v, (list, tuple)):
            if all(isinstance(p, MonitorTarget) for p in v):
                return tuple(v)
            parts = [str(p) for p in v]
        else:
            raise TypeError("Invalid MONITOR_CONTRACTS type")

        targets: list[MonitorTarget] = []
        for part in parts:
            chain, sep, address = part.partition(":")
            if not sep or not address.startswith("0x"):
                raise ValueError(f"MONITOR_CONTRACTS entry must be chain:0xaddress, got {part!r}")
            chain = chain.strip().lower()
            if chain not in SUPPORTED_CHAIN_NAMES:
                raise ValueError(f"Unsupported chain in MONITOR_CONTRACTS: {chain}")
            targets.append(MonitorTarget(chain=chain, contract_address=address.strip().lower()))
        return tuple(targets)


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files via python-dotenv.

    Example:
        ```python
        from mev_sentinel.config import get_settings

        settings = get_settings()
        print(settings.database.url)
        print(settings.chains.configured_chains())
        ```
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding=_ENV_FILE_ENCODING,
        extra="ignore",
    )

    # NOTE: Each nested BaseSettings must be given the same env_file, otherwise it
    # will only read from the process environment (and ignore `.env`).
    database: DatabaseSettings = Field(
        default_factory=lambda: DatabaseSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    redis: RedisSettings = Field(
        default_factory=lambda: RedisSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    chains: ChainSettings = Field(
        default_factory=lambda: ChainSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    detection: DetectionSettings = Field(
        default_factory=lambda: DetectionSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )
    monitor: MonitorSettings = Field(
        default_factory=lambda: MonitorSettings(
            _env_file=_ENV_FILE,
            _env_file_encoding=_ENV_FILE_ENCODING,
        )
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def redacted_summary(self) -> dict[str, str | dict[str, str]]:
        """Get a summary of settings with secrets redacted.

        RPC URLs frequently embed provider API keys, so only their host is shown.
        """
        return {
            "database_url": self._redact_url(self.database.url),
            "redis_url": self._redact_url(self.redis.url) if self.redis.url else "(not set)",
            "chains": {
                chain: self._redact_rpc_url(self.chains.rpc_url_for(chain) or "")
                for chain in self.chains.configured_chains()
            },
            "fallback_chains": {
                chain: self._redact_rpc_url(self.chains.fallback_rpc_url_for(chain) or "")
                for chain in self.chains.configured_chains()
                if self.chains.fallback_rpc_url_for(chain)
            },
            "detection": {
                "high_value_max_ether": str(self.detection.high_value_max_ether),
                "high_value_total_ether": str(self.detection.high_value_total_ether),
                "stats_sample_limit": str(self.detection.stats_sample_limit),
            },
            "monitor": {
                "contracts": str(len(self.monitor.contracts)),
                "poll_interval_seconds": str(self.monitor.poll_interval_seconds),
                "max_concurrency_per_chain": str(self.monitor.max_concurrency_per_chain),
            },
            "log_level": self.log_level,
        }

    def validate_requirements(self, *, command: Literal["run", "analyze"]) -> None:
        """Validate command-specific requirements."""
        if not self.chains.configured_chains():
            raise ValueError("At least one <CHAIN>_RPC_URL must be set")
        if command == "run":
            if not self.monitor.contracts:
                raise ValueError("MONITOR_CONTRACTS is required to run the block monitor")
            missing = sorted(
                {t.chain for t in self.monitor.contracts} - set(self.chains.configured_chains())
            )
            if missing:
                raise ValueError(f"No RPC URL configured for monitored chains: {', '.join(missing)}")

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact password from URL if present."""
        if "@" in url and "://" in url:
            protocol_end = url.index("://") + 3
            at_pos = url.index("@")
            creds_part = url[protocol_end:at_pos]
            if ":" in creds_part:
                username = creds_part.split(":")[0]
                return f"{url[:protocol_end]}{username}:***@{url[at_pos + 1 :]}"
        return url

    @staticmethod
    def _redact_rpc_url(url: str) -> str:
        if "://" not in url:
            return url
        protocol_end = url.index("://") + 3
        host = url[protocol_end:].split("/", 1)[0]
        return f"{url[:protocol_end]}{host}/***"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
