import os

from pathlib import Path
from typing import Any, List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Ensure we pick up legacy environment variable aliases."""

        super().model_post_init(__context)

        if not self.oneinch_api_key:
            fallback = os.getenv("ONE_INCH_API_KEY") or os.getenv("INCH_API_KEY")
            if fallback:
                object.__setattr__(self, "oneinch_api_key", fallback)

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["auto", "json", "console"] = Field(
        default="auto",
        description="Log rendering; auto picks console on a terminal or at DEBUG, JSON otherwise",
    )

    # Dune Analytics (transaction history)
    dune_api_key: str = Field(default="", description="Dune Analytics API key")
    dune_base_url: str = Field(
        default="https://api.dune.com/api/v1",
        description="Base URL for the Dune query execution API",
    )
    dune_query_id: str = Field(
        default="3238827",
        description="Saved Dune query returning DEX trades for a wallet",
    )
    dune_poll_interval_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Delay between execution status checks",
    )
    dune_max_poll_attempts: int = Field(
        default=30,
        ge=1,
        description="Status checks before a query execution is reported as timed out",
    )
    dune_timeout_seconds: int = Field(default=30, description="Per-request timeout for Dune calls")

    # 1inch (aggregator quotes)
    oneinch_api_key: str = Field(default="", description="1inch developer portal API key")
    oneinch_base_url: str = Field(
        default="https://api.1inch.dev/swap/v6.0/1",
        description="1inch swap API base URL (Ethereum mainnet)",
    )
    oneinch_timeout_seconds: int = Field(default=10, description="Timeout for quote requests")
    quote_throttle_seconds: float = Field(
        default=0.1,
        ge=0,
        description="Pause after each successful quote comparison",
    )

    # Coingecko (prices, token metadata)
    coingecko_api_key: str = Field(default="", description="Coingecko API key")
    coingecko_base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="Coingecko API base URL",
    )
    price_timeout_seconds: int = Field(default=5, description="Timeout for price lookups")

    # Analysis
    comparison_transaction_limit: int = Field(
        default=10,
        ge=1,
        description="Transactions compared against aggregator quotes per wallet",
    )
    report_transaction_limit: int = Field(
        default=50,
        ge=1,
        description="Transactions included in a swap report",
    )
    volume_price_source: Literal["spot", "historical"] = Field(
        default="spot",
        description="Price used when a trade has no USD value from Dune",
    )

    @property
    def has_dune_key(self) -> bool:
        return bool(self.dune_api_key)

    @property
    def has_oneinch_key(self) -> bool:
        return bool(self.oneinch_api_key)


    def startup_warnings(self) -> List[str]:
        """Describe missing credentials so they are reported once at boot."""

        warnings: List[str] = []
        if not self.has_dune_key:
            warnings.append(
                "DUNE_API_KEY is not set; transaction, comparison and report tools will fail"
            )
        if not self.has_oneinch_key:
            warnings.append("ONEINCH_API_KEY is not set; using 1inch public rate limits")
        return warnings


# Global settings instance
settings = Settings()
