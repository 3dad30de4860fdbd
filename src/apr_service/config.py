"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class ChainSettings(BaseSettings):
    """Ethereum RPC and SSV Views contract used for the accEthPerShare index."""

    model_config = SettingsConfigDict(env_prefix="CHAIN_")

    rpc_url: str = ""
    views_contract_address: str = ""
    timeout_seconds: float = 30.0


class PriceFeedSettings(BaseSettings):
    """CoinGecko spot price feed."""

    model_config = SettingsConfigDict(env_prefix="PRICES_")

    base_url: str = "https://api.coingecko.com/api/v3"
    eth_id: str = "ethereum"
    ssv_id: str = "ssv-network"
    timeout_seconds: float = 30.0


class BalanceFeedSettings(BaseSettings):
    """Effective balance feeds for the projected APR.

    explorer_url serves the clusters total, oracle_url serves the committed
    per-cluster validator balances. Both must be set for projected APR.
    """

    model_config = SettingsConfigDict(env_prefix="BALANCES_")

    explorer_url: str = ""
    oracle_url: str = ""
    timeout_seconds: float = 30.0


class ScheduleSettings(BaseSettings):
    """Cron schedules for sample collection and retention pruning.

    Cron expressions use the standard five-field crontab syntax, evaluated in UTC.
    """

    model_config = SettingsConfigDict(env_prefix="SCHEDULE_")

    enabled: bool = True
    collection_cron: str = "0 0 * * *"  # daily at midnight UTC
    retention_cron: str = "0 0 * * 0"  # weekly, Sunday midnight UTC
    retention_days: int = 365


class StorageSettings(BaseSettings):
    """SQLite sample store location."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/apr.db"


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 3000
    prefix: str = "/api"
    cors_origin: str = "*"


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    chain: ChainSettings = ChainSettings()
    prices: PriceFeedSettings = PriceFeedSettings()
    balances: BalanceFeedSettings = BalanceFeedSettings()
    schedule: ScheduleSettings = ScheduleSettings()
    storage: StorageSettings = StorageSettings()
    api: ApiSettings = ApiSettings()
