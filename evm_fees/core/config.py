# /evm_fees/core/config.py
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # RPC endpoint used by Web3RpcTransport when no URL is passed explicitly
    RPC_URL: SecretStr | None = None
    RPC_TIMEOUT_SECONDS: float = 10.0
    # 1 means no retries; the engine itself never re-attempts a failed call
    RPC_MAX_ATTEMPTS: int = 1

    # Estimation tuning
    QUICK_SAMPLE_BLOCKS: int = 8
    QUICK_SAMPLE_PERCENTILE: int = 50
    DEFAULT_PRIORITY_FEE_WEI: int = 1_000_000_000
    ESTIMATION_PRESET: str = "adaptive"

    # Operational Settings
    LOG_LEVEL: str = "INFO"
    # Host applications that own structlog/Sentry set this to false
    CONFIGURE_LOGGING: bool = True
    SENTRY_DSN: SecretStr | None = None

    model_config = SettingsConfigDict(
        env_prefix="EVM_FEES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def rpc_url(self) -> str | None:
        """Plain-text RPC URL, or ``None`` when not configured."""
        if self.RPC_URL is None:
            return None
        return self.RPC_URL.get_secret_value()


try:
    settings = Settings()
except Exception as e:
    # Late import to avoid circular dependency only for logging the failure
    try:
        from evm_fees.core.logger import get_logger
        get_logger("evm_fees.config").critical("FAILED_TO_LOAD_SETTINGS", error=str(e))
    except Exception:
        print("FAILED_TO_LOAD_SETTINGS", e)
    raise SystemExit(1)
