"""Configuration management for the Fortress ledger service.

Configuration is loaded from environment variables, one settings class
per concern with its own prefix.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Development-only key; refused outside local/test environments
DEFAULT_ENCRYPTION_KEY = "default-fallback-key-for-dev"


class AppEnvironment(str, Enum):
    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SettlementMode(str, Enum):
    SIMULATED = "simulated"
    HTTP = "http"


class AppConfig(BaseSettings):
    name: str = Field(default="fortress-transaction-ledger")
    env: AppEnvironment = Field(default=AppEnvironment.LOCAL)
    version: str = Field(default="0.1.0")
    debug: bool = Field(default=False)
    log_level: LogLevel = Field(default=LogLevel.INFO)

    model_config = SettingsConfigDict(env_prefix="APP_")

    @field_validator("env", mode="before")
    @classmethod
    def validate_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        if isinstance(v, AppEnvironment):
            return v
        return AppEnvironment(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        if isinstance(v, LogLevel):
            return v
        return LogLevel(v.upper())


class ServerConfig(BaseSettings):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    workers: int = Field(default=1)

    model_config = SettingsConfigDict(env_prefix="SERVER_")


class SecurityConfig(BaseSettings):
    encryption_key: SecretStr = Field(default=SecretStr(DEFAULT_ENCRYPTION_KEY))
    token_secret: SecretStr = Field(default=SecretStr("change-me-token-secret-min-32-chars!"))
    token_algorithms: str = Field(default="HS256")  # Comma-separated
    cors_allowed_origins: str = Field(default="http://localhost:3000,http://localhost:8000")
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: list[str] = Field(default=["GET", "POST", "PATCH"])
    cors_allow_headers: list[str] = Field(default=["Authorization", "Content-Type", "X-Request-ID"])

    model_config = SettingsConfigDict(env_prefix="SECURITY_")

    @field_validator("cors_allowed_origins", mode="after")
    @classmethod
    def validate_cors_allowed_origins(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated string into list of origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def token_algorithms_list(self) -> list[str]:
        """Parse token algorithms string into a list."""
        return [algo.strip() for algo in self.token_algorithms.split(",") if algo.strip()]


class FraudConfig(BaseSettings):
    large_transaction_threshold: Decimal = Field(default=Decimal("10000"))
    high_value_threshold: Decimal = Field(default=Decimal("1000"))
    rapid_window_seconds: float = Field(default=60.0, gt=0)
    # Submissions inside the window, the current one included, that trip the rule
    rapid_transaction_cap: int = Field(default=4, ge=1)
    deviation_multiplier: Decimal = Field(default=Decimal("5"))
    deviation_min_history: int = Field(default=3, ge=1)

    model_config = SettingsConfigDict(env_prefix="FRAUD_")


class SettlementConfig(BaseSettings):
    mode: SettlementMode = Field(default=SettlementMode.SIMULATED)
    timeout_seconds: float = Field(default=10.0, gt=0)
    base_url: str = Field(default="")
    api_key: SecretStr = Field(default=SecretStr(""))
    simulated_min_latency_seconds: float = Field(default=0.5, ge=0)
    simulated_max_latency_seconds: float = Field(default=1.5, ge=0)
    simulated_failure_rate: float = Field(default=0.05, ge=0, le=1)
    circuit_failure_threshold: int = Field(default=5, ge=1)
    circuit_reset_seconds: int = Field(default=60, ge=1)

    model_config = SettingsConfigDict(env_prefix="SETTLEMENT_")


class AuditConfig(BaseSettings):
    default_page_size: int = Field(default=100, ge=1)
    max_page_size: int = Field(default=500, ge=1)

    model_config = SettingsConfigDict(env_prefix="AUDIT_")


class PrincipalConfig(BaseSettings):
    # Comma-separated "wallet:role" pairs, e.g. "0xabc...:reviewer"
    preset_roles: str = Field(
        default=(
            "0x1234567890123456789012345678901234567890:reviewer,"
            "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd:auditor"
        )
    )

    model_config = SettingsConfigDict(env_prefix="PRINCIPAL_")

    @property
    def preset_roles_map(self) -> dict[str, str]:
        """Parse preset roles into a lower-cased wallet -> role mapping."""
        roles: dict[str, str] = {}
        for pair in self.preset_roles.split(","):
            wallet, sep, role = pair.strip().partition(":")
            if sep and wallet and role:
                roles[wallet.strip().lower()] = role.strip()
        return roles


class ObservabilityConfig(BaseSettings):
    service_name: str = Field(default="fortress-transaction-ledger")
    otlp_endpoint: str | None = Field(default=None)
    otlp_insecure: bool = Field(default=True)
    log_record_format: str = Field(default="json")

    model_config = SettingsConfigDict(env_prefix="OTEL_")


class Settings(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    fraud: FraudConfig = Field(default_factory=FraudConfig)
    settlement: SettlementConfig = Field(default_factory=SettlementConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    principals: PrincipalConfig = Field(default_factory=PrincipalConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    @model_validator(mode="after")
    def validate_security_settings(self) -> Settings:
        """Validate security settings after all configs are loaded."""
        # SECURITY: the development encryption key is never acceptable in prod
        if (
            self.app.env == AppEnvironment.PROD
            and self.security.encryption_key.get_secret_value() == DEFAULT_ENCRYPTION_KEY
        ):
            raise ValueError(
                "SECURITY_ENCRYPTION_KEY must be set outside local/test environments. "
                f"Current environment: {self.app.env.value}"
            )
        if self.settlement.mode == SettlementMode.HTTP and not self.settlement.base_url:
            raise ValueError("SETTLEMENT_BASE_URL is required when SETTLEMENT_MODE=http")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def reload_settings() -> Settings:
    """Reload settings (useful for testing)."""
    get_settings.cache_clear()
    return get_settings()
