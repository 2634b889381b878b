# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import os
import sys
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from dotenv import dotenv_values
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    url: str = Field("sqlite:///giftdrop.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")

    model_config = ConfigDict(validate_by_name=True)


class TelegramConfig(BaseModel):
    token: str = Field("", alias="TELEGRAM_TOKEN")
    username: str = Field("giftdrop_bot", alias="TELEGRAM_USERNAME")
    api_url: str = Field("https://api.telegram.org", alias="TELEGRAM_API_URL")
    webhook_secret: str = Field("", alias="SERVER_SECRET")
    server_url: str = Field("http://localhost:5000", alias="SERVER_URL")
    timeout: float = Field(30.0, ge=0.1, alias="TELEGRAM_TIMEOUT")

    model_config = ConfigDict(validate_by_name=True)


class CryptoPayConfig(BaseModel):
    token: str = Field("", alias="CRYPTOPAY_TOKEN")
    url: str = Field("https://pay.crypt.bot", alias="CRYPTOPAY_URL")
    timeout: float = Field(15.0, ge=0.1, alias="CRYPTOPAY_TIMEOUT")

    model_config = ConfigDict(validate_by_name=True)


class LedgerConfig(BaseModel):
    page_size: int = Field(24, ge=1, le=200, alias="PAGE_SIZE")
    leaderboard_size: int = Field(100, ge=1, alias="LEADERBOARD_SIZE")
    claim_code_length: int = Field(16, ge=12, le=64, alias="CLAIM_CODE_LENGTH")
    avatar_max_age: float = Field(1800.0, ge=1.0, alias="AVATAR_MAX_AGE")
    avatar_refresh_interval: float = Field(60.0, ge=1.0, alias="AVATAR_REFRESH_SECONDS")
    consistency_check_interval: float = Field(
        600.0, ge=1.0, alias="CONSISTENCY_CHECK_SECONDS"
    )

    model_config = ConfigDict(validate_by_name=True)


class ResilienceConfig(BaseModel):
    default_timeout: float = Field(15.0, ge=0.1, alias="RESILIENCE_TIMEOUT")
    max_retries: int = Field(3, ge=0, alias="RESILIENCE_RETRIES")
    backoff_base: float = Field(0.5, ge=0.1, alias="RESILIENCE_BACKOFF_BASE")
    backoff_cap: float = Field(8.0, ge=0.1, alias="RESILIENCE_BACKOFF_CAP")
    circuit_fail_threshold: int = Field(5, ge=1, alias="RESILIENCE_CIRCUIT_THRESHOLD")
    circuit_reset_timeout: float = Field(60.0, ge=1.0, alias="RESILIENCE_CIRCUIT_RESET")

    model_config = ConfigDict(validate_by_name=True)


class ObservabilityConfig(BaseModel):
    metrics_enabled: bool = Field(True, alias="METRICS_ENABLED")
    service_name: str = Field("giftdrop", alias="SERVICE_NAME")

    model_config = ConfigDict(validate_by_name=True)


class SecurityConfig(BaseModel):
    # CORS
    allowed_origins: list[str] = Field(["*"], alias="ALLOWED_ORIGINS")

    # Rate limiting
    enable_rate_limit: bool = Field(True, alias="ENABLE_RATE_LIMIT")
    rate_limit_requests: int = Field(10, alias="RL_LIMIT")
    rate_limit_window: float = Field(60.0, alias="RL_WINDOW")

    # HSTS
    enable_hsts: bool = Field(False, alias="ENABLE_HSTS")

    # Mini App initData may be empty in local development only
    dev_init_user_id: int | None = Field(None, alias="DEV_INIT_USER_ID")

    model_config = ConfigDict(validate_by_name=True)

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("enable_rate_limit", "enable_hsts", mode="before")
    @classmethod
    def _parse_bool(cls, value: str | bool) -> bool:
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)


def _environ() -> dict[str, str]:
    # Groups are plain models, so they read the process env (over .env) directly.
    values = {key: value for key, value in dotenv_values(".env").items() if value is not None}
    values.update(os.environ)
    return values


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig.model_validate(_environ())


def _telegram_config_factory() -> TelegramConfig:
    return TelegramConfig.model_validate(_environ())


def _cryptopay_config_factory() -> CryptoPayConfig:
    return CryptoPayConfig.model_validate(_environ())


def _ledger_config_factory() -> LedgerConfig:
    return LedgerConfig.model_validate(_environ())


def _resilience_config_factory() -> ResilienceConfig:
    return ResilienceConfig.model_validate(_environ())


def _observability_config_factory() -> ObservabilityConfig:
    return ObservabilityConfig.model_validate(_environ())


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig.model_validate(_environ())


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    secret_key: str = Field("dev", alias="SECRET_KEY")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")

    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    telegram: TelegramConfig = Field(default_factory=_telegram_config_factory)
    cryptopay: CryptoPayConfig = Field(default_factory=_cryptopay_config_factory)
    ledger: LedgerConfig = Field(default_factory=_ledger_config_factory)
    resilience: ResilienceConfig = Field(default_factory=_resilience_config_factory)
    observability: ObservabilityConfig = Field(default_factory=_observability_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        validate_assignment=True,
        extra="ignore",
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        errors = []
        if self.secret_key in ("dev", "development", "test", ""):
            errors.append("SECRET_KEY must be a strong random value")
        if not self.telegram.token:
            errors.append("TELEGRAM_TOKEN is required")
        if not self.telegram.webhook_secret:
            errors.append("SERVER_SECRET is required to guard the Telegram webhook")
        if not self.cryptopay.token:
            errors.append("CRYPTOPAY_TOKEN is required")
        if errors:
            print("\n❌ CRITICAL CONFIGURATION ERROR in production:", file=sys.stderr)
            for error in errors:
                print(f"   {error}", file=sys.stderr)
            sys.exit(1)

        warnings = []
        if self.security.dev_init_user_id is not None:
            warnings.append("⚠️  DEV_INIT_USER_ID is ignored in production")
        if "*" in self.security.allowed_origins:
            warnings.append("⚠️  CORS allows wildcard (*) origins")
        if not self.security.enable_hsts:
            warnings.append("⚠️  HSTS is DISABLED (recommended for HTTPS)")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()


__all__ = ["AppConfig", "load_config"]
