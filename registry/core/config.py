"""Configuration management for the share registry service."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="Share Registry")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="sqlite+pysqlite:///./share_registry.db")

    default_page_size: int = Field(default=20)
    max_page_size: int = Field(default=100)

    aws_region: str = Field(default="ap-south-1")
    s3_endpoint_url: str | None = Field(default=None)
    audit_log_bucket: str | None = Field(default=None)
    audit_log_prefix: str = Field(default="audit/records")
    audit_log_sample_rate: float = Field(default=1.0)

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=False)
    otel_exporter_endpoint: str | None = Field(default=None)

    jwt_algorithm: str = Field(default="HS256")
    jwt_secret: str = Field(default="dev-secret-change")
    jwt_private_key: str | None = Field(default=None)
    access_token_expire_minutes: int = Field(default=60 * 24 * 7)

    password_hash_rounds: int = Field(default=12)
    generated_password_length: int = Field(default=12)

    smtp_host: str | None = Field(default=None)
    smtp_port: int = Field(default=587)
    smtp_user: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_from: str | None = Field(default=None)
    smtp_use_tls: bool = Field(default=True)
    smtp_timeout_seconds: float = Field(default=10.0)
    credentials_email_subject: str = Field(default="Your Share Registry account credentials")
    password_reset_email_subject: str = Field(default="Share Registry password reset")

    bootstrap_admin_username: str = Field(default="admin")
    bootstrap_admin_email: str = Field(default="admin@registry.local")
    bootstrap_admin_password: str = Field(default="changeme")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
