"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from storefront_mail.constants import DeliveryMode


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = "development"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_secret_key: str = "your-secret-key-change-in-production"
    api_algorithm: str = "HS256"
    slow_request_threshold_ms: float = 1000.0

    # SMTP (primary tier)
    email_host: str = "smtp.gmail.com"
    email_port: int = 587
    email_user: str | None = None
    email_pass: str | None = None
    email_from: str = "noreply@example.com"
    email_connection_timeout_seconds: float = 30.0
    email_greeting_timeout_seconds: float = 15.0
    email_socket_timeout_seconds: float = 30.0
    email_verify_timeout_seconds: float = 15.0

    # SMTP (fallback tier)
    email_fallback_port: int = 465
    email_fallback_connection_timeout_seconds: float = 15.0
    email_fallback_greeting_timeout_seconds: float = 10.0
    email_fallback_socket_timeout_seconds: float = 15.0

    # Pin the delivery mode instead of probing the tiers at startup
    email_delivery_mode: DeliveryMode | None = None

    # Notifications
    admin_notification_email: str = "admin@example.com"
    store_name: str = "Storefront"
    admin_dashboard_url: str = "http://localhost:3000/admin"
    currency_symbol: str = "₹"

    # Task queue
    queue_max_concurrent: int = 3
    queue_default_max_retries: int = 3
    queue_default_retry_delay_ms: int = 10_000

    # Attempt log
    email_log_file: Path = Path("logs/email-logs.json")
    email_log_memory_capacity: int = 100
    email_log_durable_capacity: int = 500

    # Observability
    otel_exporter_otlp_endpoint: str | None = None
    otel_service_name: str = "storefront-mail"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def smtp_configured(self) -> bool:
        """Whether enough SMTP settings are present to attempt a real login."""
        return bool(self.email_host and self.email_user and self.email_pass)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
