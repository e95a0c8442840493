"""Shared configuration management for the invoice link codec.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_APP_BASE_URL=https://invoices.example.com
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="invoice-link-codec",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Link generation
    app_base_url: str = Field(
        default="https://voidpay.xyz",
        description="Base URL that shareable invoice links are built on",
    )
    max_url_bytes: int = Field(
        default=2000,
        gt=0,
        description="Maximum UTF-8 byte length of a generated invoice URL",
    )

    # Binary codec
    text_compression_threshold: int = Field(
        default=100,
        ge=0,
        description=(
            "Text block size in bytes above which DEFLATE is attempted "
            "(shorter blocks never shrink enough to pay for the overhead)"
        ),
    )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
