"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes:
    - DEVELOPMENT: Uses the in-memory mock sheet service (no network needed)
    - PRODUCTION: Talks to the deployed spreadsheet web app over HTTP

The ENV_MODE variable controls which RPC client is instantiated for the
storefront and the admin dashboard.

Usage:
    from barf_malai.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Use the mock sheet
    else:
        # Use the Apps Script endpoint

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from typing import Optional
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing against the mock sheet service
        PRODUCTION: Live spreadsheet web app
        STAGING: Spreadsheet web app deployed from a test sheet
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        # Remote service
        sheet_url: Storefront web app endpoint
        admin_sheet_url: Admin web app endpoint
        storefront_rpc_timeout: Seconds before a storefront call gives up
        admin_rpc_timeout: Seconds before an admin call gives up

        # Local storage
        data_directory: Directory holding the local storage file
        menu_cache_ttl_ms: Age after which the cached menu is ignored

        # Images
        imgbb_api_key: API key for the third-party image API
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Barf Malai Ordering",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8001,
        description="API server port"
    )

    # ==========================================================================
    # REMOTE SHEET SERVICE
    # ==========================================================================

    sheet_url: str = Field(
        default=(
            "https://script.google.com/macros/s/AKfycbyIu_y5diXbxH2-5v8aosjaTjlLvxE_"
            "O8iLR-htUKVJwHybAyeaCMqTm1yQdFbY1AsItQ/exec"
        ),
        description="Storefront Apps Script endpoint"
    )
    admin_sheet_url: str = Field(
        default=(
            "https://script.google.com/macros/s/AKfycbwRG4W_4Jk1Jj_dyIHqWQgLphUL_"
            "KqcZJKZyuI1o_mB4XBRVIiOhqipqADrShUtL94lHg/exec"
        ),
        description="Admin Apps Script endpoint"
    )
    storefront_rpc_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Storefront request timeout in seconds"
    )
    admin_rpc_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Admin request timeout in seconds"
    )

    # ==========================================================================
    # MOCK SHEET (development)
    # ==========================================================================

    mock_admin_password: str = Field(
        default="admin123",
        description="Password accepted by the mock sheet"
    )
    mock_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability of a simulated network failure"
    )
    mock_min_latency: float = Field(
        default=0.05,
        ge=0.0,
        description="Minimum simulated response time in seconds"
    )
    mock_max_latency: float = Field(
        default=0.2,
        ge=0.0,
        description="Maximum simulated response time in seconds"
    )

    # ==========================================================================
    # LOCAL STORAGE
    # ==========================================================================

    data_directory: str = Field(
        default="data",
        description="Directory for data files"
    )
    storage_filename: str = Field(
        default="local_storage.json",
        description="Local storage file name"
    )
    storage_quota_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Maximum size of the local storage file"
    )
    storage_lock_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the storage file lock"
    )
    menu_cache_ttl_ms: int = Field(
        default=15 * 60 * 1000,
        gt=0,
        description="Menu cache time-to-live in milliseconds"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    restaurant_name: str = Field(
        default="Barf Malai",
        description="Restaurant display name"
    )
    restaurant_tagline: str = Field(
        default="Ice Cream Parlor",
        description="Subtitle printed on bills"
    )
    currency_symbol: str = Field(
        default="₹",
        description="Currency symbol used in views and bills"
    )

    # ==========================================================================
    # IMAGE UPLOADS
    # ==========================================================================

    image_host_url: str = Field(
        default="https://catbox.moe/user/api.php",
        description="File host upload endpoint"
    )
    image_host_max_bytes: int = Field(
        default=200 * 1024 * 1024,
        description="File host size limit"
    )
    imgbb_api_key: Optional[str] = Field(
        default=None,
        description="imgbb API key"
    )
    imgbb_upload_url: str = Field(
        default="https://api.imgbb.com/1/upload",
        description="imgbb upload endpoint"
    )
    imgbb_max_bytes: int = Field(
        default=32 * 1024 * 1024,
        description="imgbb size limit"
    )
    data_url_max_chars: int = Field(
        default=50_000,
        description="Longest data URL that fits in one sheet cell"
    )
    image_upload_timeout: float = Field(
        default=60.0,
        description="Image upload timeout in seconds"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def use_real_services(self) -> bool:
        """Check if the remote sheet service should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def storage_path(self) -> Path:
        """Full path of the local storage file."""
        return Path(self.data_directory) / self.storage_filename

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if not self.sheet_url:
                missing.append("SHEET_URL")
            if not self.admin_sheet_url:
                missing.append("ADMIN_SHEET_URL")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.env_mode)
        EnvironmentMode.DEVELOPMENT
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("filelock").setLevel(logging.WARNING)

    return logging.getLogger("barf_malai")
