"""
Centralized configuration for the railway reservation service.

Uses Pydantic BaseSettings for validated, typed configuration from environment variables.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings can be overridden via environment variables prefixed with RAILBOOK_.
    """

    model_config = SettingsConfigDict(
        env_prefix="RAILBOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # =========================================================================
    # Storage
    # =========================================================================

    storage_dir: Path = Field(
        default=Path(".railbook"),
        description="Directory holding the persisted key-value blobs"
    )
    session_key: str = Field(
        default="railway_user",
        description="Blob key for the logged-in user"
    )
    bookings_key: str = Field(
        default="railway_bookings",
        description="Blob key for the booking list"
    )

    # =========================================================================
    # Simulated latency
    # =========================================================================

    auth_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        le=60,
        description="Simulated delay for login and register"
    )
    search_delay_seconds: float = Field(
        default=1.5,
        ge=0,
        le=60,
        description="Simulated delay for train search"
    )
    payment_delay_seconds: float = Field(
        default=3.0,
        ge=0,
        le=60,
        description="Simulated payment processing delay"
    )

    # =========================================================================
    # Booking
    # =========================================================================

    max_passengers: int = Field(
        default=6,
        ge=1,
        le=6,
        description="Maximum passengers on a single booking"
    )

    # =========================================================================
    # Logging
    # =========================================================================

    log_level: str = Field(
        default="INFO",
        description="Application log level"
    )
    log_file: Optional[Path] = Field(
        default=None,
        description="Optional log file path"
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def simulates_latency(self) -> bool:
        """Check if any simulated delay is active."""
        return any((
            self.auth_delay_seconds,
            self.search_delay_seconds,
            self.payment_delay_seconds,
        ))

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_config(self) -> tuple[bool, list[str]]:
        """
        Validate configuration and return warnings.

        Returns:
            Tuple of (is_valid, list_of_warnings)
        """
        warnings = []

        if not self.simulates_latency:
            warnings.append(
                "All simulated delays are zero - login, search and payment "
                "complete instantly."
            )

        if self.storage_dir.exists() and not os.access(self.storage_dir, os.W_OK):
            warnings.append(
                f"Storage directory {self.storage_dir} is not writable. "
                "Bookings and sessions will not persist."
            )

        return len(warnings) == 0, warnings

    def print_config_summary(self) -> None:
        """Print configuration summary to console."""
        print("=" * 60)
        print("  CONFIGURATION")
        print("=" * 60)
        print()
        print(f"Storage Directory:  {self.storage_dir}")
        print(f"Max Passengers:     {self.max_passengers}")
        print(f"Log Level:          {self.log_level}")
        print()
        print("Simulated Delays:")
        print(f"  Login/Register: {self.auth_delay_seconds}s")
        print(f"  Search:         {self.search_delay_seconds}s")
        print(f"  Payment:        {self.payment_delay_seconds}s")
        print()

        is_valid, warnings = self.validate_config()
        if warnings:
            print("Warnings:")
            for warning in warnings:
                print(f"  - {warning}")
            print()

        print("=" * 60)


@lru_cache()
def get_config() -> AppConfig:
    """
    Get the application configuration (cached singleton).

    Returns:
        AppConfig instance
    """
    return AppConfig()


def reset_config() -> None:
    """Reset the cached configuration (useful for testing)."""
    get_config.cache_clear()
