"""Configuration management for the Willys client.

Provides centralized configuration loading from config.toml with type-safe
access via Pydantic models. Secrets (account credentials) are never read from
the config file, only from the environment.
"""

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Pydantic Configuration Models
# =============================================================================


class AppConfig(BaseModel):
    """Application-level configuration."""

    name: str = "willys-agent"
    base_url: str = "https://www.willys.se"


class HTTPConfig(BaseModel):
    """HTTP transport settings shared by every API call."""

    timeout: float = 30.0
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    accept_language: str = "sv-SE,sv;q=0.9,en;q=0.8"
    max_connections: int = 100
    max_keepalive_connections: int = 10
    keepalive_expiry: float = 90.0


class AuthConfig(BaseModel):
    """Re-authentication limits and credential rules."""

    max_auth_retry_attempts: int = 2
    min_password_length: int = 6


class BrowserTimingConfig(BaseModel):
    """Settle delays (seconds) for the login page.

    The page doesn't reliably signal when elements are ready, so each step
    waits a fixed amount after acting.
    """

    page_settle: float = 2.0
    consent_settle: float = 0.5
    dialog_settle: float = 1.0
    form_settle: float = 0.5
    login_response: float = 2.0


class BrowserConfig(BaseModel):
    """Headless browser settings used only during session bootstrap."""

    headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    launch_args: list[str] = Field(
        default_factory=lambda: [
            "--disable-blink-features=AutomationControlled",
            "--disable-dev-shm-usage",
            "--no-sandbox",
        ]
    )
    page_timeout: int = 30000
    element_timeout: int = 5000
    consent_timeout: int = 3000
    consent_button_text: str = "Acceptera"
    login_link_text: str = "Logga in"
    login_button_pattern: str = "^Logga in$"
    error_class_markers: list[str] = Field(default_factory=lambda: ["error", "Error"])
    timing: BrowserTimingConfig = Field(default_factory=BrowserTimingConfig)


class RankingConfig(BaseModel):
    """Weights for the best_value score."""

    quality_labels: list[str] = Field(
        default_factory=lambda: ["krav", "ekologisk", "nyckelhål", "svensk"]
    )
    quality_bonus: float = 10.0
    savings_weight: float = 0.5
    value_numerator: float = 100.0


class DeliveryConfig(BaseModel):
    """Home delivery defaults."""

    default_picking_fee: float = 59.0
    max_days_ahead: int = 14
    timezone: str = "Europe/Stockholm"


class Config(BaseModel):
    """Root configuration model."""

    app: AppConfig = Field(default_factory=AppConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)


# =============================================================================
# Configuration Loading
# =============================================================================


def _find_config_file() -> Optional[Path]:
    """Find config.toml in standard locations."""
    search_paths = [
        Path.cwd() / "config.toml",  # Current working directory
        Path(__file__).parent.parent.parent / "config.toml",  # Project root
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None


@lru_cache(maxsize=1)
def load_config() -> Config:
    """Load configuration from config.toml.

    Uses lru_cache to ensure config is only loaded once per process.

    Returns:
        Config instance with all settings
    """
    config_path = _find_config_file()

    if config_path:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        return Config.model_validate(data)

    # Return defaults if no config file found
    return Config()


def get_base_url(config: Optional[Config] = None) -> str:
    """Resolve the shop base URL, letting WILLYS_BASE_URL override config."""
    if config is None:
        config = load_config()
    return os.environ.get("WILLYS_BASE_URL") or config.app.base_url


# =============================================================================
# Convenience Functions
# =============================================================================


def get_config() -> Config:
    """Get the loaded configuration (alias for load_config)."""
    return load_config()
