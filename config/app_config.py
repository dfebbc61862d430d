"""
Unified Configuration System for the Event Portal

This module provides a centralized configuration system that consolidates all application settings,
supports environment-based overrides, and provides type-safe configuration access.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import streamlit as st
import os
from pathlib import Path


DEFAULT_API_BASE_URL = "http://localhost:5004/api"
TOKEN_STORAGE_MODES = ("cookie", "session", "file")


@dataclass
class APIConfig:
    """Backend API configuration settings"""
    base_url: str = DEFAULT_API_BASE_URL
    files_path: str = "/files"

    @classmethod
    def from_secrets(cls) -> 'APIConfig':
        """Load API config from Streamlit secrets"""
        # In test environment, prefer environment variables
        if os.getenv("PYTEST_CURRENT_TEST") is not None:
            return cls(base_url=os.getenv("EVENT_API_BASE_URL", DEFAULT_API_BASE_URL))

        try:
            return cls(base_url=st.secrets.get("EVENT_API_BASE_URL", DEFAULT_API_BASE_URL))
        except Exception:
            # Fallback to environment variables if secrets not available
            return cls(base_url=os.getenv("EVENT_API_BASE_URL", DEFAULT_API_BASE_URL))

    def file_url(self, file_id: str) -> str:
        """URL of a file stored by the backend (e.g. an uploaded QR code)"""
        return f"{self.base_url.rstrip('/')}{self.files_path}/{file_id}"


@dataclass
class AuthConfig:
    """Authentication and credential storage configuration"""
    # "cookie": browser cookie, survives reloads; "session": this browser session only;
    # "file": token_store_path, for single-user local runs
    token_storage: str = "cookie"
    token_storage_key: str = "token"
    token_store_path: str = ".event_portal/credentials.json"
    cookie_max_age_days: int = 7
    default_signup_role: str = "user"


@dataclass
class SearchConfig:
    """Event search configuration"""
    debounce_seconds: float = 0.3
    wait_timeout_seconds: float = 10.0


@dataclass
class UploadConfig:
    """File upload constraints"""
    max_screenshot_mb: int = 5
    # Extensions offered by image uploaders; the MIME type is still checked on selection
    image_types: List[str] = field(default_factory=lambda: ["png", "jpg", "jpeg", "gif", "webp"])

    @property
    def max_screenshot_bytes(self) -> int:
        return self.max_screenshot_mb * 1024 * 1024


@dataclass
class UIConfig:
    """User interface configuration"""
    app_title: str = "🎟️ Event Portal"
    tagline: str = "Create events, share them, and manage registrations"
    currency_symbol: str = "₹"

    admin_navigation: List[Dict[str, str]] = field(default_factory=lambda: [
        {"path": "/admin", "label": "📊 Dashboard"},
        {"path": "/admin/events", "label": "🗂️ Manage Events"},
        {"path": "/admin/create-event", "label": "➕ Create Event"},
        {"path": "/admin/messages", "label": "✉️ Send Messages"},
    ])

    user_navigation: List[Dict[str, str]] = field(default_factory=lambda: [
        {"path": "/dashboard", "label": "🏠 Dashboard"},
        {"path": "/dashboard/browse-events", "label": "🔍 Browse Events"},
        {"path": "/dashboard/registrations", "label": "🎫 My Registrations"},
    ])


@dataclass
class LoggingConfig:
    """Logging and monitoring configuration"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = True
    log_file: str = "logs/app.log"


@dataclass
class AppConfig:
    """Main application configuration"""
    api: APIConfig = field(default_factory=APIConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    uploads: UploadConfig = field(default_factory=UploadConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Environment settings
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    @classmethod
    def load(cls) -> 'AppConfig':
        """Load configuration with environment overrides"""
        config = cls()

        # Load API configuration from secrets/environment
        config.api = APIConfig.from_secrets()

        # Apply environment-specific overrides
        if config.environment == "production":
            config.debug = False
            config.logging.level = "WARNING"
        elif config.environment == "development":
            config.debug = True
            config.logging.level = "DEBUG"

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors"""
        errors = []

        if not self.api.base_url:
            errors.append("Backend base URL is required")
        elif not self.api.base_url.startswith(("http://", "https://")):
            errors.append(f"Backend base URL must be http(s): {self.api.base_url}")

        if self.auth.token_storage not in TOKEN_STORAGE_MODES:
            errors.append(f"Unknown token storage: {self.auth.token_storage}")

        if not self.auth.token_storage_key:
            errors.append("Token storage key must not be empty")

        if self.search.debounce_seconds < 0:
            errors.append("Search debounce delay cannot be negative")

        if self.logging.enable_file_logging:
            log_dir = Path(self.logging.log_file).parent
            if not log_dir.exists():
                log_dir.mkdir(parents=True, exist_ok=True)

        return errors


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        from config.environments import get_environment_config
        _config = get_environment_config()
        _config.api = APIConfig.from_secrets()

        # Validate configuration
        errors = _config.validate()
        if errors:
            import warnings
            for error in errors:
                warnings.warn(f"Configuration error: {error}")

    return _config


def reload_config() -> AppConfig:
    """Reload configuration (useful for testing)"""
    global _config
    _config = None
    return get_config()
