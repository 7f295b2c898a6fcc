"""
Storefront configuration and settings management.
"""
import os
from typing import Optional


class Config:
    """Application configuration."""

    # Backend REST API
    MARKET_API_URL: str = os.getenv("MARKET_API_URL", "http://localhost:8080/api")
    REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "10"))

    # Catalog (category tree + form schemas); bundled defaults when unset
    CATALOG_CONFIG: Optional[str] = os.getenv("CATALOG_CONFIG") or None

    # App settings
    API_TITLE: str = "Marketplace Storefront"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Browse and listing-form front end driven by category schemas"

    # CORS settings
    CORS_ORIGINS: list = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list = ["*"]
    CORS_ALLOW_HEADERS: list = ["*"]

    # Browse defaults
    PAGE_SIZE: int = int(os.getenv("PAGE_SIZE", "24"))
    DEFAULT_RADIUS_KM: float = float(os.getenv("DEFAULT_RADIUS_KM", "25"))
    MAX_SESSIONS: int = int(os.getenv("MAX_SESSIONS", "1000"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[str] = os.getenv("LOG_FILE", "storefront.log") or None

    def validate(self) -> None:
        """Validate configuration on startup."""
        if self.CATALOG_CONFIG and not os.path.exists(self.CATALOG_CONFIG):
            raise FileNotFoundError(f"Catalog config not found: {self.CATALOG_CONFIG}")
        if self.PAGE_SIZE < 1:
            raise ValueError(f"PAGE_SIZE must be positive, got {self.PAGE_SIZE}")
        if self.MAX_SESSIONS < 1:
            raise ValueError(f"MAX_SESSIONS must be positive, got {self.MAX_SESSIONS}")
        if not self.MARKET_API_URL:
            raise ValueError("MARKET_API_URL not configured")


# Global config instance
config = Config()
