"""
Configuration module for the CRT Reports dashboard.
Handles environment variables and application settings.
"""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load .env from current working directory
load_dotenv()


class Config:
    """Application configuration class."""

    # Flask Configuration
    SECRET_KEY: str = os.getenv("SECRET_KEY", os.urandom(32).hex())
    RELOAD: bool = os.getenv("RELOAD", "False").lower() == "true"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = int(os.getenv("PORT", "5000"))

    # Upstream legacy results service
    UPSTREAM_BASE_URL: Optional[str] = os.getenv("UPSTREAM_BASE_URL")
    UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30"))

    # Report client
    DASHBOARD_API_URL: str = os.getenv("DASHBOARD_API_URL", "http://127.0.0.1:5000/api")
    DASHBOARD_API_TIMEOUT_SECONDS: float = float(os.getenv("DASHBOARD_API_TIMEOUT_SECONDS", "60"))
    CLIENT_STORAGE_PATH: str = os.getenv(
        "CLIENT_STORAGE_PATH", str(Path.home() / ".crt_reports" / "storage.json")
    )
    EXPORT_DIR: str = os.getenv("EXPORT_DIR", "exports")
    FANOUT_MAX_WORKERS: int = int(os.getenv("FANOUT_MAX_WORKERS", "8"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "True").lower() == "true"

    @staticmethod
    def upstream_base_url() -> str:
        """Upstream base URL with exactly one trailing slash."""
        base = (Config.UPSTREAM_BASE_URL or "").strip()
        return base.rstrip("/") + "/"

    @staticmethod
    def validate() -> None:
        """Validate configuration settings."""
        required_vars = [
            ("UPSTREAM_BASE_URL", Config.UPSTREAM_BASE_URL),
        ]

        missing_vars = [var_name for var_name, var_value in required_vars if not var_value]
        if missing_vars:
            raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")

        if not Config.UPSTREAM_BASE_URL.startswith(("http://", "https://")):
            raise ValueError("UPSTREAM_BASE_URL must be an http(s) URL")

        if Config.UPSTREAM_TIMEOUT_SECONDS <= 0:
            raise ValueError("UPSTREAM_TIMEOUT_SECONDS must be positive")

        if Config.FANOUT_MAX_WORKERS < 1:
            raise ValueError("FANOUT_MAX_WORKERS must be at least 1")

        if Config.PORT < 1 or Config.PORT > 65535:
            raise ValueError("PORT must be between 1 and 65535")
