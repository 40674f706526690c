"""
Configuration for MeasureStation.

Values come from the environment (and a .env file next to the app).
Legacy polling is off by default; the real-time channel collaborator feeds
events through /api/events instead.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env early so the Config class sees the values
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    TESTING = False

    # ==========================================================================
    # Order service (legacy request/response surface)
    # ==========================================================================
    # ORDER_SERVICE_URL: base URL serving /api/orders, /api/parse, /api/generate
    # ORDER_SERVICE_TIMEOUT: seconds per HTTP request
    # LEGACY_POLLING: "1" polls /api/orders instead of waiting for events
    # LEGACY_SEND_REPORT: "1" also posts the XML report to /api/parse after a card
    # POLL_INTERVAL_SECONDS: poll period (the handheld client used 5 s)
    # ==========================================================================
    ORDER_SERVICE_URL = os.environ.get("ORDER_SERVICE_URL", "http://localhost:8000")
    ORDER_SERVICE_TIMEOUT = float(os.environ.get("ORDER_SERVICE_TIMEOUT", "10"))
    LEGACY_POLLING = os.environ.get("LEGACY_POLLING", "0") == "1"
    LEGACY_SEND_REPORT = os.environ.get("LEGACY_SEND_REPORT", "0") == "1"
    POLL_INTERVAL_SECONDS = float(os.environ.get("POLL_INTERVAL_SECONDS", "5"))

    # Signer roster
    ROSTER_FILE = os.environ.get("ROSTER_FILE", str(BASE_DIR / "data" / "signers.json"))
    DEFAULT_SIGNERS = [
        name.strip()
        for name in os.environ.get("DEFAULT_SIGNERS", "NJA,DN,AS,Kalle").split(",")
        if name.strip()
    ]

    # Label language ("sv" or "en")
    STATION_LANGUAGE = os.environ.get("STATION_LANGUAGE", "sv")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    LEGACY_POLLING = False
    ROSTER_FILE = ""
