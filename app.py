"""
MeasureStation - Flask Application Entry Point.

This is a slim app factory that:
1. Builds the order store and the inbound event dispatcher
2. Creates the measurement session and the submission service
3. Starts legacy order polling (optional, separate thread)
4. Registers route blueprints
5. Sets up JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling (session, events, submissions)
    └── Cleanup on shutdown (stop polling)

    Poll Thread (background, LEGACY_POLLING only)
    └── 5-second /api/orders loop with OWN API client

The order store is the only shared state; it swaps immutable snapshots
under its own lock.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from flask import Flask

from logging_config import setup_logging, get_logger
from core.api_client import OrderServiceClient
from core.channel import LegacyHTTPChannel, OutboundChannel
from core.exceptions import (
    MalformedMarkupError,
    ServiceUnavailableError,
    SessionStateError,
    SubmissionRejectedError,
    UnknownOrderError,
)
from modules.i18n import translate
from services.order_store import OrderStore
from services.polling_service import PollingSyncService
from services.roster import InMemoryRosterStore, JsonFileRosterStore, RosterStore, SignerRoster
from services.session import MeasurementSession
from services.submission import SubmissionService
from services.sync_service import EventSyncService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In PyInstaller bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def create_app(
    config_object: Union[str, type] = "config.Config",
    channel: Optional[OutboundChannel] = None,
    order_client: Optional[OrderServiceClient] = None,
    roster_store: Optional[RosterStore] = None
) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Config class or its import path
        channel: Outbound channel (the real-time transport's CallbackChannel);
            defaults to posting to the legacy order service
        order_client: Legacy order service client (built from config if None)
        roster_store: Signer roster storage (JSON file or in-memory from config if None)

    Returns:
        Configured Flask application
    """
    # Load .env from base path (next to executable in production)
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(log_level=log_level, enable_file_logging=enable_file_logging)

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting MeasureStation in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # ORDER STATE
    # =========================================================================

    store = OrderStore()
    sync_service = EventSyncService(store)
    app.config["ORDER_STORE"] = store
    app.config["SYNC_SERVICE"] = sync_service

    base_url = app.config["ORDER_SERVICE_URL"]
    timeout = app.config.get("ORDER_SERVICE_TIMEOUT", 10.0)

    if order_client is None:
        order_client = OrderServiceClient(base_url, timeout=timeout)
    app.config["ORDER_CLIENT"] = order_client

    # =========================================================================
    # SESSION AND SUBMISSION
    # =========================================================================

    if roster_store is None:
        roster_file = app.config.get("ROSTER_FILE")
        roster_store = JsonFileRosterStore(Path(roster_file)) if roster_file else InMemoryRosterStore()
    roster = SignerRoster(roster_store, app.config.get("DEFAULT_SIGNERS", []))
    app.config["SIGNER_ROSTER"] = roster

    if channel is None:
        channel = LegacyHTTPChannel(order_client, send_report=app.config.get("LEGACY_SEND_REPORT", False))
    logger.info(f"Outbound channel: {type(channel).__name__}")

    app.config["MEASUREMENT_SESSION"] = MeasurementSession()
    app.config["SUBMISSION_SERVICE"] = SubmissionService(store, channel, roster)

    # =========================================================================
    # LEGACY POLLING (optional)
    # =========================================================================

    polling_service = None
    if app.config.get("LEGACY_POLLING"):
        # The poll thread gets its own client
        polling_service = PollingSyncService(
            sync_service,
            client_factory=lambda: OrderServiceClient(base_url, timeout=timeout),
            poll_interval_seconds=app.config.get("POLL_INTERVAL_SECONDS", 5.0),
        )
        polling_service.start()
        logger.info("Legacy order polling started")
    app.config["POLLING_SERVICE"] = polling_service

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    # Only the poll thread needs stopping; apps without one register nothing
    if polling_service is not None:
        def cleanup():
            """Cleanup on application shutdown."""
            logger.info("Shutting down...")
            polling_service.stop()
            logger.info("Shutdown complete")

        atexit.register(cleanup)

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    lang = app.config.get("STATION_LANGUAGE", "sv")

    @app.errorhandler(SessionStateError)
    def handle_session_state(e):
        logger.warning(e.message)
        return {"error": e.message, "details": e.details}, 409

    @app.errorhandler(UnknownOrderError)
    def handle_unknown_order(e):
        return {"error": e.message, "details": e.details}, 404

    @app.errorhandler(MalformedMarkupError)
    def handle_malformed_markup(e):
        return {"error": e.message, "details": e.details}, 400

    @app.errorhandler(SubmissionRejectedError)
    def handle_submission_rejected(e):
        return {
            "error": translate("submit.failed", lang, reason=e.message),
            "details": e.details,
            "retryable": True,
        }, 502

    @app.errorhandler(ServiceUnavailableError)
    def handle_service_unavailable(e):
        return {
            "error": translate("connection.failed", lang),
            "details": e.details,
        }, 503

    @app.errorhandler(404)
    def handle_not_found(e):
        return {"error": "Not found"}, 404

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        return {"error": "An unexpected error occurred"}, 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    # The reloader would start a second poll thread
    app.run(debug=debug_mode, use_reloader=False)
