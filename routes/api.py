"""
API routes (transport and service endpoints).

Handles:
- /api/events           - Inbound event from the real-time transport
- /api/connection-lost  - Transport reports a dropped channel
- /api/test-order       - Create a test order on the order service
- /health               - Health check endpoint
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app, request

from modules.report_xml import build_test_order_markup
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/api/events", methods=["POST"])
def receive_event():
    """
    Apply one inbound event.

    Body: {"event": "<name>", "data": {...}}

    Discarded and ignored events still answer 200; "applied" tells them apart.
    """
    sync_service = current_app.config["SYNC_SERVICE"]
    body = request.get_json(silent=True)
    if not isinstance(body, dict) or not body.get("event"):
        return {"error": "Expected {\"event\": ..., \"data\": ...}"}, 400

    applied = sync_service.handle_event(str(body["event"]), body.get("data"))
    return {
        "applied": applied,
        "version": sync_service.store.version,
        "hasBaseline": sync_service.store.has_baseline,
    }


@api_bp.route("/api/connection-lost", methods=["POST"])
def connection_lost():
    sync_service = current_app.config["SYNC_SERVICE"]
    sync_service.connection_lost()
    return {"hasBaseline": sync_service.store.has_baseline}


@api_bp.route("/api/test-order", methods=["POST"])
def create_test_order():
    """
    Post a test measurement request to the order service.

    With legacy polling on, the list is refreshed right away instead of
    waiting for the next poll.
    """
    client = current_app.config["ORDER_CLIENT"]
    body = request.get_json(silent=True) or {}

    order_id = str(body.get("id") or f"TEST-{datetime.now(timezone.utc).strftime('%Y%m%d%H%M%S')}")
    markup = build_test_order_markup(order_id)
    client.post_markup(markup, order_id=order_id)
    logger.info(f"Test order {order_id} created")

    polling_service = current_app.config.get("POLLING_SERVICE")
    if polling_service is not None:
        polling_service.force_refresh()

    return {"id": order_id}, 201


@api_bp.route("/health", methods=["GET"])
def health():
    """
    Health check endpoint.

    Returns:
        JSON with station status and order service reachability
    """
    client = current_app.config["ORDER_CLIENT"]
    store = current_app.config["ORDER_STORE"]
    polling_service = current_app.config.get("POLLING_SERVICE")

    reachable, detail = client.health_check()

    return {
        "status": "healthy" if reachable else "degraded",
        "orderService": {"reachable": reachable, "detail": detail[:200]},
        "hasBaseline": store.has_baseline,
        "activeOrders": len(store.active),
        "archivedOrders": len(store.archived),
        "polling": polling_service.is_running if polling_service else False,
    }
