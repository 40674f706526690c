"""
Order routes.

Handles:
- /orders                  - Active or archived order list
- /orders/<id>             - One order with its normalized definitions
- /orders/<id>/delete      - Ask the service to delete an order
- /drawings                - Drawing number -> article index
"""

from flask import Blueprint, current_app, request

from core.exceptions import UnknownOrderError
from services.session import TAB_ACTIVE, TAB_ARCHIVED, TABS
from logging_config import get_logger
from .views import order_detail, order_summary


# Module logger
logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__)


@orders_bp.route("/orders", methods=["GET"])
def list_orders():
    """
    List orders of one tab.

    Query:
        tab: "active" (default) or "archived"
    """
    store = current_app.config["ORDER_STORE"]
    tab = request.args.get("tab", TAB_ACTIVE)

    if tab not in TABS:
        return {"error": f"Unknown tab '{tab}'", "tabs": list(TABS)}, 400

    orders = store.active if tab == TAB_ACTIVE else store.archived
    return {
        "tab": tab,
        "orders": [order_summary(order) for order in orders],
        "hasBaseline": store.has_baseline,
        "version": store.version,
    }


@orders_bp.route("/orders/<order_id>", methods=["GET"])
def get_order(order_id: str):
    store = current_app.config["ORDER_STORE"]
    order = store.get_active(order_id) or store.get_archived(order_id)
    if order is None:
        raise UnknownOrderError(order_id)
    return order_detail(order)


@orders_bp.route("/orders/<order_id>/delete", methods=["POST"])
def delete_order(order_id: str):
    """
    Request deletion of an order.

    The list changes when the service answers with `order_deleted`.
    """
    submission_service = current_app.config["SUBMISSION_SERVICE"]
    submission_service.delete_order(order_id)
    return {"status": "requested", "id": order_id}, 202


@orders_bp.route("/drawings", methods=["GET"])
def drawings():
    store = current_app.config["ORDER_STORE"]
    return {
        "drawings": dict(store.drawing_index),
        "tabs": [TAB_ACTIVE, TAB_ARCHIVED],
    }
