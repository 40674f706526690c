"""
Main routes.

The station front-end starts on the active order list.
"""

from flask import Blueprint, redirect, url_for

main_bp = Blueprint("main", __name__)


@main_bp.route("/")
def index():
    """Redirect root to the active order list."""
    return redirect(url_for("orders.list_orders"))
