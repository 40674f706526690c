"""
Flask route blueprints for MeasureStation.

This module contains all route handlers organized by functionality:
- main: Root redirect
- orders: Order lists, order detail, drawing index, delete requests
- measure: Measurement session and signer roster
- api: Transport events, test orders, health check

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .orders import orders_bp
from .measure import measure_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "orders_bp",
    "measure_bp",
    "api_bp",
    "register_blueprints",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(measure_bp)
    app.register_blueprint(api_bp)
