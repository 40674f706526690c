"""
Shared test fixtures.
"""

import logging

import pytest

from logging_config import APP_NAMESPACE
from models.order import Order, StructuredSource


@pytest.fixture(autouse=True)
def app_logs_reach_caplog():
    """setup_logging() stops propagation; caplog listens on the root logger."""
    app_logger = logging.getLogger(APP_NAMESPACE)
    app_logger.propagate = True
    yield
    app_logger.propagate = True


def make_order(order_id, drawing="D-1", article="A-1", definitions=None, **kwargs):
    """Active order with structured definitions."""
    if definitions is None:
        definitions = [
            {"id": "M1", "nominal": 50.0, "upperTol": 0.1, "lowerTol": 0.1, "gdtType": "diameter"},
        ]
    return Order(
        id=order_id,
        article_number=article,
        drawing_number=drawing,
        source=StructuredSource(tuple(definitions)),
        received_at="2026-01-01T08:00:00+00:00",
        **kwargs
    )


@pytest.fixture
def order_factory():
    return make_order
