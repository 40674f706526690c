"""
JSON views shared by the route modules.

Adds display labels (status, geometric tag) in the station language on top
of the models' wire dictionaries.
"""

from typing import Any, Dict

from flask import current_app

from models.order import Definition, Order
from modules.i18n import gdt_label, translate
from modules.normalizer import normalize
from services.session import MeasurementSession


def station_language() -> str:
    return current_app.config.get("STATION_LANGUAGE", "sv")


def definition_view(definition: Definition) -> Dict[str, Any]:
    data = definition.to_dict()
    data["label"] = definition.label(station_language())
    data["lowerLimit"] = definition.lower_limit
    data["upperLimit"] = definition.upper_limit
    return data


def order_summary(order: Order) -> Dict[str, Any]:
    """List row for an order (no definitions)."""
    data = {
        "id": order.id,
        "articleNumber": order.article_number,
        "drawingNumber": order.drawing_number,
        "receivedAt": order.received_at,
    }
    if order.is_archived:
        lang = station_language()
        data["completedAt"] = order.completed_at
        data["controller"] = order.controller
        data["results"] = [
            dict(result.to_dict(), statusLabel=translate(f"status.{result.status.value}", lang))
            for result in order.results
        ]
    return data


def order_detail(order: Order) -> Dict[str, Any]:
    data = order_summary(order)
    if not order.is_archived:
        data["definitions"] = [definition_view(d) for d in normalize(order)]
    return data


def session_view(session: MeasurementSession) -> Dict[str, Any]:
    data = session.snapshot()
    lang = station_language()
    for entry in data.get("entries", []):
        entry["label"] = gdt_label(entry["def"].get("gdtType", ""), lang)
        entry["statusLabel"] = translate(f"status.{entry['status']}", lang)
    return data
