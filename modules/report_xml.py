"""
Legacy markup and result payloads.

The request/response order service predates the event channel. It takes
measurement reports as XML on /api/parse and a JSON-wrapped result on
/api/generate. All XML is built with xml.etree.ElementTree for escaping.

Report shape:
    <MeasurementReport timestamp="...">
        <RequestId/> <Article/> <Drawing/> <Controller/>
        <Results>
            <Result id="M1">
                <Nominal/> <Measured/> <Status/> <UpperTol/> <LowerTol/>
            </Result>
        </Results>
    </MeasurementReport>
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, Dict

from models.order import utc_now_iso
from models.submission import SubmissionPayload


def build_report_markup(payload: SubmissionPayload, timestamp: str = "") -> str:
    """
    Build the measurement report document for a submitted card.

    Args:
        payload: Card to report
        timestamp: Report time (defaults to the card's creation time or now)

    Returns:
        XML string
    """
    order = payload.order
    root = ET.Element("MeasurementReport")
    root.set("timestamp", timestamp or payload.created_at or utc_now_iso())

    ET.SubElement(root, "RequestId").text = payload.order_id
    ET.SubElement(root, "Article").text = order.article_number if order else ""
    ET.SubElement(root, "Drawing").text = order.drawing_number if order else ""
    ET.SubElement(root, "Controller").text = payload.controller

    results_el = ET.SubElement(root, "Results")
    for result in payload.results:
        definition = result.get("def") or {}
        result_el = ET.SubElement(results_el, "Result")
        result_el.set("id", str(result.get("id", "")))
        ET.SubElement(result_el, "Nominal").text = _text(definition.get("nominal"))
        ET.SubElement(result_el, "Measured").text = _text(result.get("measured"))
        ET.SubElement(result_el, "Status").text = _text(result.get("status"))
        ET.SubElement(result_el, "UpperTol").text = _text(definition.get("upperTol"))
        ET.SubElement(result_el, "LowerTol").text = _text(definition.get("lowerTol"))

    return ET.tostring(root, encoding="unicode")


def build_generate_body(payload: SubmissionPayload, timestamp: str = "") -> Dict[str, Any]:
    """
    Build the JSON body for POST /api/generate.

    `measurement` is the single-value field older handheld clients sent; it
    carries the first result. The full list goes in `results`.
    """
    order = payload.order
    first_measured = payload.results[0].get("measured", "") if payload.results else ""

    return {
        "MeasurementResult": {
            "requestId": payload.order_id,
            "article": order.article_number if order else "",
            "drawing": order.drawing_number if order else "",
            "measurement": first_measured,
            "signature": payload.controller,
            "timestamp": timestamp or payload.created_at or utc_now_iso(),
            "results": [dict(r) for r in payload.results],
        }
    }


def build_test_order_markup(order_id: str, article: str = "Test-Artikel", drawing: str = "D-TEST") -> str:
    """Short order document used to create a test order on the service."""
    root = ET.Element("Order")
    ET.SubElement(root, "Id").text = order_id
    ET.SubElement(root, "Article").text = article
    ET.SubElement(root, "Drawing").text = drawing
    return ET.tostring(root, encoding="unicode")


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
