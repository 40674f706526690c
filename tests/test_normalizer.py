"""
Unit tests for the definition normalizer and order markup parsing.
"""

import logging

import pytest

from core.exceptions import MalformedMarkupError
from models.order import MarkupSource, Order, StructuredSource
from modules.normalizer import DEFAULT_DEFINITION, normalize, parse_order_markup


REQUEST_XML = """<?xml version="1.0" encoding="UTF-8"?>
<MeasurementRequest id="REQ-100">
    <Article>A-4711</Article>
    <Drawing>D-200</Drawing>
    <Parameters>
        <Parameter id="M1" nominal="50,0" upperTol="0.1" lowerTol="-0.1" gdtType="diameter"/>
        <Parameter>
            <Id>M2</Id>
            <Nominal>12.5</Nominal>
            <UpperTol>0.05</UpperTol>
            <LowerTol>0.02</LowerTol>
            <Description>Flange thickness</Description>
        </Parameter>
    </Parameters>
</MeasurementRequest>"""


def _order(source, order_id="O-1"):
    return Order(id=order_id, article_number="A", drawing_number="D", source=source)


class TestNormalizeStructured:

    def test_aliases_and_magnitudes(self):
        order = _order(StructuredSource((
            {"id": "M1", "nominal": "50", "upperTol": "0.1", "lowerTol": "-0.1", "gdtType": "diameter"},
            {"name": "M2", "Nominal": 3, "upper": 0.2, "lower": 0.3, "type": "length"},
        )))

        definitions = normalize(order)

        assert [d.id for d in definitions] == ["M1", "M2"]
        assert definitions[0].nominal == 50.0
        assert definitions[0].lower_tol == 0.1
        assert definitions[0].gdt_type == "diameter"
        assert definitions[1].upper_tol == 0.2
        assert definitions[1].lower_tol == 0.3
        assert definitions[1].gdt_type == "length"

    def test_missing_id_gets_position(self):
        order = _order(StructuredSource(({"nominal": 1}, {"nominal": 2})))
        assert [d.id for d in normalize(order)] == ["M1", "M2"]

    def test_duplicate_ids_first_wins(self):
        order = _order(StructuredSource((
            {"id": "M1", "nominal": 1},
            {"id": "M1", "nominal": 2},
        )))

        definitions = normalize(order)

        assert len(definitions) == 1
        assert definitions[0].nominal == 1.0

    def test_unreadable_number_becomes_zero(self, caplog):
        order = _order(StructuredSource(({"id": "M1", "nominal": "abc", "upperTol": "0.1"},)))

        with caplog.at_level(logging.WARNING):
            definitions = normalize(order)

        assert definitions[0].nominal == 0.0
        assert "unreadable nominal" in caplog.text

    def test_missing_gdt_type_is_none(self):
        order = _order(StructuredSource(({"id": "M1", "nominal": 1},)))
        assert normalize(order)[0].gdt_type == "none"

    def test_accepts_raw_dict(self):
        definitions = normalize({
            "id": "O-2",
            "parameters": [{"id": "X", "nominal": "1,5", "upperTol": "0,1", "lowerTol": "0,1"}],
        })
        assert definitions[0].id == "X"
        assert definitions[0].nominal == 1.5


class TestNormalizeMarkup:

    def test_attributes_and_child_elements(self):
        definitions = normalize(_order(MarkupSource(REQUEST_XML)))

        assert [d.id for d in definitions] == ["M1", "M2"]
        assert definitions[0].nominal == 50.0
        assert definitions[0].lower_tol == 0.1
        assert definitions[1].nominal == 12.5
        assert definitions[1].description == "Flange thickness"

    def test_namespaced_markup(self):
        markup = (
            '<r:Request xmlns:r="urn:test"><r:Param r:id="P1" r:nominal="2" '
            'r:upperTol="0.1" r:lowerTol="0.1"/></r:Request>'
        )
        definitions = normalize(_order(MarkupSource(markup)))
        assert definitions[0].id == "P1"
        assert definitions[0].nominal == 2.0


class TestDefaultDefinition:

    @pytest.mark.parametrize("source", [
        StructuredSource(()),
        MarkupSource("<Request><Nothing/></Request>"),
        MarkupSource("<not-closed"),
    ])
    def test_fallback(self, source, caplog):
        with caplog.at_level(logging.WARNING):
            definitions = normalize(_order(source))

        assert definitions == (DEFAULT_DEFINITION,)
        assert "default definition M1" in caplog.text

    def test_default_values(self):
        assert DEFAULT_DEFINITION.id == "M1"
        assert DEFAULT_DEFINITION.nominal == 0.0
        assert DEFAULT_DEFINITION.upper_tol == 0.1
        assert DEFAULT_DEFINITION.lower_tol == 0.1
        assert DEFAULT_DEFINITION.gdt_type == "none"


class TestParseOrderMarkup:

    def test_full_request(self):
        order = parse_order_markup(REQUEST_XML, received_at="2026-01-01T00:00:00+00:00")

        assert order.id == "REQ-100"
        assert order.article_number == "A-4711"
        assert order.drawing_number == "D-200"
        assert order.received_at == "2026-01-01T00:00:00+00:00"
        assert isinstance(order.source, MarkupSource)
        assert len(normalize(order)) == 2

    def test_short_test_order(self):
        order = parse_order_markup(
            "<Order><Id>T-1</Id><Article>Test-Artikel</Article><Drawing>D-TEST</Drawing></Order>"
        )

        assert order.id == "T-1"
        assert order.article_number == "Test-Artikel"
        assert normalize(order) == (DEFAULT_DEFINITION,)

    def test_malformed(self):
        with pytest.raises(MalformedMarkupError):
            parse_order_markup("<Order><Id>1</Order>")

    def test_missing_id(self):
        with pytest.raises(MalformedMarkupError, match="no id"):
            parse_order_markup("<Order><Article>A</Article></Order>")
