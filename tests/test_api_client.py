"""
Unit tests for the legacy order service HTTP client.

requests.Session is replaced by a Mock; no network access.
"""

import logging
from unittest.mock import Mock

import pytest
import requests

from core.api_client import OrderServiceClient
from core.exceptions import ServiceUnavailableError, SubmissionRejectedError


# Fixtures

@pytest.fixture
def logger():
    """Create a test logger."""
    return logging.getLogger("test")


@pytest.fixture
def http():
    return Mock(spec=requests.Session)


@pytest.fixture
def client(http, logger):
    return OrderServiceClient("http://station:8000/", timeout=3, session=http, logger=logger)


def _response(json_data=None, status=200, text=""):
    response = Mock(spec=requests.Response)
    response.status_code = status
    response.ok = status < 400
    response.reason = "OK" if status < 400 else "Error"
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} Error")
    return response


class TestInit:

    def test_trailing_slash_stripped(self, client):
        assert client.base_url == "http://station:8000"

    def test_url_required(self):
        with pytest.raises(ValueError):
            OrderServiceClient("")


class TestFetchOrders:

    def test_parses_orders(self, client, http):
        http.get.return_value = _response([
            {"requestId": "1", "article": "A", "drawing": "D", "rawXml": "<r/>"},
            {"id": "2", "articleNumber": "B"},
            "junk",
        ])

        orders = client.fetch_orders()

        http.get.assert_called_once_with("http://station:8000/api/orders", timeout=3)
        assert [o.id for o in orders] == ["1", "2"]
        assert orders[0].article_number == "A"
        assert orders[0].received_at

    def test_connection_error(self, client, http):
        http.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ServiceUnavailableError):
            client.fetch_orders()

    def test_http_error(self, client, http):
        http.get.return_value = _response([], status=500)
        with pytest.raises(ServiceUnavailableError):
            client.fetch_orders()

    def test_invalid_json(self, client, http):
        http.get.return_value = _response(None, text="<html>")
        with pytest.raises(ServiceUnavailableError, match="Invalid JSON"):
            client.fetch_orders()

    def test_not_a_list(self, client, http):
        http.get.return_value = _response({"orders": []})
        with pytest.raises(ServiceUnavailableError, match="Expected a list"):
            client.fetch_orders()


class TestPosts:

    def test_post_markup(self, client, http):
        http.post.return_value = _response({"ok": True})

        assert client.post_markup("<Order/>", order_id="1") == {"ok": True}

        kwargs = http.post.call_args[1]
        assert http.post.call_args[0][0] == "http://station:8000/api/parse"
        assert kwargs["headers"]["Content-Type"] == "application/xml"
        assert kwargs["data"] == b"<Order/>"

    def test_post_markup_rejected(self, client, http):
        http.post.return_value = _response(None, status=400)
        with pytest.raises(SubmissionRejectedError) as exc_info:
            client.post_markup("<Order/>", order_id="1")
        assert exc_info.value.order_id == "1"

    def test_post_generate_text_response(self, client, http):
        http.post.return_value = _response(None, text="saved")

        assert client.post_generate({"MeasurementResult": {}}, order_id="1") == "saved"
        assert http.post.call_args[1]["json"] == {"MeasurementResult": {}}

    def test_post_generate_timeout(self, client, http):
        http.post.side_effect = requests.Timeout("slow")
        with pytest.raises(SubmissionRejectedError):
            client.post_generate({}, order_id="1")


class TestHealthCheck:

    def test_reachable(self, client, http):
        http.get.return_value = _response(None, text="Order service running")
        assert client.health_check() == (True, "Order service running")

    def test_http_error(self, client, http):
        http.get.return_value = _response(None, status=503)
        reachable, detail = client.health_check()
        assert reachable is False
        assert "503" in detail

    def test_unreachable(self, client, http):
        http.get.side_effect = requests.ConnectionError("refused")
        assert client.health_check() == (False, "refused")
