"""
HTTP client for the legacy order service.

The request/response surface predates the real-time event channel and is
kept compatible:

    GET  /              -> health text
    GET  /api/orders    -> list of active orders (JSON)
    POST /api/parse     -> XML body: measurement request or measurement report
    POST /api/generate  -> JSON {"MeasurementResult": {...}}

THREAD SAFETY:
    - The polling thread and request handlers each create their own client
    - Every call returns independent data (no shared state between calls)

Usage:
    client = OrderServiceClient("http://station-server:8000", timeout=10)
    orders = client.fetch_orders()
    client.post_markup(report_xml)
    client.post_generate(body)
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Tuple

import requests

from models.order import Order, utc_now_iso
from .exceptions import ServiceUnavailableError, SubmissionRejectedError


class OrderServiceClient:
    """
    Wrapper for the legacy order service HTTP API.

    Read calls raise ServiceUnavailableError on failure, write calls raise
    SubmissionRejectedError so the submission flow can surface a retry.

    Attributes:
        base_url: Service root without trailing slash
        timeout: Seconds per request
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: Service root URL (e.g. "http://localhost:8000")
            timeout: Seconds per request
            session: requests.Session to use (a new one if not provided)
            logger: Logger instance (creates default if not provided)

        Raises:
            ValueError: If base_url is empty
        """
        if not base_url:
            raise ValueError("base_url is required - set ORDER_SERVICE_URL")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._logger = logger or logging.getLogger("core.api_client")
        self._thread_id = threading.get_ident()

    def fetch_orders(self) -> List[Order]:
        """
        Fetch the active orders.

        Returns:
            Orders in the order the service lists them

        Raises:
            ServiceUnavailableError: If the service cannot be reached or the
                response is not a JSON list
        """
        url = f"{self.base_url}/api/orders"
        self._logger.debug(f"[Thread {self._thread_id}] GET {url}")

        try:
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise ServiceUnavailableError(f"Failed to fetch orders: {e}", url=url)
        except ValueError as e:
            raise ServiceUnavailableError(f"Invalid JSON in orders response: {e}", url=url)

        if not isinstance(data, list):
            raise ServiceUnavailableError(
                f"Expected a list of orders, got {type(data).__name__}", url=url
            )

        received_at = utc_now_iso()
        orders = [
            Order.from_dict(item, received_at=received_at)
            for item in data
            if isinstance(item, dict)
        ]
        self._logger.debug(f"[Thread {self._thread_id}] Fetched {len(orders)} orders")
        return orders

    def post_markup(self, markup: str, order_id: Optional[str] = None) -> Any:
        """
        POST a measurement request or report document to /api/parse.

        Returns:
            Decoded JSON response, or the response text if it is not JSON

        Raises:
            SubmissionRejectedError: If the service rejects the document
        """
        url = f"{self.base_url}/api/parse"
        self._logger.debug(f"[Thread {self._thread_id}] POST {url} ({len(markup)} chars)")

        try:
            response = self._session.post(
                url,
                data=markup.encode("utf-8"),
                headers={"Content-Type": "application/xml"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            self._logger.error(f"[Thread {self._thread_id}] /api/parse failed: {e}")
            raise SubmissionRejectedError(f"Markup upload failed: {e}", order_id=order_id)

        return _decode(response)

    def post_generate(self, body: Dict[str, Any], order_id: Optional[str] = None) -> Any:
        """
        POST a JSON-wrapped legacy result to /api/generate.

        Raises:
            SubmissionRejectedError: If the service rejects the result
        """
        url = f"{self.base_url}/api/generate"
        self._logger.debug(f"[Thread {self._thread_id}] POST {url}")

        try:
            response = self._session.post(url, json=body, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            self._logger.error(f"[Thread {self._thread_id}] /api/generate failed: {e}")
            raise SubmissionRejectedError(f"Result upload failed: {e}", order_id=order_id)

        self._logger.info(f"[Thread {self._thread_id}] Result delivered for order {order_id}")
        return _decode(response)

    def health_check(self) -> Tuple[bool, str]:
        """
        Check that the service answers on its root URL.

        Returns:
            (reachable, response text or error message)
        """
        url = f"{self.base_url}/"
        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            return False, str(e)

        if response.ok:
            return True, response.text
        return False, f"HTTP {response.status_code} {response.reason}"


def _decode(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
