"""
Outbound channel contract.

The submission flow hands finished cards and delete requests to an
OutboundChannel. Two implementations:

    CallbackChannel    - wraps the emit function of the real-time transport
                         collaborator; completion is confirmed later by an
                         inbound `order_completed` event
    LegacyHTTPChannel  - posts to the request/response service; that service
                         sends no completion events, so a successful post is
                         the confirmation

Every failure surfaces as SubmissionRejectedError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict

from models.submission import SubmissionPayload
from modules.report_xml import build_generate_body, build_report_markup
from logging_config import get_logger
from .api_client import OrderServiceClient
from .exceptions import SubmissionRejectedError


logger = get_logger(__name__)

SUBMIT_EVENT = "submit_measurement"
DELETE_EVENT = "delete_order"


class OutboundChannel(ABC):
    """Delivery of station events to the order service."""

    #: Whether the service answers a submission with an `order_completed` event
    confirms_with_events: bool = True

    @abstractmethod
    def emit(self, event: str, data: Dict[str, Any]) -> None:
        """
        Deliver one event.

        Raises:
            SubmissionRejectedError: If delivery fails
        """

    def send_submission(self, payload: SubmissionPayload) -> None:
        self.emit(SUBMIT_EVENT, payload.to_event())

    def send_delete(self, order_id: str) -> None:
        self.emit(DELETE_EVENT, {"id": order_id})


class CallbackChannel(OutboundChannel):
    """
    Channel backed by a transport emit function.

    The function receives (event, data). Returning False or raising counts
    as a rejected delivery.
    """

    def __init__(self, emit_fn: Callable[[str, Dict[str, Any]], Any]):
        self._emit_fn = emit_fn

    def emit(self, event: str, data: Dict[str, Any]) -> None:
        order_id = data.get("id")
        try:
            accepted = self._emit_fn(event, data)
        except SubmissionRejectedError:
            raise
        except Exception as e:
            logger.error(f"Emit '{event}' failed for order {order_id}: {e}")
            raise SubmissionRejectedError(f"Could not deliver {event}: {e}", order_id=order_id)

        if accepted is False:
            logger.warning(f"Emit '{event}' not acknowledged for order {order_id}")
            raise SubmissionRejectedError(f"{event} was not acknowledged", order_id=order_id)

        logger.info(f"Emitted '{event}' for order {order_id}")


class LegacyHTTPChannel(OutboundChannel):
    """
    Channel over the request/response order service.

    A card is one POST of the JSON wrapper to /api/generate. With
    send_report the report markup follows on /api/parse, only after the card
    was accepted; a failed report post is logged and never turns a delivered
    card into a rejection. Deleting orders is not supported there.
    """

    confirms_with_events = False

    def __init__(self, client: OrderServiceClient, send_report: bool = False):
        self._client = client
        self._send_report = send_report

    def emit(self, event: str, data: Dict[str, Any]) -> None:
        raise SubmissionRejectedError(
            f"Legacy order service does not support '{event}'",
            order_id=data.get("id"),
        )

    def send_submission(self, payload: SubmissionPayload) -> None:
        self._client.post_generate(build_generate_body(payload), order_id=payload.order_id)
        logger.info(f"Card for order {payload.order_id} delivered to legacy service")

        if not self._send_report:
            return
        try:
            self._client.post_markup(build_report_markup(payload), order_id=payload.order_id)
        except SubmissionRejectedError as e:
            logger.warning(f"Report for delivered order {payload.order_id} not stored: {e.message}")
