"""
Measurement card submission.

build_submission() turns the open session into a SubmissionPayload; it is a
pure transformation and never touches the network.

SubmissionService delivers the payload:

    1. Take the order out of the active collection (optimistic)
    2. Hand the payload to the outbound channel
    3. Rejected  -> put the order back into active, re-raise for a retry
       Accepted  -> session moves to Submitted, signer is remembered

With the event channel the archive entry arrives later as `order_completed`.
The legacy HTTP service sends no such event, so a successful post archives
the card locally.
"""

from __future__ import annotations

import threading
from typing import Iterable, Optional

from core.channel import OutboundChannel
from core.exceptions import SessionStateError, StaleDeliveryError, SubmissionRejectedError
from models.measurement import MeasurementEntry
from models.order import CompletedResult, Order, utc_now_iso
from models.submission import SubmissionPayload
from logging_config import get_logger
from .order_store import OrderStore
from .roster import SignerRoster
from .session import MeasurementSession, Signing


# Module logger
logger = get_logger(__name__)


def build_submission(
    order: Order,
    entries: Iterable[MeasurementEntry],
    signer: str,
    created_at: Optional[str] = None
) -> SubmissionPayload:
    """
    Assemble the card for an order.

    Args:
        order: Order being reported
        entries: One entry per definition, in definition order
        signer: Controller attesting the card

    Returns:
        SubmissionPayload {orderId, controller, results: [{id, measured, status, def}]}
    """
    results = tuple(
        {
            "id": entry.id,
            "measured": entry.measured,
            "status": entry.status.value,
            "def": entry.definition.to_dict(),
        }
        for entry in entries
    )
    return SubmissionPayload(
        order_id=order.id,
        controller=signer,
        results=results,
        created_at=created_at or utc_now_iso(),
        order=order,
    )


def to_completed_order(payload: SubmissionPayload, order: Optional[Order] = None) -> Order:
    """Archived copy of the order (default: the payload's own), carrying the card's results."""
    order = order or payload.order
    if order is None:
        raise ValueError("payload has no order to archive")

    results = tuple(
        CompletedResult.from_dict(result, controller=payload.controller, timestamp=payload.created_at)
        for result in payload.results
    )
    return order.archive(results, payload.controller, completed_at=payload.created_at)


class SubmissionService:
    """Delivers measurement cards and delete requests."""

    def __init__(
        self,
        store: OrderStore,
        channel: OutboundChannel,
        roster: Optional[SignerRoster] = None
    ):
        self._store = store
        self._channel = channel
        self._roster = roster
        # Held for a whole submit; a concurrent second submit then sees Submitted
        self._submit_lock = threading.Lock()

    @property
    def channel(self) -> OutboundChannel:
        return self._channel

    def submit(self, session: MeasurementSession) -> SubmissionPayload:
        """
        Submit the session's card.

        Returns:
            Delivered payload

        Raises:
            SessionStateError: If the session is not signing with a signer
            SubmissionRejectedError: If delivery failed (order back in active)
        """
        with self._submit_lock:
            return self._submit(session)

    def _submit(self, session: MeasurementSession) -> SubmissionPayload:
        state = session.state
        if not isinstance(state, Signing):
            raise SessionStateError("submit", state.name)
        if not session.payload_ready:
            raise SessionStateError("submit", state.name, "no signer chosen")

        payload = build_submission(state.order, session.entries, state.signer)
        taken = self._store.take_active(payload.order_id)

        logger.info(
            f"Submitting order {payload.order_id} "
            f"({len(payload.results)} results, controller {payload.controller})"
        )

        try:
            self._channel.send_submission(payload)
        except SubmissionRejectedError as e:
            logger.error(f"Submission of order {payload.order_id} rejected: {e.message}")
            if taken is not None:
                self._store.restore_active(taken)
            raise

        if not self._channel.confirms_with_events:
            self._archive_locally(payload)

        session.mark_submitted(payload)
        if self._roster is not None:
            self._roster.remember(payload.controller)

        return payload

    def delete_order(self, order_id: str) -> None:
        """
        Ask the service to delete an order.

        The store changes when the `order_deleted` event comes back.

        Raises:
            SubmissionRejectedError: If the request could not be delivered
        """
        logger.info(f"Requesting delete of order {order_id}")
        self._channel.send_delete(order_id)

    def _archive_locally(self, payload: SubmissionPayload) -> None:
        try:
            self._store.apply_completed(to_completed_order(payload))
        except StaleDeliveryError:
            logger.warning(f"Order {payload.order_id} delivered before any baseline, not archived")
