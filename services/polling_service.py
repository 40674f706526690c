"""
Legacy order polling with a background thread.

Stations that talk to the request/response order service have no event
channel. This service polls GET /api/orders every few seconds and feeds the
result through EventSyncService as if it were an event stream:

    first successful poll  -> init_state (active list, empty archive)
    later polls            -> active_orders_update

Thread Safety:
    - The poll thread creates its own OrderServiceClient
    - The store swaps immutable state under its own lock

Usage:
    polling = PollingSyncService(sync_service, client_factory, 5.0)
    polling.start()
    ...
    polling.stop()
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from core.api_client import OrderServiceClient
from core.exceptions import ServiceUnavailableError
from logging_config import get_logger, set_thread_name
from .sync_service import ACTIVE_ORDERS_UPDATE, INIT_STATE, EventSyncService


# Module logger
logger = get_logger(__name__)


class PollingSyncService:
    """
    Background service polling the legacy order list.

    Attributes:
        poll_interval_seconds: Time between polls
        is_running: Whether the background thread is active
    """

    def __init__(
        self,
        sync_service: EventSyncService,
        client_factory: Callable[[], OrderServiceClient],
        poll_interval_seconds: float = 5.0
    ):
        """
        Initialize polling service.

        Args:
            sync_service: Dispatcher that owns the order store
            client_factory: Creates an OrderServiceClient for the poll thread
            poll_interval_seconds: Seconds between polls
        """
        self._sync = sync_service
        self._client_factory = client_factory
        self._poll_interval = poll_interval_seconds

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._is_running = False
        self._refresh_lock = threading.Lock()

        self._consecutive_failures = 0

        logger.info(f"PollingSyncService initialized (interval: {poll_interval_seconds}s)")

    @property
    def is_running(self) -> bool:
        return self._is_running

    @property
    def poll_interval_seconds(self) -> float:
        return self._poll_interval

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    def start(self) -> None:
        """
        Start the background poll thread.

        Polls immediately, then every poll_interval_seconds until stop().
        Safe to call multiple times.
        """
        if self._is_running:
            logger.warning("PollingSyncService already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            name="OrderPoll",
            daemon=True
        )
        self._is_running = True
        self._thread.start()

        logger.info("Order poll thread started")

    def stop(self) -> None:
        """Signal the poll thread to stop and wait for it. Safe to call twice."""
        if not self._is_running:
            return

        self._stop_event.set()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)
            if self._thread.is_alive():
                logger.warning("Order poll thread did not stop cleanly")

        self._is_running = False
        self._thread = None

        logger.info("Order poll thread stopped")

    def force_refresh(self) -> bool:
        """
        Poll once in the calling thread.

        Returns:
            True if the poll succeeded
        """
        logger.info("Forcing order refresh...")
        return self._do_poll()

    def _poll_loop(self) -> None:
        set_thread_name("OrderPoll")
        logger.info("Order poll loop starting")

        self._do_poll()

        while not self._stop_event.is_set():
            if self._stop_event.wait(timeout=self._poll_interval):
                break
            self._do_poll()

        logger.info("Order poll loop exiting")

    def _do_poll(self) -> bool:
        # The route thread may force a refresh while the loop polls
        with self._refresh_lock:
            try:
                client = self._client_factory()
                orders = client.fetch_orders()
            except ServiceUnavailableError as e:
                self._record_failure(e)
                return False

            payload = [order.to_dict() for order in orders]
            if self._sync.store.has_baseline:
                applied = self._sync.handle_event(ACTIVE_ORDERS_UPDATE, {"orders": payload})
            else:
                applied = self._sync.handle_event(
                    INIT_STATE,
                    {"activeOrders": payload, "archivedOrders": []}
                )

            if self._consecutive_failures > 0:
                logger.info(f"Order polling recovered after {self._consecutive_failures} failures")
            self._consecutive_failures = 0

            logger.debug(f"Polled {len(orders)} active orders")
            return applied

    def _record_failure(self, error: Exception) -> None:
        self._consecutive_failures += 1

        if self._consecutive_failures == 1:
            logger.warning(f"Order poll failed: {error}")
        elif self._consecutive_failures <= 3:
            logger.error(f"Order poll failed ({self._consecutive_failures} consecutive): {error}")
        elif self._consecutive_failures % 5 == 0:
            logger.error(
                f"Order poll still failing ({self._consecutive_failures} consecutive): {error}"
            )
