"""
Inbound event synchronization.

The real-time transport collaborator (connect/reconnect lives there) hands
every received event to EventSyncService.handle_event(). Events are applied
to the OrderStore strictly in delivery order:

    init_state            {activeOrders, archivedOrders}  -> apply_snapshot
    order_created         {order}                         -> apply_created
    order_completed       {order}                         -> apply_completed
    active_orders_update  {orders}                        -> apply_active_update
    order_deleted         {id}                            -> apply_deleted

Anything that arrives before `init_state` (or after connection_lost() and
before the next `init_state`) is discarded. There is no reordering or causal
buffering beyond that rule.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from core.exceptions import StaleDeliveryError
from models.order import Order, utc_now_iso
from logging_config import get_logger
from .order_store import OrderStore


# Module logger
logger = get_logger(__name__)

INIT_STATE = "init_state"
ORDER_CREATED = "order_created"
ORDER_COMPLETED = "order_completed"
ACTIVE_ORDERS_UPDATE = "active_orders_update"
ORDER_DELETED = "order_deleted"


class EventSyncService:
    """
    Dispatches inbound events to the order store.

    Attributes:
        discarded_count: Events dropped because no baseline existed
        ignored_count: Events with an unknown name or unusable body
    """

    def __init__(self, store: OrderStore):
        self._store = store
        self._handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            INIT_STATE: self._on_init_state,
            ORDER_CREATED: self._on_order_created,
            ORDER_COMPLETED: self._on_order_completed,
            ACTIVE_ORDERS_UPDATE: self._on_active_orders_update,
            ORDER_DELETED: self._on_order_deleted,
        }
        self.discarded_count = 0
        self.ignored_count = 0

    @property
    def store(self) -> OrderStore:
        return self._store

    @property
    def supported_events(self) -> List[str]:
        return list(self._handlers)

    def handle_event(self, name: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Apply one inbound event.

        Args:
            name: Event name
            data: Event body

        Returns:
            True if the event was applied, False if it was discarded or ignored
        """
        handler = self._handlers.get(name)
        if handler is None:
            self.ignored_count += 1
            logger.warning(f"Unknown event '{name}' ignored")
            return False

        if not isinstance(data, dict):
            self.ignored_count += 1
            logger.warning(f"Event '{name}' without a body ignored")
            return False

        try:
            handler(data)
        except StaleDeliveryError as e:
            self.discarded_count += 1
            logger.warning(str(e))
            return False
        except (KeyError, TypeError, ValueError) as e:
            self.ignored_count += 1
            logger.error(f"Malformed '{name}' event ignored: {e}")
            return False

        logger.debug(f"Applied '{name}' (store version {self._store.version})")
        return True

    def connection_lost(self) -> None:
        """Called by the transport when the channel drops."""
        logger.warning("Event channel lost")
        self._store.reset_baseline()

    # -------------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------------

    def _on_init_state(self, data: Dict[str, Any]) -> None:
        received_at = utc_now_iso()
        active = _orders(data.get("activeOrders"), received_at)
        archived = _orders(data.get("archivedOrders"), received_at)
        self._store.apply_snapshot(active, archived)

    def _on_order_created(self, data: Dict[str, Any]) -> None:
        self._store.apply_created(_order(data["order"]))

    def _on_order_completed(self, data: Dict[str, Any]) -> None:
        order = _order(data["order"])
        if not order.is_archived:
            # The service marks completion by the event itself
            order = order.archive(order.results, order.controller)
        self._store.apply_completed(order)

    def _on_active_orders_update(self, data: Dict[str, Any]) -> None:
        self._store.apply_active_update(_orders(data.get("orders"), utc_now_iso()))

    def _on_order_deleted(self, data: Dict[str, Any]) -> None:
        order_id = data["id"]
        if order_id is None or order_id == "":
            raise ValueError("order_deleted without id")
        self._store.apply_deleted(str(order_id))


def _order(data: Any, received_at: Optional[str] = None) -> Order:
    if not isinstance(data, dict):
        raise TypeError(f"order must be an object, got {type(data).__name__}")
    order = Order.from_dict(data, received_at=received_at)
    if not order.id:
        raise ValueError("order without id")
    return order


def _orders(items: Any, received_at: str) -> List[Order]:
    if not items:
        return []
    if not isinstance(items, list):
        raise TypeError(f"order list expected, got {type(items).__name__}")

    orders = []
    for item in items:
        try:
            orders.append(_order(item, received_at))
        except (TypeError, ValueError) as e:
            logger.warning(f"Skipping unusable order in list: {e}")
    return orders
