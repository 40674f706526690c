"""
Order store: the station's mirror of active and archived orders.

Every inbound event is reconciled by a pure function that takes the prior
OrderStoreState and returns a new one:

    apply_snapshot(state, active, archived)   full replace, sets the baseline
    apply_created(state, order)               prepend unless the id is active
    apply_completed(state, order)             drop from active, archive once
    apply_deleted(state, order_id)            drop from both
    apply_active_update(state, orders)        replace active only

Functions other than apply_snapshot refuse to run on a state without a
baseline (StaleDeliveryError): events that beat the initial snapshot are
discarded, never applied to stale collections.

OrderStore holds the current state for the rest of the station. It swaps the
whole state under a lock, so readers always see a consistent pair of
collections, and it recomputes the drawing index after every mutation.

Usage:
    store = OrderStore()
    store.apply_snapshot(active_orders, archived_orders)
    store.apply_created(order)
    for order in store.active:
        ...
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from core.exceptions import StaleDeliveryError
from models.order import Order
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

# Drawing numbers that mean "no drawing"
SENTINEL_DRAWING_NUMBERS = frozenset({"", "-", "n/a", "?", "none"})


@dataclass(frozen=True)
class OrderStoreState:
    """
    Immutable pair of order collections.

    Both tuples are most-recent-first.
    """

    active: Tuple[Order, ...] = ()
    archived: Tuple[Order, ...] = ()
    has_baseline: bool = False


# =============================================================================
# RECONCILIATION FUNCTIONS (pure)
# =============================================================================

def apply_snapshot(
    state: OrderStoreState,
    active: Iterable[Order],
    archived: Iterable[Order]
) -> OrderStoreState:
    """Replace both collections and establish the baseline."""
    return OrderStoreState(
        active=_unique(active),
        archived=_unique(archived),
        has_baseline=True,
    )


def apply_created(state: OrderStoreState, order: Order) -> OrderStoreState:
    """Prepend a new active order; a known id is a no-op (duplicate delivery)."""
    _require_baseline(state, "order_created")

    if _index_of(state.active, order.id) is not None:
        logger.debug(f"Duplicate order_created for {order.id} ignored")
        return state

    return replace(state, active=(order,) + state.active)


def apply_completed(state: OrderStoreState, order: Order) -> OrderStoreState:
    """
    Move an order to the archive.

    The order may already be gone from active (removed optimistically on
    submit). An id already in the archive is replaced in place, not added
    twice.
    """
    _require_baseline(state, "order_completed")

    active = tuple(o for o in state.active if o.id != order.id)

    position = _index_of(state.archived, order.id)
    if position is None:
        archived = (order,) + state.archived
    else:
        archived = state.archived[:position] + (order,) + state.archived[position + 1:]

    return replace(state, active=active, archived=archived)


def apply_deleted(state: OrderStoreState, order_id: str) -> OrderStoreState:
    """Remove an id from both collections; unknown ids leave the state unchanged."""
    _require_baseline(state, "order_deleted")

    active = tuple(o for o in state.active if o.id != order_id)
    archived = tuple(o for o in state.archived if o.id != order_id)

    if len(active) == len(state.active) and len(archived) == len(state.archived):
        return state
    return replace(state, active=active, archived=archived)


def apply_active_update(state: OrderStoreState, orders: Iterable[Order]) -> OrderStoreState:
    """Replace the active collection as delivered; the archive is untouched."""
    _require_baseline(state, "active_orders_update")
    return replace(state, active=_unique(orders))


def build_drawing_index(state: OrderStoreState) -> Dict[str, str]:
    """
    Map each drawing number to a representative article number.

    Active orders are scanned before archived ones, most recent first; the
    first order seen for a drawing wins. Missing or sentinel drawing numbers
    are left out.
    """
    index: Dict[str, str] = {}
    for order in state.active + state.archived:
        drawing = (order.drawing_number or "").strip()
        if drawing.lower() in SENTINEL_DRAWING_NUMBERS:
            continue
        index.setdefault(drawing, order.article_number)
    return index


def _require_baseline(state: OrderStoreState, event: str) -> None:
    if not state.has_baseline:
        raise StaleDeliveryError(event)


def _index_of(orders: Tuple[Order, ...], order_id: str) -> Optional[int]:
    for position, order in enumerate(orders):
        if order.id == order_id:
            return position
    return None


def _unique(orders: Iterable[Order]) -> Tuple[Order, ...]:
    """Keep the first occurrence of every id."""
    seen = set()
    result: List[Order] = []
    for order in orders:
        if order.id in seen:
            logger.debug(f"Duplicate id {order.id} in collection dropped")
            continue
        seen.add(order.id)
        result.append(order)
    return tuple(result)


# =============================================================================
# STORE
# =============================================================================

class OrderStore:
    """
    Authoritative holder of the current OrderStoreState.

    Thread Safety:
        - Each mutation computes a new state from the current one and swaps
          the reference under a lock
        - Readers get immutable tuples; no copy needed

    Attributes:
        version: Incremented on every state change (lets pollers skip redraws)
    """

    def __init__(self, state: Optional[OrderStoreState] = None):
        self._state = state or OrderStoreState()
        self._drawing_index: Mapping[str, str] = MappingProxyType(build_drawing_index(self._state))
        self._lock = threading.Lock()
        self._listeners: List[Callable[[OrderStoreState], None]] = []
        self._version = 0

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def state(self) -> OrderStoreState:
        return self._state

    @property
    def active(self) -> Tuple[Order, ...]:
        return self._state.active

    @property
    def archived(self) -> Tuple[Order, ...]:
        return self._state.archived

    @property
    def has_baseline(self) -> bool:
        return self._state.has_baseline

    @property
    def drawing_index(self) -> Mapping[str, str]:
        return self._drawing_index

    @property
    def version(self) -> int:
        return self._version

    def get_active(self, order_id: str) -> Optional[Order]:
        return next((o for o in self._state.active if o.id == order_id), None)

    def get_archived(self, order_id: str) -> Optional[Order]:
        return next((o for o in self._state.archived if o.id == order_id), None)

    def add_listener(self, callback: Callable[[OrderStoreState], None]) -> None:
        """Register a callback run with the new state after each change."""
        self._listeners.append(callback)

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def apply_snapshot(self, active: Iterable[Order], archived: Iterable[Order]) -> OrderStoreState:
        active, archived = list(active), list(archived)
        new_state = self._update(lambda s: apply_snapshot(s, active, archived))
        logger.info(
            f"Baseline established: {len(new_state.active)} active, "
            f"{len(new_state.archived)} archived"
        )
        return new_state

    def apply_created(self, order: Order) -> OrderStoreState:
        return self._update(lambda s: apply_created(s, order))

    def apply_completed(self, order: Order) -> OrderStoreState:
        new_state = self._update(lambda s: apply_completed(s, order))
        logger.info(f"Order {order.id} archived")
        return new_state

    def apply_deleted(self, order_id: str) -> OrderStoreState:
        return self._update(lambda s: apply_deleted(s, order_id))

    def apply_active_update(self, orders: Iterable[Order]) -> OrderStoreState:
        orders = list(orders)
        return self._update(lambda s: apply_active_update(s, orders))

    def reset_baseline(self) -> None:
        """
        Mark the collections stale (connection lost).

        Data stays visible; events are discarded until the next snapshot.
        """
        self._update(lambda s: replace(s, has_baseline=False))
        logger.info("Baseline reset, waiting for next snapshot")

    # -------------------------------------------------------------------------
    # Optimistic submission helpers
    # -------------------------------------------------------------------------

    def take_active(self, order_id: str) -> Optional[Order]:
        """Remove an order from active and return it (None if not active)."""
        taken: List[Order] = []

        def _take(state: OrderStoreState) -> OrderStoreState:
            order = next((o for o in state.active if o.id == order_id), None)
            if order is None:
                return state
            taken.append(order)
            return replace(state, active=tuple(o for o in state.active if o.id != order_id))

        self._update(_take)
        return taken[0] if taken else None

    def restore_active(self, order: Order) -> bool:
        """
        Put an optimistically removed order back into active.

        Skipped when the id is active again or has been archived meanwhile.

        Returns:
            True if the order was re-inserted
        """
        restored: List[bool] = []

        def _restore(state: OrderStoreState) -> OrderStoreState:
            if _index_of(state.active, order.id) is not None:
                return state
            if _index_of(state.archived, order.id) is not None:
                return state
            restored.append(True)
            return replace(state, active=(order,) + state.active)

        self._update(_restore)
        if restored:
            logger.info(f"Order {order.id} restored to active")
        return bool(restored)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _update(self, reconcile: Callable[[OrderStoreState], OrderStoreState]) -> OrderStoreState:
        with self._lock:
            old_state = self._state
            new_state = reconcile(old_state)
            if new_state is old_state:
                return old_state
            self._state = new_state
            self._drawing_index = MappingProxyType(build_drawing_index(new_state))
            self._version += 1

        self._notify(new_state)
        return new_state

    def _notify(self, state: OrderStoreState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Order store listener failed: {e}", exc_info=True)
