"""
Measurement session state machine.

Tracks what the operator is doing at the station. Purely local, never
transmitted.

    Browsing(tab) --select(order)--> Editing(order, definitions)
    Editing --edit(def_id, value)--> Editing
    Editing --open_signing--> Signing(order, definitions, signer)
    Signing --choose_signer(name)--> Signing
    Signing --edit(def_id, value)--> Editing
    Signing --mark_submitted(payload)--> Submitted(order, payload)
    Submitted --acknowledge--> Browsing
    Browsing | Editing | Signing --cancel--> Browsing

Only one order can be open at a time: the machine has exactly one state.
Measurement entries live here while an order is open; cancel and
acknowledge drop them. The order store is never touched from here.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from core.exceptions import SessionStateError
from models.measurement import MeasurementEntry, MeasurementStatus
from models.order import Definition, Order
from models.submission import SubmissionPayload
from modules.normalizer import normalize
from modules.tolerance import evaluate
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

TAB_ACTIVE = "active"
TAB_ARCHIVED = "archived"
TABS = (TAB_ACTIVE, TAB_ARCHIVED)


@dataclass(frozen=True)
class Browsing:
    tab: str = TAB_ACTIVE
    name = "browsing"


@dataclass(frozen=True)
class Editing:
    order: Order
    definitions: Tuple[Definition, ...]
    name = "editing"


@dataclass(frozen=True)
class Signing:
    order: Order
    definitions: Tuple[Definition, ...]
    signer: str = ""
    name = "signing"


@dataclass(frozen=True)
class Submitted:
    order: Order
    payload: SubmissionPayload
    name = "submitted"


SessionState = Union[Browsing, Editing, Signing, Submitted]


class MeasurementSession:
    """
    The station's single measurement session.

    All transitions raise SessionStateError when not allowed in the current
    state; the state is left unchanged in that case.
    """

    def __init__(self):
        self._state: SessionState = Browsing()
        self._entries: "OrderedDict[str, MeasurementEntry]" = OrderedDict()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def entries(self) -> Tuple[MeasurementEntry, ...]:
        return tuple(self._entries.values())

    @property
    def order(self) -> Optional[Order]:
        return getattr(self._state, "order", None)

    @property
    def all_filled(self) -> bool:
        return bool(self._entries) and all(e.is_filled for e in self._entries.values())

    @property
    def payload_ready(self) -> bool:
        """True while signing with a signer chosen."""
        return isinstance(self._state, Signing) and bool(self._state.signer.strip())

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def switch_tab(self, tab: str) -> None:
        self._require(Browsing, "switch tab")
        if tab not in TABS:
            raise SessionStateError("switch tab", self._state.name, f"unknown tab '{tab}'")
        self._state = Browsing(tab=tab)

    def select(self, order: Order) -> Tuple[MeasurementEntry, ...]:
        """
        Open an order for measurement.

        Seeds one empty NEUTRAL entry per normalized definition.
        """
        self._require(Browsing, "select an order")

        definitions = normalize(order)
        self._entries = OrderedDict(
            (definition.id, MeasurementEntry(definition=definition))
            for definition in definitions
        )
        self._state = Editing(order=order, definitions=definitions)

        logger.info(f"Editing order {order.id} ({len(definitions)} definitions)")
        return self.entries

    def edit(self, def_id: str, value: str) -> MeasurementEntry:
        """
        Update one measured value and recompute its status.

        Editing while signing goes back to Editing so the card is reviewed
        again before submit.
        """
        self._require((Editing, Signing), "edit a value")

        entry = self._entries.get(def_id)
        if entry is None:
            raise SessionStateError("edit a value", self._state.name, f"unknown definition '{def_id}'")

        entry.measured = "" if value is None else str(value)
        entry.status = evaluate(entry.definition, entry.measured)

        if isinstance(self._state, Signing):
            self._state = Editing(order=self._state.order, definitions=self._state.definitions)

        return entry

    def open_signing(self) -> None:
        """Move to signing; every entry needs a value (FAIL is allowed)."""
        self._require(Editing, "open signing")

        missing = [e.id for e in self._entries.values() if not e.is_filled]
        if missing:
            raise SessionStateError(
                "open signing", self._state.name, f"missing values for {', '.join(missing)}"
            )

        self._state = Signing(order=self._state.order, definitions=self._state.definitions)

    def choose_signer(self, name: str) -> None:
        self._require(Signing, "choose a signer")
        self._state = Signing(
            order=self._state.order,
            definitions=self._state.definitions,
            signer=(name or "").strip(),
        )

    def mark_submitted(self, payload: SubmissionPayload) -> None:
        """Record a delivered card. Requires a chosen signer."""
        self._require(Signing, "submit")
        if not self.payload_ready:
            raise SessionStateError("submit", self._state.name, "no signer chosen")

        self._state = Submitted(order=self._state.order, payload=payload)
        logger.info(f"Order {payload.order_id} submitted by {payload.controller}")

    def acknowledge(self) -> None:
        """Leave the confirmation and clear everything."""
        self._require(Submitted, "acknowledge")
        self._reset()

    def cancel(self) -> None:
        """Abandon the open order. No effect outside this session."""
        self._require((Browsing, Editing, Signing), "cancel")
        if isinstance(self._state, Browsing):
            return
        logger.info(f"Measurement of order {self._state.order.id} cancelled")
        self._reset()

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def status_counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in MeasurementStatus}
        for entry in self._entries.values():
            counts[entry.status.value] += 1
        return counts

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the session."""
        state = self._state
        data: Dict[str, Any] = {"state": state.name}

        if isinstance(state, Browsing):
            data["tab"] = state.tab
        if isinstance(state, (Editing, Signing, Submitted)):
            data["orderId"] = state.order.id
            data["articleNumber"] = state.order.article_number
            data["drawingNumber"] = state.order.drawing_number
        if isinstance(state, (Editing, Signing)):
            data["entries"] = [entry.to_dict() for entry in self._entries.values()]
            data["counts"] = self.status_counts()
            data["canSign"] = self.all_filled
        if isinstance(state, Signing):
            data["signer"] = state.signer
            data["canSubmit"] = self.payload_ready
        if isinstance(state, Submitted):
            data["payload"] = state.payload.to_dict()

        return data

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require(self, allowed, operation: str) -> None:
        if not isinstance(self._state, allowed):
            raise SessionStateError(operation, self._state.name)

    def _reset(self) -> None:
        self._entries = OrderedDict()
        self._state = Browsing()
