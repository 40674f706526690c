"""
Services layer for MeasureStation.

- OrderStore: mirror of active and archived orders (reconciliation)
- EventSyncService: applies inbound events to the store
- PollingSyncService: legacy background poll of the order list
- MeasurementSession: the operator's session state machine
- SubmissionService: delivers measurement cards
- SignerRoster: names offered for signing

Thread Model:
    Main Thread (Flask)
    └── PollingSyncService thread (legacy mode only)

The store swaps immutable state under a lock, so both can share it.
"""

from .order_store import OrderStore, OrderStoreState
from .sync_service import EventSyncService
from .polling_service import PollingSyncService
from .session import MeasurementSession
from .submission import SubmissionService, build_submission
from .roster import SignerRoster, InMemoryRosterStore, JsonFileRosterStore

__all__ = [
    "OrderStore",
    "OrderStoreState",
    "EventSyncService",
    "PollingSyncService",
    "MeasurementSession",
    "SubmissionService",
    "build_submission",
    "SignerRoster",
    "InMemoryRosterStore",
    "JsonFileRosterStore",
]
