"""
Submission payload model.

A SubmissionPayload is the frozen measurement card handed to the outbound
channel. It keeps the order it was built from so channels that need the
article/drawing (the legacy report markup) can read them; the order itself
is not part of the wire payload.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .order import Order


@dataclass(frozen=True)
class SubmissionPayload:
    """
    Completed measurement card ready for delivery.

    Results are wire dictionaries {id, measured, status, def}, in the
    order of the order's definitions.
    """

    order_id: str
    controller: str
    results: Tuple[Dict[str, Any], ...] = ()
    created_at: str = ""
    order: Optional[Order] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Card representation shown to the operator and used in tests."""
        return {
            "orderId": self.order_id,
            "controller": self.controller,
            "results": [dict(r) for r in self.results],
        }

    def to_event(self) -> Dict[str, Any]:
        """Body of the outbound `submit_measurement` event."""
        return {
            "id": self.order_id,
            "controller": self.controller,
            "results": [dict(r) for r in self.results],
        }
