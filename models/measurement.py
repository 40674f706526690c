"""
Measurement editing models.

MeasurementEntry is the per-definition editing state that exists only while
an order is open for measurement. It is mutable on purpose: the session
state machine updates `measured` and `status` on every keystroke.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from .order import Definition


class MeasurementStatus(Enum):
    """
    Verdict for one measured value.

    NEUTRAL means "no verdict yet" (empty or unparseable input), never a
    validation failure. FAIL is a valid, submittable outcome: it documents a
    non-conformance.
    """

    NEUTRAL = "NEUTRAL"
    OK = "OK"
    FAIL = "FAIL"

    @classmethod
    def from_value(cls, value: Any) -> "MeasurementStatus":
        """Read a wire status, tolerating case; anything unknown is NEUTRAL."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.NEUTRAL


@dataclass
class MeasurementEntry:
    """
    Editing state for one definition of the order being measured.

    Created with an empty value and NEUTRAL status when the order is
    selected; discarded when the session is cancelled or submitted.
    """

    definition: "Definition"
    """Owning definition (read-only back-reference)."""

    measured: str = ""
    """Raw operator input, not necessarily a valid number."""

    status: MeasurementStatus = MeasurementStatus.NEUTRAL
    """Verdict recomputed on every edit."""

    @property
    def id(self) -> str:
        """Definition id this entry measures."""
        return self.definition.id

    @property
    def is_filled(self) -> bool:
        """Whether the operator has entered anything."""
        return bool(self.measured.strip())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the JSON surface."""
        return {
            "id": self.id,
            "measured": self.measured,
            "status": self.status.value,
            "def": self.definition.to_dict(),
        }
