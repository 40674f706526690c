"""
Order data models.

These models represent inspection work orders as they flow through the
station: received -> selected for measurement -> submitted -> archived.

Immutability:
    - Order, Definition and CompletedResult are frozen dataclasses
    - The order store replaces whole entries, it never mutates fields
    - A measurement session holds these frozen values, so it can never
      corrupt the store's collections

Definition sources:
    An order carries its definitions either as an embedded measurement
    request document (MarkupSource) or as an already structured list
    (StructuredSource). The two are resolved into Definition objects only by
    modules.normalizer.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

from modules.i18n import DEFAULT_LANGUAGE, gdt_label
from modules.numeric import parse_decimal
from .measurement import MeasurementStatus


def utc_now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-empty value among alias keys."""
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return default


def _number_or_zero(value: Any) -> float:
    number = parse_decimal(value)
    return 0.0 if math.isnan(number) else number


@dataclass(frozen=True)
class Definition:
    """
    One measurable characteristic of an order.

    Tolerances are unsigned magnitudes. The acceptance interval is
    [nominal - lower_tol, nominal + upper_tol].
    """

    id: str
    """Unique within the owning order (e.g. 'M1')."""

    nominal: float
    """Target value."""

    upper_tol: float
    """Allowed deviation above nominal (magnitude)."""

    lower_tol: float
    """Allowed deviation below nominal (magnitude)."""

    gdt_type: str = "none"
    """Geometric characteristic tag, free-form."""

    description: str = ""
    """Optional text shown next to the field."""

    @property
    def lower_limit(self) -> float:
        return self.nominal - abs(self.lower_tol)

    @property
    def upper_limit(self) -> float:
        return self.nominal + abs(self.upper_tol)

    def label(self, lang: str = DEFAULT_LANGUAGE) -> str:
        """Display label of the geometric tag; unknown tags read as a plain dimension."""
        return gdt_label(self.gdt_type, lang)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire format."""
        return {
            "id": self.id,
            "nominal": self.nominal,
            "upperTol": self.upper_tol,
            "lowerTol": self.lower_tol,
            "gdtType": self.gdt_type,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Definition":
        """
        Create from a wire snapshot (e.g. the `def` of an archived result).

        Numbers go through the numeric parser; unreadable numbers become 0.
        Tolerances are stored as magnitudes.
        """
        return cls(
            id=str(_first(data, "id", default="")),
            nominal=_number_or_zero(data.get("nominal")),
            upper_tol=abs(_number_or_zero(_first(data, "upperTol", "upper_tol"))),
            lower_tol=abs(_number_or_zero(_first(data, "lowerTol", "lower_tol"))),
            gdt_type=str(_first(data, "gdtType", "gdt_type", default="none")),
            description=str(data.get("description") or ""),
        )


@dataclass(frozen=True)
class MarkupSource:
    """Definitions embedded as a measurement request document."""

    markup: str


@dataclass(frozen=True)
class StructuredSource:
    """Definitions delivered as a list of parameter dictionaries."""

    items: Tuple[Dict[str, Any], ...] = ()


DefinitionSource = Union[MarkupSource, StructuredSource]


@dataclass(frozen=True)
class CompletedResult:
    """
    Immutable record of one measured definition on an archived card.
    """

    id: str
    """Definition id."""

    measured: str
    """Final value as entered."""

    status: MeasurementStatus
    """Verdict at submission time."""

    definition: Optional[Definition] = None
    """Snapshot of the definition at submission time."""

    controller: str = ""
    """Signer who attested the card."""

    timestamp: str = ""
    """When the card was completed (ISO 8601)."""

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "measured": self.measured,
            "status": self.status.value,
            "controller": self.controller,
            "timestamp": self.timestamp,
        }
        if self.definition is not None:
            data["def"] = self.definition.to_dict()
        return data

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        controller: str = "",
        timestamp: str = ""
    ) -> "CompletedResult":
        """Create from wire data; card-level controller/timestamp fill gaps."""
        definition_data = data.get("def")
        return cls(
            id=str(_first(data, "id", default="")),
            measured=str(_first(data, "measured", default="")),
            status=MeasurementStatus.from_value(data.get("status")),
            definition=(
                Definition.from_dict(definition_data)
                if isinstance(definition_data, dict) else None
            ),
            controller=str(_first(data, "controller", default=controller)),
            timestamp=str(_first(data, "timestamp", "completedAt", default=timestamp)),
        )


@dataclass(frozen=True)
class Order:
    """
    A unit of inspection work.

    Lifecycle:
        1. Introduced by an `order_created` event or an initial snapshot
        2. Replaced as a whole by later events (never mutated)
        3. Removed from active by `order_completed`; the completed copy
           (with results and completed_at) goes to the archive
    """

    id: str
    """Opaque identifier assigned by the order service."""

    article_number: str = ""
    """Article being inspected."""

    drawing_number: str = ""
    """Drawing the tolerances come from."""

    source: DefinitionSource = field(default_factory=StructuredSource)
    """Where the definitions come from (resolved by the normalizer)."""

    received_at: str = ""
    """When the order reached the station (ISO 8601)."""

    completed_at: Optional[str] = None
    """Set only on archived orders."""

    controller: str = ""
    """Signer of an archived card."""

    results: Tuple[CompletedResult, ...] = ()
    """Results of an archived card."""

    @property
    def is_archived(self) -> bool:
        return self.completed_at is not None

    def archive(
        self,
        results: Tuple[CompletedResult, ...],
        controller: str,
        completed_at: Optional[str] = None
    ) -> "Order":
        """Return the archived copy of this order carrying its results."""
        return replace(
            self,
            results=tuple(results),
            controller=controller,
            completed_at=completed_at or utc_now_iso(),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire format."""
        data: Dict[str, Any] = {
            "id": self.id,
            "articleNumber": self.article_number,
            "drawingNumber": self.drawing_number,
            "receivedAt": self.received_at,
        }

        if isinstance(self.source, MarkupSource):
            data["xml"] = self.source.markup
        else:
            data["definitions"] = [dict(item) for item in self.source.items]

        if self.is_archived:
            data["completedAt"] = self.completed_at
            data["controller"] = self.controller
            data["results"] = [r.to_dict() for r in self.results]

        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], received_at: Optional[str] = None) -> "Order":
        """
        Create Order from an event or API payload.

        Accepts both the current keys (articleNumber, drawingNumber) and the
        handheld client's short keys (article, drawing).

        Args:
            data: Order payload
            received_at: Ingestion time used when the payload has none

        Returns:
            Order instance
        """
        markup = _first(data, "xml", "rawXml", "markup")
        if isinstance(markup, str) and markup.strip():
            source: DefinitionSource = MarkupSource(markup)
        else:
            items = _first(data, "definitions", "parameters", default=[])
            if not isinstance(items, (list, tuple)):
                items = []
            source = StructuredSource(tuple(dict(i) for i in items if isinstance(i, dict)))

        completed_at = _first(data, "completedAt", "completed_at")
        controller = str(_first(data, "controller", "signature", default=""))
        results_data = data.get("results") or []
        results = tuple(
            CompletedResult.from_dict(r, controller=controller, timestamp=completed_at or "")
            for r in results_data
            if isinstance(r, dict)
        )

        return cls(
            id=str(_first(data, "id", "requestId", default="")),
            article_number=str(_first(data, "articleNumber", "article", default="")),
            drawing_number=str(_first(data, "drawingNumber", "drawing", default="")),
            source=source,
            received_at=str(
                _first(data, "receivedAt", "received_at", "timestamp")
                or received_at
                or utc_now_iso()
            ),
            completed_at=str(completed_at) if completed_at else None,
            controller=controller,
            results=results,
        )
