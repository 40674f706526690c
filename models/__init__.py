"""
Data models for MeasureStation.

This module contains:
- Order, Definition, CompletedResult: frozen order data (store-owned)
- MarkupSource, StructuredSource: the two shapes definitions arrive in
- MeasurementEntry, MeasurementStatus: per-field editing state
- SubmissionPayload: frozen measurement card for delivery
"""

from .measurement import MeasurementEntry, MeasurementStatus
from .order import (
    CompletedResult,
    Definition,
    MarkupSource,
    Order,
    StructuredSource,
)
from .submission import SubmissionPayload

__all__ = [
    # Order models
    "Order",
    "Definition",
    "CompletedResult",
    "MarkupSource",
    "StructuredSource",
    # Measurement models
    "MeasurementEntry",
    "MeasurementStatus",
    # Submission
    "SubmissionPayload",
]
