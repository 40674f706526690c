"""
Custom exceptions for MeasureStation.

Exception Hierarchy:
    MeasureStationError (base)
    ├── ServiceUnavailableError  - Order service not reachable (runtime, retry)
    ├── StaleDeliveryError       - Event arrived before a baseline snapshot
    ├── MalformedMarkupError     - Order markup cannot be read
    ├── SessionStateError        - Invalid measurement session transition
    ├── UnknownOrderError        - Order id not present in the active set
    └── SubmissionRejectedError  - Measurement card delivery failed (retryable)

Usage:
    None of these are fatal. StaleDeliveryError is recovered by discarding the
    event; the others are shown to the operator with a retry path.
"""

from typing import Optional, Dict, Any


class MeasureStationError(Exception):
    """
    Base exception for all MeasureStation errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ServiceUnavailableError(MeasureStationError):
    """
    The order service is not reachable or answered with an error.

    Raised by the legacy HTTP client. The polling loop logs it and retries on
    the next interval; routes answer 503.
    """

    def __init__(self, message: str = "Order service is not available", url: str = ""):
        details = {
            "url": url,
            "resolution": "Check ORDER_SERVICE_URL and that the service is running",
        }
        super().__init__(message, details)
        self.url = url


class StaleDeliveryError(MeasureStationError):
    """
    A reconciliation event arrived before any snapshot established a baseline.

    The event must be discarded, never applied to the stale collections.
    """

    def __init__(self, event: str):
        message = f"Discarded '{event}' received before initial state"
        super().__init__(message, {"event": event})
        self.event = event


class MalformedMarkupError(MeasureStationError):
    """Order markup could not be parsed into an order document."""

    def __init__(self, message: str, snippet: str = ""):
        details = {"snippet": snippet[:120]} if snippet else None
        super().__init__(message, details)


class SessionStateError(MeasureStationError):
    """
    An operation is not allowed in the current measurement session state.

    Examples: opening signing with empty fields, submitting without a signer,
    editing while browsing.
    """

    def __init__(self, operation: str, state: str, reason: str = ""):
        message = f"Cannot {operation} while {state}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, {"operation": operation, "state": state})
        self.operation = operation
        self.state = state


class UnknownOrderError(MeasureStationError):
    """The requested order is not in the active collection."""

    def __init__(self, order_id: str):
        super().__init__(f"Order not found: {order_id}", {"order_id": order_id})
        self.order_id = order_id


class SubmissionRejectedError(MeasureStationError):
    """
    Outbound delivery of a measurement card (or delete request) failed.

    Shown to the operator as a retryable failure. Any optimistic removal from
    the active collection has already been undone when this propagates.
    """

    def __init__(
        self,
        message: str,
        order_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if order_id:
            error_details["order_id"] = order_id
        error_details.setdefault("resolution", "Check the connection and submit again")
        super().__init__(message, error_details)
        self.order_id = order_id
