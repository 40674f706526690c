"""
Core module for MeasureStation.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- api_client: HTTP client for the legacy order service
- channel: Outbound channel contract and implementations
"""

from .exceptions import (
    MeasureStationError,
    ServiceUnavailableError,
    StaleDeliveryError,
    MalformedMarkupError,
    SessionStateError,
    UnknownOrderError,
    SubmissionRejectedError,
)
from .api_client import OrderServiceClient
from .channel import OutboundChannel, CallbackChannel, LegacyHTTPChannel

__all__ = [
    "MeasureStationError",
    "ServiceUnavailableError",
    "StaleDeliveryError",
    "MalformedMarkupError",
    "SessionStateError",
    "UnknownOrderError",
    "SubmissionRejectedError",
    "OrderServiceClient",
    "OutboundChannel",
    "CallbackChannel",
    "LegacyHTTPChannel",
]
