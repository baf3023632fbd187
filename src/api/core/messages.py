"""Centralized message codes and default messages for API responses."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel


class MessageCode(str, Enum):
    """Centralized message codes for API responses."""

    # Success codes
    SUCCESS = "SUCCESS"

    # Map engine
    MAP_CLUSTERS_COMPUTED = "MAP_CLUSTERS_COMPUTED"
    MAP_MARKERS_RECONCILED = "MAP_MARKERS_RECONCILED"
    MAP_VISIBLE_LISTINGS = "MAP_VISIBLE_LISTINGS"
    PROJECTION_UNAVAILABLE = "PROJECTION_UNAVAILABLE"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"


# Default messages for each message code
DEFAULT_MESSAGES = {
    MessageCode.SUCCESS: "Operation completed successfully",
    # Map engine
    MessageCode.MAP_CLUSTERS_COMPUTED: "Map clusters computed",
    MessageCode.MAP_MARKERS_RECONCILED: "Map markers reconciled",
    MessageCode.MAP_VISIBLE_LISTINGS: "Visible listings computed",
    MessageCode.PROJECTION_UNAVAILABLE: "Map projection unavailable for this camera",
    # Validation errors
    MessageCode.VALIDATION_ERROR: "Validation failed",
    MessageCode.INVALID_INPUT: "Invalid input provided",
    MessageCode.PAYLOAD_TOO_LARGE: "Request payload too large",
    # Generic errors
    MessageCode.INTERNAL_ERROR: "Internal server error",
    MessageCode.BAD_REQUEST: "Bad request",
    MessageCode.NOT_FOUND: "Resource not found",
}

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Base API response model with consistent structure and proper typing."""

    message_code: MessageCode
    message: str
    data: T | None = None

    @classmethod
    def success(
        cls,
        message_code: MessageCode = MessageCode.SUCCESS,
        message: str | None = None,
        data: T | None = None,
    ) -> "APIResponse[T]":
        """Create a success response."""
        return cls(
            message_code=message_code,
            message=message or DEFAULT_MESSAGES.get(message_code, "Success"),
            data=data,
        )


def get_default_message(message_code: MessageCode) -> str:
    """Get default message for a message code."""
    return DEFAULT_MESSAGES.get(message_code, "Operation completed")
