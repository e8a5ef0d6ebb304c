"""
Error response schemas for API documentation and consistent error formatting.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["end_date"])
    message: str = Field(..., description="Human-readable error message")
    type: Optional[str] = Field(None, description="Error type identifier", examples=["missing"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["BOOKING_OVERLAP"])
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Property is not available for the selected dates"]
    )
    timestamp: str = Field(..., description="Error timestamp in ISO format")
    request_id: Optional[str] = Field(None, description="Unique request identifier for tracking")
    details: Optional[List[ErrorDetail]] = Field(None, description="Detailed validation errors")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    error: ErrorResponse = Field(..., description="Error information")


def _example(code: str, message: str) -> Dict[str, Any]:
    return {
        "summary": message,
        "value": {
            "error": {
                "code": code,
                "message": message,
                "timestamp": "2024-06-01T00:00:00Z",
                "request_id": "abc12345",
            }
        },
    }


def _response(description: str, *examples) -> Dict[str, Any]:
    return {
        "description": description,
        "model": APIErrorResponse,
        "content": {
            "application/json": {
                "examples": {code.lower(): _example(code, message) for code, message in examples}
            }
        },
    }


COMMON_ERROR_RESPONSES = {
    400: _response(
        "Bad Request - Business rule rejected the request",
        ("BAD_REQUEST", "Invalid request parameters"),
    ),
    401: _response(
        "Unauthorized - Authentication required",
        ("UNAUTHORIZED", "Authentication required"),
    ),
    403: _response(
        "Forbidden - Access denied",
        ("FORBIDDEN", "Access forbidden"),
    ),
    404: _response(
        "Not Found - Resource not found",
        ("NOT_FOUND", "Resource not found"),
    ),
    409: _response(
        "Conflict - Resource conflict",
        ("CONFLICT", "Resource already exists"),
    ),
    422: _response(
        "Unprocessable Entity - Validation error",
        ("VALIDATION_ERROR", "Request validation failed"),
    ),
    500: _response(
        "Internal Server Error - Unexpected error",
        ("INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later."),
    ),
}

BOOKING_ERROR_RESPONSES = {
    400: _response(
        "Bad Request - Booking rule violated",
        ("PROPERTY_INACTIVE", "Property is not available for booking"),
        ("DATE_IN_PAST", "Start date cannot be in the past"),
        ("INVALID_DATE_RANGE", "End date must be after start date"),
        ("OUTSIDE_AVAILABILITY_WINDOW", "Selected dates are outside the property's availability window"),
        ("BOOKING_OVERLAP", "Property is not available for the selected dates"),
    ),
    403: _response(
        "Forbidden - Not allowed for this booking",
        ("BOOKING_ACCESS_DENIED", "You do not have access to this booking"),
        ("TRANSITION_FORBIDDEN", "You do not have permission to update this booking"),
        ("DELETE_FORBIDDEN", "You do not have permission to delete this booking"),
    ),
    404: _response(
        "Not Found",
        ("PROPERTY_NOT_FOUND", "Property not found"),
        ("BOOKING_NOT_FOUND", "Booking not found"),
    ),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """Pick documented error responses for a route, booking codes first."""
    responses = {}
    for code in status_codes:
        if code in BOOKING_ERROR_RESPONSES:
            responses[code] = BOOKING_ERROR_RESPONSES[code]
        elif code in COMMON_ERROR_RESPONSES:
            responses[code] = COMMON_ERROR_RESPONSES[code]
    return responses


def get_common_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    return {code: COMMON_ERROR_RESPONSES[code] for code in status_codes if code in COMMON_ERROR_RESPONSES}
