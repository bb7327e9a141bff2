"""
Pydantic models for API responses.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    """
    Response envelope shared by every cube endpoint.
    """
    Value: Any = Field(description="Response value (type varies by endpoint)")
    ServerTransactionID: int = Field(description="Server transaction ID (auto-incremented)")
    ErrorNumber: int = Field(0, description="Error code (0 = success, non-zero = error)")
    ErrorMessage: str = Field("", description="Error message (empty string if no error)")


def make_response(
    value: Any,
    server_id: int = 0,
    error: Optional[Exception] = None
) -> ApiResponse:
    """
    Helper to create an API response.

    Args:
        value: Response value (usually None if error).
        server_id: Server transaction ID.
        error: Exception (if any).
    """
    if error is None:
        return ApiResponse(Value=value, ServerTransactionID=server_id)

    from ledcube_sync.api.error_mapper import map_exception
    error_number, error_message = map_exception(error)

    return ApiResponse(
        Value=value,
        ServerTransactionID=server_id,
        ErrorNumber=error_number,
        ErrorMessage=error_message
    )
