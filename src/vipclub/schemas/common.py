"""Common schemas used across the API."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str


class AccessErrorResponse(BaseModel):
    """Error returned by access link operations."""

    error: str
    state: str
