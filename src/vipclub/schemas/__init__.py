"""Pydantic schemas for API requests/responses."""

from vipclub.schemas.common import AccessErrorResponse, ErrorResponse

__all__ = [
    "AccessErrorResponse",
    "ErrorResponse",
]
