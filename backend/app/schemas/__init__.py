"""
Pydantic schemas for API request/response validation.
"""
from app.schemas.uploads import (
    PresignRequest,
    PresignResponse,
    DeleteRequest,
    DeleteResponse,
    ErrorResponse,
    ExistsRequest,
    ExistsResponse,
)

__all__ = [
    "PresignRequest",
    "PresignResponse",
    "DeleteRequest",
    "DeleteResponse",
    "ErrorResponse",
    "ExistsRequest",
    "ExistsResponse",
]
