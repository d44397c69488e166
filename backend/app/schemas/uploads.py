"""
Pydantic schemas for the signing endpoints.

JSON field names follow the public wire format (uploadURL, publicURL,
contentType); Python attributes use snake_case.
"""
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional


class PresignRequest(BaseModel):
    """Request schema for presigned upload URL generation."""
    key: str = Field(..., description="Object key to upload to")
    content_type: Optional[str] = Field(
        None,
        alias="contentType",
        description="MIME type the client will send (defaults to application/octet-stream)"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "key": "galleries/g1/1718000000000_3f2a9c1b_beach.jpg",
                "contentType": "image/jpeg"
            }
        }


class PresignResponse(BaseModel):
    """Response schema for presigned upload URL."""
    upload_url: str = Field(..., alias="uploadURL", description="Presigned PUT URL for direct upload")
    public_url: str = Field(..., alias="publicURL", description="Stable public URL once uploaded")
    key: str = Field(..., description="Object key in storage bucket")
    expires_at: datetime = Field(..., alias="expiresAt", description="When the upload URL stops working")

    class Config:
        populate_by_name = True


class DeleteRequest(BaseModel):
    """Request schema for object deletion."""
    key: str = Field(..., description="Object key to delete")


class DeleteResponse(BaseModel):
    """Response schema for object deletion."""
    success: bool = Field(..., description="Whether the delete was performed")
    key: str = Field(..., description="Deleted object key")


class ErrorResponse(BaseModel):
    """Error body returned by the signing endpoints."""
    error: str


class ExistsRequest(BaseModel):
    """Request schema for object existence checks."""
    key: str = Field(..., description="Object key to look up")


class ExistsResponse(BaseModel):
    """Response schema for object existence checks."""
    key: str
    exists: bool
