"""
Upload endpoints for presigned URL generation and object deletion.

Implements the direct-to-storage upload flow:
1. POST /uploads/presign - Get presigned PUT URL for an object key
2. POST /uploads/delete - Delete an object server-side
3. POST /uploads/exists - Check whether an upload landed (reconciliation)

Why this approach?
- Service never handles file bytes (no bandwidth/memory issues)
- Files go directly from the uploader to R2 storage
- Storage credentials never leave this process

Security:
- All endpoints require Firebase JWT authentication
- Presigned URLs expire after 1 hour (configurable)
- URLs are bound to one key, one verb and one content type
"""
from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_caller, get_signing_service
from app.schemas.uploads import (
    DeleteRequest,
    DeleteResponse,
    ErrorResponse,
    ExistsRequest,
    ExistsResponse,
    PresignRequest,
    PresignResponse,
)
from app.storage.signing_service import Caller, SigningService

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


@router.post("/presign", response_model=PresignResponse, responses=ERROR_RESPONSES)
async def presign_upload(
    request: PresignRequest,
    caller: Caller = Depends(get_current_caller),
    service: SigningService = Depends(get_signing_service),
):
    """
    Generate a presigned URL for direct file upload to R2.

    Client then PUTs the file to uploadURL with the same Content-Type
    and reads it back from publicURL.

    Requires valid Firebase JWT token.
    """
    result = service.create_upload_grant(
        caller,
        key=request.key,
        content_type=request.content_type,
    )

    return PresignResponse(
        upload_url=result.upload_url,
        public_url=result.public_url,
        key=result.key,
        expires_at=result.expires_at,
    )


@router.post("/delete", response_model=DeleteResponse, responses=ERROR_RESPONSES)
async def delete_object(
    request: DeleteRequest,
    caller: Caller = Depends(get_current_caller),
    service: SigningService = Depends(get_signing_service),
):
    """
    Delete an object from R2 immediately.

    Irreversible. One object per request.

    Requires valid Firebase JWT token.
    """
    service.delete_object(caller, request.key)
    return DeleteResponse(success=True, key=request.key)


@router.post("/exists", response_model=ExistsResponse, responses=ERROR_RESPONSES)
async def object_exists(
    request: ExistsRequest,
    caller: Caller = Depends(get_current_caller),
    service: SigningService = Depends(get_signing_service),
):
    """
    Report whether an object is present in R2.

    Used to reconcile orphan candidates logged by the uploader.

    Requires valid Firebase JWT token.
    """
    exists = service.object_exists(caller, request.key)
    return ExistsResponse(key=request.key, exists=exists)
