"""
Health check endpoint.
Reports whether storage signing is configured.
"""
from fastapi import APIRouter, HTTPException, Request

router = APIRouter()


@router.get("")
async def health_check(request: Request):
    """
    Health check endpoint.
    Returns 503 when storage credentials were missing at startup.
    """
    health_status = {
        "status": "healthy",
        "storage": "configured",
    }

    if getattr(request.app.state, "signing_service", None) is None:
        health_status["storage"] = "not configured"
        health_status["status"] = "unhealthy"
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
