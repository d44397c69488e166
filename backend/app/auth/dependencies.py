"""
FastAPI dependencies for authentication and service wiring.
Provides get_current_caller (Firebase JWT verification) and
get_signing_service (the instance built at startup).
"""
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import settings
from app.auth.firebase import verify_firebase_token
from app.storage.errors import ConfigurationError
from app.storage.signing_service import Caller, SigningService

# HTTPBearer scheme for extracting Authorization header
security = HTTPBearer()


async def get_current_caller(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Caller:
    """
    FastAPI dependency that verifies a Firebase JWT token.

    Flow:
    1. Extract Bearer token from Authorization header
    2. Verify token with Firebase Admin SDK
    3. Return the caller identity (uid, email)

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    token = credentials.credentials

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        decoded_token = verify_firebase_token(token, check_revoked=settings.firebase_check_revoked)
    except (ValueError, RuntimeError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    uid = decoded_token.get("uid")
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing uid"
        )

    return Caller(uid=uid, email=decoded_token.get("email"))


def get_signing_service(request: Request) -> SigningService:
    """
    Return the signing service built at startup.

    Raises:
        ConfigurationError: if storage credentials were missing at startup
    """
    service = getattr(request.app.state, "signing_service", None)
    if service is None:
        error = getattr(request.app.state, "signing_config_error", None)
        raise ConfigurationError(str(error) if error else "Storage service not configured")
    return service
