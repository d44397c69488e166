"""
Storage module for S3-compatible object storage (Cloudflare R2).

This module handles direct uploads from clients using presigned URLs.
The signing service NEVER receives file bytes - files go directly to R2.
"""
from app.storage.credentials import R2Credential
from app.storage.r2_client import R2Client
from app.storage.signing_service import Caller, SigningResult, SigningService

__all__ = ["R2Credential", "R2Client", "Caller", "SigningResult", "SigningService"]
