"""
Firebase Admin SDK initialization and ID token verification.
Initializes Firebase Admin SDK once at application startup.

The gallery admin console signs in with Firebase; the signing service
only verifies the resulting ID tokens.
"""
import json
import os
import logging
from typing import Optional
import firebase_admin
from firebase_admin import credentials, auth

from app.storage.errors import UpstreamError

logger = logging.getLogger(__name__)


# Global Firebase app instance
_firebase_app: Optional[firebase_admin.App] = None


def load_credential(source: Optional[str]) -> credentials.Base:
    """
    Build a Firebase credential.

    source may be a path to a service account file or the JSON itself.
    Without a source, application default credentials are used (gcloud).
    """
    if not source:
        return credentials.ApplicationDefault()

    if os.path.exists(source):
        logger.info(f"Loaded Firebase credentials from file: {source}")
        return credentials.Certificate(source)

    try:
        info = json.loads(source)
    except json.JSONDecodeError:
        raise ValueError("FIREBASE_CREDENTIALS_JSON must be a valid file path or JSON string")
    logger.info("Loaded Firebase credentials from JSON string")
    return credentials.Certificate(info)


def initialize_firebase(project_id: Optional[str], credentials_source: Optional[str] = None) -> None:
    """
    Initialize Firebase Admin SDK. Safe to call more than once.

    Raises:
        ValueError: if project_id is missing or the credential source is unusable
    """
    global _firebase_app

    if _firebase_app is not None:
        return

    if not project_id:
        raise ValueError("FIREBASE_PROJECT_ID must be set")

    _firebase_app = firebase_admin.initialize_app(
        load_credential(credentials_source),
        {"projectId": project_id}
    )
    logger.info(f"Firebase initialized for project {project_id}")


def verify_firebase_token(token: str, check_revoked: bool = False) -> dict:
    """
    Verify a Firebase ID token and return its claims (uid, email, ...).

    Raises:
        RuntimeError: Firebase was never initialized
        ValueError: token invalid, expired or revoked
        UpstreamError: Google signing certificates could not be fetched
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase Admin SDK not initialized. Call initialize_firebase() first.")

    try:
        # Verifies signature, expiration, issuer and audience
        return auth.verify_id_token(token, app=_firebase_app, check_revoked=check_revoked)
    except auth.CertificateFetchError as e:
        logger.error(f"Could not fetch Firebase certificates: {e}")
        raise UpstreamError("Identity provider unavailable") from e
    except (auth.ExpiredIdTokenError, auth.RevokedIdTokenError, auth.InvalidIdTokenError) as e:
        raise ValueError(str(e)) from e
    except auth.UserDisabledError as e:
        raise ValueError("User account is disabled") from e
