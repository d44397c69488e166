"""
Signing service: the authorization boundary in front of the signer.

Handles the business logic for issuing presigned upload URLs and for
deleting objects on behalf of an authorized caller.

Flow:
1. Caller identity is verified upstream (Firebase ID token)
2. Service checks the caller is allowed to request grants
3. Key is validated, content type defaulted
4. Signer produces a PUT URL bound to key + content type
5. Caller receives upload URL + stable public URL

The service holds no per-request state and is safe to call concurrently.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from app.storage.credentials import R2Credential
from app.storage.errors import AuthorizationError, ConfigurationError, UpstreamError
from app.storage.r2_client import R2Client
from app.storage.signer import (
    DEFAULT_EXPIRES,
    DEFAULT_REGION,
    Operation,
    SigningRequest,
    presign_url,
    validate_expires,
    validate_key,
)
from app.utils.logging import log_object_deleted, log_upload_signed
from app.utils.metrics import object_deletes_total, upload_grants_total

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class Caller:
    """Pre-validated caller identity from the auth collaborator."""
    uid: str
    email: Optional[str] = None


@dataclass(frozen=True)
class SigningResult:
    upload_url: str
    public_url: str
    key: str
    expires_at: datetime


class SigningService:
    """
    Issues upload grants and performs deletes.

    Responsibilities:
    - Authorize the caller
    - Validate object keys
    - Produce presigned PUT URLs
    - Delete objects server-side (one per request, never batched)
    """

    def __init__(
        self,
        credential: R2Credential,
        public_base_url: str,
        store: R2Client,
        region: str = DEFAULT_REGION,
        expires: int = DEFAULT_EXPIRES,
        admin_emails: Iterable[str] = (),
    ):
        if not public_base_url:
            raise ConfigurationError("Missing storage configuration: public_base_url")
        self._credential = credential
        self._public_base_url = public_base_url.rstrip("/")
        self._store = store
        self._region = region
        self._expires = validate_expires(expires)
        self._admin_emails = frozenset(e.lower() for e in admin_emails)

    @classmethod
    def from_settings(cls, settings) -> "SigningService":
        """
        Build the service from settings. Called once at startup.

        Raises:
            ConfigurationError: if any storage setting is missing
        """
        credential = R2Credential.from_settings(settings)
        public_base_url = settings.r2_public_base_url
        if not public_base_url:
            raise ConfigurationError("Missing storage configuration: r2_public_base_url")
        return cls(
            credential=credential,
            public_base_url=public_base_url,
            store=R2Client(credential, region=settings.r2_region),
            region=settings.r2_region,
            expires=settings.r2_presign_expiration,
            admin_emails=settings.admin_emails,
        )

    @property
    def expires(self) -> int:
        return self._expires

    def public_url(self, key: str) -> str:
        """Stable unsigned URL of the object once uploaded."""
        return f"{self._public_base_url}/{key}"

    def authorize(self, caller: Caller) -> None:
        """
        Check the caller may use the signer.

        Raises:
            AuthorizationError: if an allow-list is configured and the caller is not on it
        """
        if not self._admin_emails:
            return
        if not caller.email or caller.email.lower() not in self._admin_emails:
            logger.warning(f"Caller {caller.uid} is not allowed to request storage grants")
            raise AuthorizationError("Caller is not allowed to manage gallery media")

    def create_upload_grant(
        self,
        caller: Caller,
        key: str,
        content_type: Optional[str] = None,
        timestamp: Optional[datetime] = None,
    ) -> SigningResult:
        """
        Create a presigned PUT URL for direct upload.

        Args:
            caller: Verified caller identity
            key: Object key to write
            content_type: MIME type the client will send (defaults to application/octet-stream)
            timestamp: Signing time (defaults to now)

        Returns:
            SigningResult with upload URL, public URL and expiry

        Raises:
            AuthorizationError: caller not allowed
            ValidationError: malformed key

        Security:
            - URL expires after the configured time
            - Only allows PUT of this exact key
            - Content-Type must match what was signed
        """
        self.authorize(caller)
        validate_key(key)
        content_type = (content_type or "").strip() or DEFAULT_CONTENT_TYPE

        presigned = presign_url(
            self._credential,
            SigningRequest(
                key=key,
                content_type=content_type,
                operation=Operation.PUT,
                expires=self._expires,
            ),
            timestamp=timestamp,
            region=self._region,
        )

        upload_grants_total.inc()
        log_upload_signed(logger, object_key=key, user_id=caller.uid, content_type=content_type)

        return SigningResult(
            upload_url=presigned.url,
            public_url=self.public_url(key),
            key=key,
            expires_at=presigned.expires_at,
        )

    def delete_object(self, caller: Caller, key: str) -> None:
        """
        Delete an object immediately. Irreversible.

        Raises:
            AuthorizationError: caller not allowed
            ValidationError: malformed key
            UpstreamError: the store rejected the delete (not retried)
        """
        self.authorize(caller)
        validate_key(key)

        try:
            self._store.delete_object(key)
        except UpstreamError:
            object_deletes_total.labels(outcome="failed").inc()
            raise

        object_deletes_total.labels(outcome="deleted").inc()
        log_object_deleted(logger, object_key=key, user_id=caller.uid)

    def object_exists(self, caller: Caller, key: str) -> bool:
        """
        Check whether an object is in the bucket.

        Raises:
            AuthorizationError: caller not allowed
            ValidationError: malformed key
            UpstreamError: the store failed to answer
        """
        self.authorize(caller)
        validate_key(key)
        return self._store.check_object_exists(key)
