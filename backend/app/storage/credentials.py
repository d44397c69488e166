"""
Immutable storage credential.

Built once at startup from settings and injected into the signing service.
Request handlers never read the environment themselves.
"""
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlsplit

from app.storage.errors import ConfigurationError


@dataclass(frozen=True)
class R2Credential:
    """
    Credentials for an S3-compatible bucket.

    Attributes:
        access_key_id: Access key ID
        secret_access_key: Secret access key (never logged, masked in repr)
        account_endpoint: Account endpoint URL, e.g. https://<account>.r2.cloudflarestorage.com
        bucket: Bucket name
    """
    access_key_id: str
    secret_access_key: str = field(repr=False)
    account_endpoint: str
    bucket: str

    def __post_init__(self):
        missing = [
            name for name in ("access_key_id", "secret_access_key", "account_endpoint", "bucket")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing storage configuration: {', '.join(missing)}"
            )
        if not urlsplit(self.account_endpoint).netloc:
            raise ConfigurationError(
                f"Invalid storage endpoint: {self.account_endpoint!r}"
            )

    @property
    def endpoint_host(self) -> str:
        """Host of the account endpoint (without scheme)."""
        return urlsplit(self.account_endpoint).netloc

    @property
    def scheme(self) -> str:
        return urlsplit(self.account_endpoint).scheme or "https"

    @property
    def host(self) -> str:
        """Virtual-hosted bucket host: {bucket}.{endpoint-host}."""
        return f"{self.bucket}.{self.endpoint_host}"

    @classmethod
    def from_settings(cls, settings) -> "R2Credential":
        """
        Build the credential from application settings.

        The endpoint is taken from R2_ENDPOINT, or derived from R2_ACCOUNT_ID.

        Raises:
            ConfigurationError: if any field is missing
        """
        endpoint: Optional[str] = settings.r2_endpoint
        if not endpoint and settings.r2_account_id:
            endpoint = f"https://{settings.r2_account_id}.r2.cloudflarestorage.com"

        secret = settings.r2_secret_access_key
        return cls(
            access_key_id=settings.r2_access_key_id or "",
            secret_access_key=secret.get_secret_value() if secret else "",
            account_endpoint=endpoint or "",
            bucket=settings.r2_bucket or "",
        )
