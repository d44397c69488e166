"""
Uploader configuration using Pydantic Settings.

The uploader never sees storage credentials: it only knows where the
signing service lives and how to authenticate to it.
"""
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class UploaderSettings(BaseSettings):
    """Uploader settings loaded from UPLOADER_* environment variables."""

    signing_service_url: str = "http://localhost:8000"
    auth_token: Optional[SecretStr] = None  # Firebase ID token of the operator
    database_url: Optional[str] = None  # Metadata store, e.g. postgresql+asyncpg://...
    max_concurrency: int = 1  # Files in flight at once
    request_timeout: float = 30.0  # Seconds, signing service calls
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="UPLOADER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
