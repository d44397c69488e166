"""
Application configuration using Pydantic Settings.
All environment variables for the signing service are loaded here.
"""
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Signing service settings loaded from environment variables."""

    # Environment
    environment: str = "dev"
    log_level: str = "INFO"

    # Firebase Authentication (caller identity for the signing endpoints)
    firebase_project_id: Optional[str] = None
    firebase_credentials_json: Optional[str] = None  # Path to JSON file or JSON string
    firebase_check_revoked: bool = False  # Extra round-trip per request

    # Only these accounts may request grants. Empty list = any verified caller.
    admin_emails: List[str] = []

    # Cloudflare R2 / S3-compatible storage
    # These never leave the signing service process
    r2_account_id: Optional[str] = None
    r2_endpoint: Optional[str] = None  # e.g., https://<account_id>.r2.cloudflarestorage.com
    r2_bucket: Optional[str] = None
    r2_access_key_id: Optional[str] = None
    r2_secret_access_key: Optional[SecretStr] = None
    r2_region: str = "auto"  # R2 uses "auto" for region
    r2_public_base_url: Optional[str] = None  # e.g., https://media.example.com
    r2_presign_expiration: int = 3600  # Presigned URL expiration in seconds (1 hour)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
