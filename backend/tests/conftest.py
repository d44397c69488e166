"""
Test configuration and fixtures.
Storage and Firebase are replaced by mocks; no network access is needed.
"""
import os

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"
os.environ.pop("FIREBASE_PROJECT_ID", None)

import pytest
from typing import AsyncGenerator
from unittest.mock import MagicMock

from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from app.storage.credentials import R2Credential
from app.storage.r2_client import R2Client
from app.storage.signing_service import Caller, SigningService


PUBLIC_BASE_URL = "https://media.example.com"


@pytest.fixture
def credential() -> R2Credential:
    """Fixed storage credential."""
    return R2Credential(
        access_key_id="AKIDGALLERYTEST",
        secret_access_key="gallery-test-secret",
        account_endpoint="https://acct123.r2.cloudflarestorage.com",
        bucket="gallery-media",
    )


@pytest.fixture
def store() -> MagicMock:
    """Mocked R2 client (server-side deletes)."""
    return MagicMock(spec=R2Client)


@pytest.fixture
def signing_service(credential: R2Credential, store: MagicMock) -> SigningService:
    return SigningService(
        credential=credential,
        public_base_url=PUBLIC_BASE_URL,
        store=store,
    )


@pytest.fixture
def caller() -> Caller:
    return Caller(uid="admin-uid", email="admin@example.com")


def get_test_app(signing_service: SigningService, caller: Caller) -> FastAPI:
    """Return the FastAPI app with overridden dependencies."""
    from app.main import app
    from app.auth.dependencies import get_current_caller, get_signing_service

    app.dependency_overrides[get_signing_service] = lambda: signing_service
    app.dependency_overrides[get_current_caller] = lambda: caller

    return app


@pytest.fixture
async def client(signing_service: SigningService, caller: Caller) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(signing_service, caller)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()
