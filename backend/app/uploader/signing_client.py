"""
HTTP clients used by the uploader.

SigningClient talks to the signing service (JSON over HTTPS with a
Firebase bearer token). ObjectStoreClient performs the raw PUT against
a presigned URL and never sends the bearer token.
"""
import logging
from datetime import datetime
from typing import Optional

import httpx

from app.storage.errors import (
    AuthorizationError,
    TransferError,
    UpstreamError,
    ValidationError,
)
from app.storage.signing_service import SigningResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(connect=10.0, read=30.0, write=30.0, pool=10.0)
# Transfers write whole files; allow slow uplinks
TRANSFER_TIMEOUT = httpx.Timeout(connect=10.0, read=120.0, write=600.0, pool=10.0)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)


class SigningClient:
    """Client for the signing service endpoints."""

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self._auth_token = auth_token
        self.http = http or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=10.0) if timeout else DEFAULT_TIMEOUT,
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> "SigningClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _post(self, path: str, payload: dict) -> dict:
        headers = {}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        try:
            response = await self.http.post(path, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Signing service unreachable: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthorizationError(f"Signing service refused caller: {_error_message(response)}")
        if response.status_code in (400, 422):
            raise ValidationError(f"Signing service rejected request: {_error_message(response)}")
        if response.status_code >= 400:
            raise UpstreamError(
                f"Signing service error {response.status_code}: {_error_message(response)}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError("Signing service returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise UpstreamError(f"Signing service returned {type(data).__name__}, expected an object")
        return data

    async def request_upload_url(self, key: str, content_type: str) -> SigningResult:
        """
        Request a presigned PUT URL for key.

        Raises:
            AuthorizationError, ValidationError, UpstreamError
        """
        data = await self._post("/api/uploads/presign", {"key": key, "contentType": content_type})
        try:
            return SigningResult(
                upload_url=data["uploadURL"],
                public_url=data["publicURL"],
                key=data.get("key", key),
                expires_at=datetime.fromisoformat(data["expiresAt"].replace("Z", "+00:00")),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamError(f"Malformed signing response: {exc}") from exc

    async def delete_object(self, key: str) -> None:
        """
        Ask the signing service to delete an object.

        Raises:
            AuthorizationError, ValidationError, UpstreamError
        """
        data = await self._post("/api/uploads/delete", {"key": key})
        if not data.get("success"):
            raise UpstreamError(f"Delete of {key} was not acknowledged")


class ObjectStoreClient:
    """Raw PUTs against presigned URLs."""

    def __init__(self, http: Optional[httpx.AsyncClient] = None):
        self.http = http or httpx.AsyncClient(timeout=TRANSFER_TIMEOUT)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def put(self, upload_url: str, content: bytes, content_type: str) -> None:
        """
        Upload the full body in one PUT.

        Content-Type must be exactly what was signed.

        Raises:
            TransferError: non-2xx response or connection failure
        """
        try:
            response = await self.http.put(
                upload_url,
                content=content,
                headers={"Content-Type": content_type},
            )
        except httpx.HTTPError as exc:
            raise TransferError(f"Upload failed: {exc}") from exc

        if not response.is_success:
            raise TransferError(
                f"Upload failed: {response.status_code} {response.reason_phrase}",
                status=response.status_code,
            )
