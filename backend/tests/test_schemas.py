"""
Tests for Pydantic schemas validation.
"""
import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from app.schemas.uploads import DeleteRequest, DeleteResponse, PresignRequest, PresignResponse


class TestPresignSchemas:
    """Tests for presign request/response schemas."""

    def test_request_wire_names(self):
        schema = PresignRequest.model_validate({"key": "galleries/g1/a.jpg", "contentType": "image/jpeg"})
        assert schema.key == "galleries/g1/a.jpg"
        assert schema.content_type == "image/jpeg"

    def test_request_python_names(self):
        schema = PresignRequest(key="galleries/g1/a.jpg", content_type="video/mp4")
        assert schema.content_type == "video/mp4"

    def test_request_content_type_optional(self):
        schema = PresignRequest(key="galleries/g1/a.jpg")
        assert schema.content_type is None

    def test_request_missing_key(self):
        with pytest.raises(ValidationError):
            PresignRequest.model_validate({"contentType": "image/jpeg"})

    def test_response_serializes_wire_names(self):
        expires = datetime(2026, 10, 18, 13, 0, tzinfo=timezone.utc)
        schema = PresignResponse(
            upload_url="https://gallery-media.acct123.r2.cloudflarestorage.com/galleries/g1/a.jpg?X-Amz-Signature=abc",
            public_url="https://media.example.com/galleries/g1/a.jpg",
            key="galleries/g1/a.jpg",
            expires_at=expires,
        )

        data = schema.model_dump(by_alias=True)
        assert set(data) == {"uploadURL", "publicURL", "key", "expiresAt"}
        assert data["expiresAt"] == expires


class TestDeleteSchemas:
    """Tests for delete schemas."""

    def test_delete_request(self):
        assert DeleteRequest(key="galleries/g1/a.jpg").key == "galleries/g1/a.jpg"

    def test_delete_request_missing_key(self):
        with pytest.raises(ValidationError):
            DeleteRequest()

    def test_delete_response(self):
        schema = DeleteResponse(success=True, key="galleries/g1/a.jpg")
        assert schema.model_dump() == {"success": True, "key": "galleries/g1/a.jpg"}
