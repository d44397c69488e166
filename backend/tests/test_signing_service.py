"""
Tests for the signing service business logic.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlsplit

from app.config import Settings
from app.storage.errors import AuthorizationError, ConfigurationError, UpstreamError, ValidationError
from app.storage.signing_service import Caller, SigningService


class TestUploadGrant:
    """Tests for create_upload_grant."""

    def test_grant_contains_urls(self, signing_service: SigningService, caller: Caller):
        result = signing_service.create_upload_grant(
            caller,
            key="galleries/g1/123_ab_a.jpg",
            content_type="image/jpeg",
        )

        assert result.key == "galleries/g1/123_ab_a.jpg"
        assert result.public_url == "https://media.example.com/galleries/g1/123_ab_a.jpg"
        assert result.upload_url.startswith(
            "https://gallery-media.acct123.r2.cloudflarestorage.com/galleries/g1/123_ab_a.jpg?"
        )
        assert "X-Amz-Signature=" in result.upload_url

    def test_grant_is_put_bound_to_content_type(self, signing_service: SigningService, caller: Caller):
        fixed = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
        jpeg = signing_service.create_upload_grant(caller, "galleries/g1/a.jpg", "image/jpeg", timestamp=fixed)
        png = signing_service.create_upload_grant(caller, "galleries/g1/a.jpg", "image/png", timestamp=fixed)

        query = parse_qs(urlsplit(jpeg.upload_url).query)
        assert query["X-Amz-SignedHeaders"] == ["content-type;host"]
        assert jpeg.upload_url != png.upload_url

    def test_grant_expires_in_one_hour(self, signing_service: SigningService, caller: Caller):
        fixed = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
        result = signing_service.create_upload_grant(caller, "galleries/g1/a.jpg", "image/jpeg", timestamp=fixed)
        assert result.expires_at == datetime(2024, 6, 1, 13, 0, 0, tzinfo=timezone.utc)

    def test_missing_content_type_defaults_to_binary(self, signing_service: SigningService, caller: Caller):
        fixed = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
        default = signing_service.create_upload_grant(caller, "galleries/g1/a.bin", None, timestamp=fixed)
        explicit = signing_service.create_upload_grant(
            caller, "galleries/g1/a.bin", "application/octet-stream", timestamp=fixed
        )
        assert default.upload_url == explicit.upload_url

    @pytest.mark.parametrize("key", ["", "/abs/key.jpg", "galleries/../x"])
    def test_invalid_key_rejected(self, signing_service: SigningService, caller: Caller, key: str):
        with pytest.raises(ValidationError):
            signing_service.create_upload_grant(caller, key, "image/jpeg")


class TestAuthorization:
    """Tests for the admin allow-list."""

    def test_allow_list_accepts_listed_caller(self, credential, store):
        service = SigningService(
            credential, "https://media.example.com", store, admin_emails=["Admin@Example.com"]
        )
        result = service.create_upload_grant(Caller(uid="u1", email="admin@example.com"), "galleries/g1/a.jpg")
        assert result.key == "galleries/g1/a.jpg"

    def test_allow_list_rejects_other_caller(self, credential, store):
        service = SigningService(
            credential, "https://media.example.com", store, admin_emails=["admin@example.com"]
        )
        with pytest.raises(AuthorizationError):
            service.create_upload_grant(Caller(uid="u2", email="viewer@example.com"), "galleries/g1/a.jpg")
        with pytest.raises(AuthorizationError):
            service.delete_object(Caller(uid="u3"), "galleries/g1/a.jpg")
        store.delete_object.assert_not_called()


class TestDelete:
    """Tests for server-side deletes."""

    def test_delete_calls_store_once(self, signing_service: SigningService, store: MagicMock, caller: Caller):
        signing_service.delete_object(caller, "galleries/g1/a.jpg")
        store.delete_object.assert_called_once_with("galleries/g1/a.jpg")

    def test_delete_upstream_error_propagates(self, signing_service: SigningService, store: MagicMock, caller: Caller):
        store.delete_object.side_effect = UpstreamError("Storage rejected delete")
        with pytest.raises(UpstreamError):
            signing_service.delete_object(caller, "galleries/g1/a.jpg")
        assert store.delete_object.call_count == 1

    def test_delete_invalid_key(self, signing_service: SigningService, store: MagicMock, caller: Caller):
        with pytest.raises(ValidationError):
            signing_service.delete_object(caller, "")
        store.delete_object.assert_not_called()


class TestObjectExists:
    """Tests for existence checks."""

    def test_asks_store(self, signing_service: SigningService, store: MagicMock, caller: Caller):
        store.check_object_exists.return_value = True
        assert signing_service.object_exists(caller, "galleries/g1/a.jpg") is True
        store.check_object_exists.assert_called_once_with("galleries/g1/a.jpg")

    def test_rejected_caller_never_reaches_store(self, credential, store: MagicMock):
        service = SigningService(credential, "https://media.example.com", store, admin_emails=["owner@example.com"])
        with pytest.raises(AuthorizationError):
            service.object_exists(Caller(uid="x", email="other@example.com"), "galleries/g1/a.jpg")
        store.check_object_exists.assert_not_called()

    def test_invalid_key(self, signing_service: SigningService, store: MagicMock, caller: Caller):
        with pytest.raises(ValidationError):
            signing_service.object_exists(caller, "/galleries/g1/a.jpg")
        store.check_object_exists.assert_not_called()


class TestConfiguration:
    """Tests for building the service from settings."""

    def _settings(self, **overrides) -> Settings:
        values = dict(
            r2_account_id="acct123",
            r2_bucket="gallery-media",
            r2_access_key_id="AKIDGALLERYTEST",
            r2_secret_access_key="secret",
            r2_public_base_url="https://media.example.com/",
        )
        values.update(overrides)
        return Settings(_env_file=None, **values)

    def test_from_settings_derives_endpoint(self):
        with patch("app.storage.signing_service.R2Client") as r2_client:
            service = SigningService.from_settings(self._settings())

        credential = r2_client.call_args.args[0]
        assert credential.account_endpoint == "https://acct123.r2.cloudflarestorage.com"
        assert service.public_url("galleries/g1/a.jpg") == "https://media.example.com/galleries/g1/a.jpg"
        assert service.expires == 3600

    @pytest.mark.parametrize("missing", [
        "r2_secret_access_key",
        "r2_access_key_id",
        "r2_bucket",
        "r2_public_base_url",
    ])
    def test_missing_setting_is_configuration_error(self, missing: str):
        with patch("app.storage.signing_service.R2Client"):
            with pytest.raises(ConfigurationError):
                SigningService.from_settings(self._settings(**{missing: None}))

    def test_missing_endpoint_and_account(self):
        with pytest.raises(ConfigurationError):
            SigningService.from_settings(self._settings(r2_account_id=None, r2_endpoint=None))
