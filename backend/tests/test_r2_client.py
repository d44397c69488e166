"""
Tests for the boto3-backed R2 client.
"""
import pytest
from unittest.mock import MagicMock
from botocore.exceptions import ClientError, EndpointConnectionError

from app.storage.credentials import R2Credential
from app.storage.errors import UpstreamError
from app.storage.r2_client import R2Client


def client_error(code: str, operation: str = "DeleteObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def boto_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def r2(credential: R2Credential, boto_client: MagicMock) -> R2Client:
    return R2Client(credential, client=boto_client)


class TestDeleteObject:

    def test_delete_success(self, r2: R2Client, boto_client: MagicMock):
        r2.delete_object("galleries/g1/a.jpg")
        boto_client.delete_object.assert_called_once_with(Bucket="gallery-media", Key="galleries/g1/a.jpg")

    def test_delete_missing_object_is_success(self, r2: R2Client, boto_client: MagicMock):
        boto_client.delete_object.side_effect = client_error("NoSuchKey")
        r2.delete_object("galleries/g1/a.jpg")

    def test_delete_rejected(self, r2: R2Client, boto_client: MagicMock):
        boto_client.delete_object.side_effect = client_error("AccessDenied")
        with pytest.raises(UpstreamError):
            r2.delete_object("galleries/g1/a.jpg")

    def test_delete_connection_failure(self, r2: R2Client, boto_client: MagicMock):
        boto_client.delete_object.side_effect = EndpointConnectionError(endpoint_url="https://r2.test")
        with pytest.raises(UpstreamError):
            r2.delete_object("galleries/g1/a.jpg")


class TestObjectExists:

    def test_exists(self, r2: R2Client, boto_client: MagicMock):
        assert r2.check_object_exists("galleries/g1/a.jpg") is True

    def test_not_found(self, r2: R2Client, boto_client: MagicMock):
        boto_client.head_object.side_effect = client_error("404", "HeadObject")
        assert r2.check_object_exists("galleries/g1/a.jpg") is False

    def test_other_error(self, r2: R2Client, boto_client: MagicMock):
        boto_client.head_object.side_effect = client_error("403", "HeadObject")
        with pytest.raises(UpstreamError):
            r2.check_object_exists("galleries/g1/a.jpg")
