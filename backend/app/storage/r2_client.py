"""
Cloudflare R2 / S3-compatible storage client.

Uses boto3 with the S3-compatible API for the operations the signing
service performs itself (deleting objects, checking existence).
Upload URLs are produced by app.storage.signer, not by boto3.

Why server-side deletes?
- Deleting is safe to perform on behalf of an authorized caller
- No delete-capable URL ever reaches the client
"""
import logging
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.storage.credentials import R2Credential
from app.storage.errors import UpstreamError

logger = logging.getLogger(__name__)


class R2Client:
    """
    S3-compatible client for Cloudflare R2.

    Wraps a boto3 client built from an injected credential.
    """

    def __init__(self, credential: R2Credential, region: str = "auto", client=None):
        """
        Initialize R2 client with boto3.

        Args:
            credential: Storage credential
            region: Region name ("auto" for R2)
            client: Pre-built boto3 client (tests)
        """
        self._credential = credential
        if client is None:
            # Use signature_version='s3v4' for R2 compatibility
            client = boto3.client(
                's3',
                endpoint_url=credential.account_endpoint,
                aws_access_key_id=credential.access_key_id,
                aws_secret_access_key=credential.secret_access_key,
                region_name=region,
                config=Config(
                    signature_version='s3v4',
                    s3={'addressing_style': 'path'}  # R2 uses path-style
                )
            )
        self._client = client
        logger.info(f"R2 client initialized for bucket: {credential.bucket}")

    @property
    def bucket(self) -> str:
        """Get configured bucket name."""
        return self._credential.bucket

    def check_object_exists(self, object_key: str) -> bool:
        """
        Check if an object exists in the bucket.

        Args:
            object_key: The S3 object key to check

        Returns:
            True if object exists, False if the store answers 404

        Raises:
            UpstreamError: on any other store failure
        """
        try:
            self._client.head_object(Bucket=self.bucket, Key=object_key)
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in ('404', 'NoSuchKey', 'NotFound'):
                return False
            logger.error(f"Error checking object existence for {object_key}: {e}")
            raise UpstreamError(f"Failed to check object {object_key}") from e
        except BotoCoreError as e:
            logger.error(f"Error checking object existence for {object_key}: {e}")
            raise UpstreamError(f"Failed to check object {object_key}") from e

    def delete_object(self, object_key: str) -> None:
        """
        Delete an object from the bucket.

        A missing object counts as deleted (idempotent).

        Args:
            object_key: The S3 object key to delete

        Raises:
            UpstreamError: if the store rejects the delete
        """
        try:
            self._client.delete_object(Bucket=self.bucket, Key=object_key)
            logger.debug(f"Deleted object {object_key} from R2")
        except ClientError as e:
            # If object doesn't exist, consider it a success (idempotent)
            if e.response['Error']['Code'] in ('404', 'NoSuchKey'):
                logger.debug(f"Object {object_key} not found in R2 (already deleted)")
                return
            logger.error(f"Failed to delete object {object_key} from R2: {e}")
            raise UpstreamError(f"Storage rejected delete of {object_key}") from e
        except BotoCoreError as e:
            logger.error(f"Failed to delete object {object_key} from R2: {e}")
            raise UpstreamError(f"Storage delete failed for {object_key}") from e
