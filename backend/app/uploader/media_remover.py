"""
Removal of gallery media.

Deletes the stored object through the signing service, then the media
record. A storage failure is logged and the record is still removed, so
galleries never show media whose removal was requested.
"""
import asyncio
import logging

from app.metadata.recorder import MetadataRecorder
from app.storage.errors import UploadPipelineError
from app.uploader.keys import extract_key_from_url
from app.uploader.signing_client import SigningClient

logger = logging.getLogger(__name__)


class MediaRemover:
    def __init__(self, signing_client: SigningClient, recorder: MetadataRecorder):
        self._signing = signing_client
        self._recorder = recorder

    async def delete_media(self, media_id: str, storage_url: str) -> None:
        """
        Delete one media file and its record.

        Raises:
            UpstreamError: if the metadata record could not be deleted
        """
        try:
            key = extract_key_from_url(storage_url)
            await self._signing.delete_object(key)
        except UploadPipelineError as e:
            logger.warning(f"Storage delete failed for media {media_id}: {e}")

        await self._recorder.delete_media_record(media_id)

    async def delete_gallery_media(self, gallery_id: str) -> int:
        """
        Delete all media in a gallery concurrently.

        Returns:
            Number of media records removed
        """
        media = await self._recorder.list_media(gallery_id)
        results = await asyncio.gather(
            *(self.delete_media(m.media_id, m.storage_url) for m in media),
            return_exceptions=True,
        )

        removed = 0
        for ref, result in zip(media, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to delete media {ref.media_id} from gallery {gallery_id}: {result}")
            else:
                removed += 1

        logger.info(f"Deleted {removed}/{len(media)} media from gallery {gallery_id}")
        return removed
