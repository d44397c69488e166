"""
SQLAlchemy implementation of the metadata recorder.

Writes to the galleries/media tables. Counter increments run as a single
UPDATE ... SET n = n + 1 so concurrent tasks never lose updates.
"""
import logging
from typing import List

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.metadata.recorder import MetadataRecorder, check_counter_field
from app.models.gallery import Gallery
from app.models.media import Media, MediaType
from app.storage.errors import UpstreamError
from app.uploader.models import MediaRecordRef

logger = logging.getLogger(__name__)


def _to_ref(media: Media) -> MediaRecordRef:
    return MediaRecordRef(
        media_id=media.media_id,
        gallery_id=media.gallery_id,
        type=MediaType(media.type),
        storage_url=media.storage_url,
        object_key=media.object_key,
        filename=media.filename,
        size_bytes=media.file_size_bytes or 0,
        sort_order=media.sort_order,
        content_type=media.content_type,
    )


class SqlMetadataRecorder(MetadataRecorder):
    """Metadata recorder backed by the relational store."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def create_media_record(self, ref: MediaRecordRef) -> str:
        media = Media(
            media_id=ref.media_id,
            gallery_id=ref.gallery_id,
            type=ref.type,
            storage_url=ref.storage_url,
            object_key=ref.object_key,
            filename=ref.filename,
            content_type=ref.content_type,
            file_size_bytes=ref.size_bytes,
            sort_order=ref.sort_order,
        )
        try:
            async with self._session_factory() as db:
                db.add(media)
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to create media record for {ref.object_key}: {e}")
            raise UpstreamError(f"Failed to create media record: {e}") from e

        logger.info(f"Created media record: media_id={media.media_id}, gallery={ref.gallery_id}")
        return media.media_id

    async def increment_counter(self, gallery_id: str, field: str) -> None:
        check_counter_field(field)
        column = getattr(Gallery, field)
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    update(Gallery)
                    .where(Gallery.gallery_id == gallery_id)
                    .values({field: column + 1})
                )
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to increment {field} for gallery {gallery_id}: {e}")
            raise UpstreamError(f"Failed to update gallery counter: {e}") from e

        if result.rowcount == 0:
            raise UpstreamError(f"Gallery {gallery_id} not found")

    async def list_media(self, gallery_id: str) -> List[MediaRecordRef]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(Media)
                    .where(Media.gallery_id == gallery_id)
                    .order_by(Media.sort_order, Media.created_at)
                )
                return [_to_ref(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to fetch media for gallery {gallery_id}: {e}")
            raise UpstreamError(f"Failed to list media: {e}") from e

    async def delete_media_record(self, media_id: str) -> None:
        try:
            async with self._session_factory() as db:
                await db.execute(delete(Media).where(Media.media_id == media_id))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete media record {media_id}: {e}")
            raise UpstreamError(f"Failed to delete media record: {e}") from e
