"""
Metadata recorder interface.

The recorder persists one record per uploaded file and keeps the
per-gallery photo/video counters. Implementations must increment
counters atomically: the uploader may record several files at once.
"""
import asyncio
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import replace
from typing import Dict, List

from app.storage.errors import UpstreamError, ValidationError
from app.uploader.models import MediaRecordRef

COUNTER_FIELDS = ("photo_count", "video_count")


class MetadataRecorder(ABC):
    """
    Abstract base class for metadata stores.

    All implementations raise UpstreamError when the store call fails.
    """

    @abstractmethod
    async def create_media_record(self, ref: MediaRecordRef) -> str:
        """
        Persist a media record.

        Returns:
            The media ID of the stored record
        """
        pass

    @abstractmethod
    async def increment_counter(self, gallery_id: str, field: str) -> None:
        """Add one to photo_count or video_count of a gallery."""
        pass

    @abstractmethod
    async def list_media(self, gallery_id: str) -> List[MediaRecordRef]:
        """Media of a gallery ordered by sort_order."""
        pass

    @abstractmethod
    async def delete_media_record(self, media_id: str) -> None:
        pass


def check_counter_field(field: str) -> str:
    if field not in COUNTER_FIELDS:
        raise ValidationError(f"Unknown counter field: {field}")
    return field


class InMemoryMetadataRecorder(MetadataRecorder):
    """Process-local recorder used by tests and dry runs."""

    def __init__(self):
        self.records: Dict[str, MediaRecordRef] = {}
        self.counters: Dict[str, Dict[str, int]] = defaultdict(lambda: dict.fromkeys(COUNTER_FIELDS, 0))
        self._lock = asyncio.Lock()

    async def create_media_record(self, ref: MediaRecordRef) -> str:
        media_id = ref.media_id or str(uuid.uuid4())
        async with self._lock:
            if media_id in self.records:
                raise UpstreamError(f"Media record {media_id} already exists")
            if any(r.object_key == ref.object_key for r in self.records.values()):
                raise UpstreamError(f"Object key {ref.object_key} already recorded")
            self.records[media_id] = replace(ref, media_id=media_id)
        return media_id

    async def increment_counter(self, gallery_id: str, field: str) -> None:
        check_counter_field(field)
        async with self._lock:
            self.counters[gallery_id][field] += 1

    async def list_media(self, gallery_id: str) -> List[MediaRecordRef]:
        return sorted(
            (r for r in self.records.values() if r.gallery_id == gallery_id),
            key=lambda r: r.sort_order,
        )

    async def delete_media_record(self, media_id: str) -> None:
        async with self._lock:
            self.records.pop(media_id, None)
