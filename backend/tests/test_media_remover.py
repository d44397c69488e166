"""
Tests for MediaRemover.
"""
import pytest
from unittest.mock import AsyncMock

from app.metadata.recorder import InMemoryMetadataRecorder
from app.models.media import MediaType
from app.storage.errors import UpstreamError
from app.uploader.media_remover import MediaRemover
from app.uploader.models import MediaRecordRef


def make_ref(media_id: str, gallery_id: str = "g1", sort_order: int = 0) -> MediaRecordRef:
    key = f"galleries/{gallery_id}/1718000000000_{media_id}_photo.jpg"
    return MediaRecordRef(
        media_id=media_id,
        gallery_id=gallery_id,
        type=MediaType.PHOTO,
        storage_url=f"https://media.example.com/{key}",
        object_key=key,
        filename="photo.jpg",
        size_bytes=100,
        sort_order=sort_order,
    )


@pytest.fixture
def signing_client() -> AsyncMock:
    client = AsyncMock()
    client.delete_object = AsyncMock(return_value=None)
    return client


@pytest.fixture
async def recorder() -> InMemoryMetadataRecorder:
    recorder = InMemoryMetadataRecorder()
    for i, media_id in enumerate(["m1", "m2", "m3"]):
        await recorder.create_media_record(make_ref(media_id, sort_order=i))
    await recorder.create_media_record(make_ref("other", gallery_id="g2"))
    return recorder


class TestDeleteMedia:

    @pytest.mark.asyncio
    async def test_deletes_object_then_record(self, signing_client, recorder):
        remover = MediaRemover(signing_client, recorder)

        await remover.delete_media("m1", recorder.records["m1"].storage_url)

        signing_client.delete_object.assert_awaited_once_with("galleries/g1/1718000000000_m1_photo.jpg")
        assert "m1" not in recorder.records

    @pytest.mark.asyncio
    async def test_storage_failure_still_removes_record(self, signing_client, recorder):
        signing_client.delete_object.side_effect = UpstreamError("Storage rejected delete")
        remover = MediaRemover(signing_client, recorder)

        await remover.delete_media("m2", recorder.records["m2"].storage_url)

        assert "m2" not in recorder.records

    @pytest.mark.asyncio
    async def test_unparseable_url_still_removes_record(self, signing_client, recorder):
        remover = MediaRemover(signing_client, recorder)

        await remover.delete_media("m3", "https://elsewhere.example.com/avatar.png")

        signing_client.delete_object.assert_not_awaited()
        assert "m3" not in recorder.records


class TestDeleteGalleryMedia:

    @pytest.mark.asyncio
    async def test_removes_only_that_gallery(self, signing_client, recorder):
        remover = MediaRemover(signing_client, recorder)

        removed = await remover.delete_gallery_media("g1")

        assert removed == 3
        assert signing_client.delete_object.await_count == 3
        assert list(recorder.records) == ["other"]

    @pytest.mark.asyncio
    async def test_record_failures_not_counted(self, signing_client, recorder):
        original = recorder.delete_media_record

        async def flaky_delete(media_id):
            if media_id == "m2":
                raise UpstreamError("Failed to delete media record")
            await original(media_id)

        recorder.delete_media_record = flaky_delete
        remover = MediaRemover(signing_client, recorder)

        removed = await remover.delete_gallery_media("g1")

        assert removed == 2
        assert "m2" in recorder.records

    @pytest.mark.asyncio
    async def test_empty_gallery(self, signing_client, recorder):
        remover = MediaRemover(signing_client, recorder)
        assert await remover.delete_gallery_media("empty") == 0
