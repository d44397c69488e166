"""
Tests for the command line uploader.
"""
import pytest
from unittest.mock import AsyncMock, patch

from app.metadata.recorder import InMemoryMetadataRecorder
from app.models.media import MediaType
from app.storage.errors import AuthorizationError, UpstreamError, ValidationError
from app.uploader.media_remover import MediaRemover
from app.uploader.models import MediaRecordRef
from app.uploader import cli
from app.uploader.models import BatchResult, FailedUpload


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("app.uploader.cli.configure_logging"):
        yield


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("UPLOADER_DATABASE_URL", "postgresql+asyncpg://test/gallery")
    monkeypatch.setenv("UPLOADER_SIGNING_SERVICE_URL", "http://signer.test")


def test_parser():
    args = cli.build_parser().parse_args(["g1", "a.jpg", "b.mp4", "-c", "3"])
    assert args.gallery_id == "g1"
    assert args.files == ["a.jpg", "b.mp4"]
    assert args.concurrency == 3
    assert args.content_type is None
    assert args.create_tables is False


def test_missing_database_url(monkeypatch, capsys):
    monkeypatch.delenv("UPLOADER_DATABASE_URL", raising=False)
    real_settings = cli.UploaderSettings
    with patch("app.uploader.cli.UploaderSettings", new=lambda: real_settings(_env_file=None)):
        assert cli.main(["g1", "a.jpg"]) == 2
    assert "UPLOADER_DATABASE_URL" in capsys.readouterr().out


def test_all_uploaded(env, capsys):
    with patch("app.uploader.cli.run", new=AsyncMock(return_value=BatchResult(total=0))):
        assert cli.main(["g1", "a.jpg"]) == 0
    assert "Total files: 0" in capsys.readouterr().out


def test_partial_failure(env, capsys):
    result = BatchResult(failed=(FailedUpload("b.txt", "UnsupportedType", "Unsupported file type: text/plain"),), total=1)
    with patch("app.uploader.cli.run", new=AsyncMock(return_value=result)):
        assert cli.main(["g1", "b.txt"]) == 1
    assert "b.txt: UnsupportedType" in capsys.readouterr().out


def test_pipeline_error(env, capsys):
    with patch("app.uploader.cli.run", new=AsyncMock(side_effect=AuthorizationError("Signing service refused caller"))):
        assert cli.main(["g1", "a.jpg"]) == 2
    assert "ERROR: Signing service refused caller" in capsys.readouterr().out


class TestRemoveCommand:
    """Tests for gallery-remove."""

    @pytest.fixture
    async def recorder(self) -> InMemoryMetadataRecorder:
        recorder = InMemoryMetadataRecorder()
        for i, media_id in enumerate(["m1", "m2"]):
            key = f"galleries/g1/1718000000000_{media_id}_a.jpg"
            await recorder.create_media_record(MediaRecordRef(
                media_id=media_id,
                gallery_id="g1",
                type=MediaType.PHOTO,
                storage_url=f"https://media.example.com/{key}",
                object_key=key,
                filename="a.jpg",
                size_bytes=10,
                sort_order=i,
            ))
        return recorder

    @pytest.fixture
    def signing_client(self) -> AsyncMock:
        return AsyncMock()

    def test_parser(self):
        args = cli.build_remove_parser().parse_args(["g1", "--media-id", "m1"])
        assert args.gallery_id == "g1"
        assert args.media_id == "m1"
        assert args.yes is False

    @pytest.mark.asyncio
    async def test_remove_single_media(self, recorder, signing_client):
        remover = MediaRemover(signing_client, recorder)

        assert await cli.remove_media(remover, recorder, "g1", "m1") == (1, 1)

        signing_client.delete_object.assert_awaited_once_with("galleries/g1/1718000000000_m1_a.jpg")
        assert list(recorder.records) == ["m2"]

    @pytest.mark.asyncio
    async def test_remove_unknown_media(self, recorder, signing_client):
        remover = MediaRemover(signing_client, recorder)

        with pytest.raises(ValidationError):
            await cli.remove_media(remover, recorder, "g1", "nope")

        assert len(recorder.records) == 2

    @pytest.mark.asyncio
    async def test_remove_whole_gallery(self, recorder, signing_client):
        signing_client.delete_object.side_effect = [None, UpstreamError("Storage rejected delete")]
        remover = MediaRemover(signing_client, recorder)

        assert await cli.remove_media(remover, recorder, "g1") == (2, 2)
        assert recorder.records == {}

    def test_gallery_removal_needs_confirmation(self, env, capsys):
        run_remove = AsyncMock(return_value=(2, 2))
        with patch("app.uploader.cli.run_remove", new=run_remove), patch("builtins.input", return_value="other"):
            assert cli.remove_main(["g1"]) == 0

        run_remove.assert_not_awaited()
        assert "Aborted." in capsys.readouterr().out

    def test_confirmed_removal(self, env, capsys):
        with patch("app.uploader.cli.run_remove", new=AsyncMock(return_value=(2, 2))), \
                patch("builtins.input", return_value="g1"):
            assert cli.remove_main(["g1"]) == 0
        assert "Removed: 2" in capsys.readouterr().out

    def test_partial_removal(self, env):
        with patch("app.uploader.cli.run_remove", new=AsyncMock(return_value=(1, 2))):
            assert cli.remove_main(["g1", "--yes"]) == 1

    def test_single_media_skips_prompt(self, env):
        with patch("app.uploader.cli.run_remove", new=AsyncMock(return_value=(1, 1))), \
                patch("builtins.input", side_effect=AssertionError("prompted")):
            assert cli.remove_main(["g1", "--media-id", "m1"]) == 0

    def test_missing_media_is_error(self, env, capsys):
        error = ValidationError("Media nope not found in gallery g1")
        with patch("app.uploader.cli.run_remove", new=AsyncMock(side_effect=error)):
            assert cli.remove_main(["g1", "--media-id", "nope"]) == 2
        assert "not found" in capsys.readouterr().out
