"""
Command line uploader.

Usage:
    gallery-upload <gallery_id> photo1.jpg clip.mp4 ...
    gallery-upload <gallery_id> ./shoot/*.jpg --concurrency 4
    gallery-remove <gallery_id> --media-id <media_id>
    gallery-remove <gallery_id> --yes

Configuration comes from UPLOADER_* environment variables
(signing service URL, Firebase ID token, metadata database URL).
Exits with status 1 when any file failed (or could not be removed),
2 on configuration or signing service errors.
"""
import argparse
import asyncio
import sys
from typing import List, Optional, Tuple

from app.database import create_engine, create_session_factory, init_db
from app.metadata.recorder import MetadataRecorder
from app.metadata.sql_recorder import SqlMetadataRecorder
from app.storage.errors import UploadPipelineError, ValidationError
from app.uploader.config import UploaderSettings
from app.uploader.media_remover import MediaRemover
from app.uploader.models import BatchResult, LocalFile
from app.uploader.orchestrator import UploadOrchestrator
from app.uploader.progress import (
    CallbackProgressSink,
    FanOutProgressSink,
    LoggingProgressSink,
    MetricsProgressSink,
)
from app.uploader.signing_client import ObjectStoreClient, SigningClient
from app.utils.logging import configure_logging


def print_progress(filename: str, index: int, total: int, status: str, error: Optional[str] = None):
    line = f"  [{index}/{total}] {filename}: {status}"
    if error:
        line += f" - {error}"
    print(line)


def print_summary(result: BatchResult) -> None:
    print(f"\n{'=' * 50}")
    print("SUMMARY:")
    print(f"  Total files: {result.total}")
    print(f"  Uploaded: {len(result.succeeded)}")
    print(f"  Failed: {len(result.failed)}")
    for failure in result.failed:
        print(f"    - {failure.filename}: {failure.error_kind} {failure.detail}".rstrip())
    print(f"{'=' * 50}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Upload media files to a gallery')
    parser.add_argument('gallery_id', help='Target gallery ID')
    parser.add_argument('files', nargs='+', help='Files to upload')
    parser.add_argument('--concurrency', '-c', type=int, default=None,
                        help='Files in flight at once (default: UPLOADER_MAX_CONCURRENCY)')
    parser.add_argument('--content-type', default=None,
                        help='Declared MIME type for all files (default: guessed from name)')
    parser.add_argument('--create-tables', action='store_true',
                        help='Create the galleries/media tables if missing')
    return parser


async def run(args: argparse.Namespace, settings: UploaderSettings) -> BatchResult:
    engine = create_engine(settings.database_url)
    recorder = SqlMetadataRecorder(create_session_factory(engine))
    token = settings.auth_token.get_secret_value() if settings.auth_token else None

    signing = SigningClient(
        settings.signing_service_url,
        auth_token=token,
        timeout=settings.request_timeout,
    )
    store = ObjectStoreClient()
    try:
        if args.create_tables:
            await init_db(engine)
        orchestrator = UploadOrchestrator(
            signing,
            store,
            recorder,
            max_concurrency=args.concurrency or settings.max_concurrency,
        )
        existing = await recorder.list_media(args.gallery_id)
        files = [LocalFile(path, content_type=args.content_type) for path in args.files]
        progress = FanOutProgressSink([
            CallbackProgressSink(print_progress),
            LoggingProgressSink(),
            MetricsProgressSink(),
        ])
        return await orchestrator.upload_files(
            files,
            args.gallery_id,
            progress=progress,
            sort_offset=len(existing),
        )
    finally:
        await signing.aclose()
        await store.aclose()
        await engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = UploaderSettings()
    configure_logging('gallery-uploader', settings.log_level)

    if not settings.database_url:
        print("ERROR: UPLOADER_DATABASE_URL is not set")
        return 2

    print(f"Uploading {len(args.files)} files to gallery {args.gallery_id}...")
    try:
        result = asyncio.run(run(args, settings))
    except UploadPipelineError as e:
        print(f"ERROR: {e}")
        return 2
    print_summary(result)
    return 0 if result.ok else 1


# Removal

def build_remove_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Remove media from a gallery (objects and records)')
    parser.add_argument('gallery_id', help='Gallery ID')
    parser.add_argument('--media-id', default=None,
                        help='Remove only this media (default: every media in the gallery)')
    parser.add_argument('--yes', '-y', action='store_true',
                        help='Skip confirmation prompt (non-interactive mode)')
    return parser


async def remove_media(
    remover: MediaRemover,
    recorder: MetadataRecorder,
    gallery_id: str,
    media_id: Optional[str] = None,
) -> Tuple[int, int]:
    """
    Remove one media or a whole gallery.

    Returns:
        (removed, total)

    Raises:
        ValidationError: media_id is not part of the gallery
    """
    media = await recorder.list_media(gallery_id)
    if media_id is None:
        return await remover.delete_gallery_media(gallery_id), len(media)

    for ref in media:
        if ref.media_id == media_id:
            await remover.delete_media(ref.media_id, ref.storage_url)
            return 1, 1
    raise ValidationError(f"Media {media_id} not found in gallery {gallery_id}")


async def run_remove(args: argparse.Namespace, settings: UploaderSettings) -> Tuple[int, int]:
    engine = create_engine(settings.database_url)
    recorder = SqlMetadataRecorder(create_session_factory(engine))
    token = settings.auth_token.get_secret_value() if settings.auth_token else None

    signing = SigningClient(
        settings.signing_service_url,
        auth_token=token,
        timeout=settings.request_timeout,
    )
    try:
        remover = MediaRemover(signing, recorder)
        return await remove_media(remover, recorder, args.gallery_id, args.media_id)
    finally:
        await signing.aclose()
        await engine.dispose()


def remove_main(argv: Optional[List[str]] = None) -> int:
    args = build_remove_parser().parse_args(argv)
    settings = UploaderSettings()
    configure_logging('gallery-uploader', settings.log_level)

    if not settings.database_url:
        print("ERROR: UPLOADER_DATABASE_URL is not set")
        return 2

    if args.media_id is None and not args.yes:
        print(f"WARNING: This will DELETE ALL media of gallery {args.gallery_id}!")
        confirm = input("Type the gallery ID to confirm: ")
        if confirm != args.gallery_id:
            print("Aborted.")
            return 0

    try:
        removed, total = asyncio.run(run_remove(args, settings))
    except UploadPipelineError as e:
        print(f"ERROR: {e}")
        return 2

    print(f"\n{'=' * 50}")
    print("SUMMARY:")
    print(f"  Total media: {total}")
    print(f"  Removed: {removed}")
    print(f"  Failed: {total - removed}")
    print(f"{'=' * 50}")
    return 0 if removed == total else 1


if __name__ == '__main__':
    sys.exit(main())
