"""
Value types shared by the upload orchestrator and its collaborators.
"""
import enum
import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple, Union

from app.models.media import MediaType


class TaskState(str, enum.Enum):
    """Lifecycle of one file inside a batch."""
    QUEUED = "queued"
    SIGNING = "signing"
    TRANSFERRING = "transferring"
    RECORDING = "recording"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class LocalFile:
    """
    A file to upload.

    content_type is the declared MIME type; when omitted it is guessed
    from the filename.
    """
    path: Path
    content_type: Optional[str] = None
    filename: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "path", Path(self.path))
        if self.filename is None:
            object.__setattr__(self, "filename", self.path.name)

    @property
    def declared_type(self) -> str:
        if self.content_type:
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.filename)
        return guessed or ""

    @property
    def size_bytes(self) -> int:
        return self.path.stat().st_size

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


@dataclass
class UploadTask:
    """One file in a batch. Lives only while the batch runs."""
    local_file: LocalFile
    gallery_id: str
    sequence_index: int
    state: TaskState = TaskState.QUEUED

    @property
    def filename(self) -> str:
        return self.local_file.filename


@dataclass(frozen=True)
class MediaRecordRef:
    """Reference handed to the metadata recorder for one uploaded file."""
    media_id: str
    gallery_id: str
    type: MediaType
    storage_url: str
    object_key: str
    filename: str
    size_bytes: int
    sort_order: int
    content_type: Optional[str] = None

    @property
    def counter_field(self) -> str:
        return "video_count" if self.type == MediaType.VIDEO else "photo_count"


@dataclass(frozen=True)
class FailedUpload:
    filename: str
    error_kind: str
    detail: str = ""


@dataclass(frozen=True)
class BatchResult:
    """Summary of one batch. Every input file appears in exactly one list."""
    succeeded: Tuple[MediaRecordRef, ...] = field(default_factory=tuple)
    failed: Tuple[FailedUpload, ...] = field(default_factory=tuple)
    total: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


def classify(content_type: str) -> Optional[MediaType]:
    """Map a MIME type to photo/video, or None when unsupported."""
    content_type = (content_type or "").lower()
    if content_type.startswith("image/"):
        return MediaType.PHOTO
    if content_type.startswith("video/"):
        return MediaType.VIDEO
    return None


FileLike = Union[LocalFile, Path, str]


def as_local_files(files: List[FileLike]) -> List[LocalFile]:
    return [f if isinstance(f, LocalFile) else LocalFile(Path(f)) for f in files]
