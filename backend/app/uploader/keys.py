"""
Object key construction.

Keys look like galleries/{gallery_id}/{timestamp_ms}_{random}_{filename}.
The millisecond timestamp plus random suffix keeps same-named files apart
even when uploaded within the same millisecond.
"""
import re
import time
import unicodedata
import uuid
from typing import Optional
from urllib.parse import unquote, urlsplit

from app.storage.errors import ValidationError

KEY_PREFIX = "galleries"
MAX_FILENAME_LENGTH = 128

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_GALLERY_ID = re.compile(r"^[A-Za-z0-9_-]+$")


def sanitize_filename(filename: str) -> str:
    """
    Reduce a filename to [A-Za-z0-9._-].

    Accents are folded to ASCII, other characters become "_",
    leading dots are dropped so keys never contain hidden or ".." segments.
    """
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    name = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    name = _UNSAFE_CHARS.sub("_", name).strip("_").lstrip(".")
    if len(name) > MAX_FILENAME_LENGTH:
        stem, dot, ext = name.rpartition(".")
        if dot and len(ext) < 16:
            name = stem[:MAX_FILENAME_LENGTH - len(ext) - 1] + "." + ext
        else:
            name = name[:MAX_FILENAME_LENGTH]
    return name or "file"


def validate_gallery_id(gallery_id: str) -> str:
    if not gallery_id or not _GALLERY_ID.match(gallery_id):
        raise ValidationError(f"Invalid gallery id: {gallery_id!r}")
    return gallery_id


def build_object_key(
    gallery_id: str,
    filename: str,
    timestamp_ms: Optional[int] = None,
    random_id: Optional[str] = None,
) -> str:
    """Build a unique object key for a gallery file."""
    validate_gallery_id(gallery_id)
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    if random_id is None:
        random_id = uuid.uuid4().hex[:8]
    return f"{KEY_PREFIX}/{gallery_id}/{timestamp_ms}_{random_id}_{sanitize_filename(filename)}"


def extract_key_from_url(url: str) -> str:
    """
    Recover the object key from a stored URL.

    Examples:
        https://pub-xxxxx.r2.dev/galleries/123/file.jpg -> galleries/123/file.jpg
        https://account.r2.cloudflarestorage.com/bucket/galleries/123/file.jpg -> galleries/123/file.jpg

    Raises:
        ValidationError: if the URL has no galleries/ segment
    """
    parts = unquote(urlsplit(url).path).split("/")
    try:
        start = parts.index(KEY_PREFIX)
    except ValueError:
        raise ValidationError(f"Invalid storage URL format: {url}")
    key = "/".join(parts[start:])
    if key == KEY_PREFIX:
        raise ValidationError(f"Invalid storage URL format: {url}")
    return key
