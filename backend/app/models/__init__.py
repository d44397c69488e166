"""
Database models package.
"""
from app.models.base import Base
from app.models.gallery import Gallery
from app.models.media import Media, MediaType

__all__ = [
    "Base",
    "Gallery",
    "Media",
    "MediaType",
]
