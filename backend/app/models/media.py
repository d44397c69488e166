"""
Media model for tracking uploaded gallery files.

Stores metadata about files uploaded to R2 storage.
The actual file bytes are stored in R2, not the database.

A row is only written after the object PUT succeeded; if writing the row
fails the uploader deletes the object again.
"""
import enum
from sqlalchemy import Column, String, Enum, Integer, BigInteger, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from app.models.base import Base, generate_uuid


class MediaType(str, enum.Enum):
    """Type of media file."""
    PHOTO = "photo"
    VIDEO = "video"


class Media(Base):
    """
    Media metadata model.

    Attributes:
        media_id: Unique identifier (UUID)
        gallery_id: Owning gallery (indexed for queries)
        type: photo or video
        storage_url: Public URL of the object
        object_key: R2 object key (path in bucket)
        filename: Original filename
        file_size_bytes: File size in bytes
        sort_order: Position inside the gallery
        created_at: When the record was written
    """
    __tablename__ = "media"

    media_id = Column(String, primary_key=True, default=generate_uuid)

    gallery_id = Column(
        String,
        ForeignKey("galleries.gallery_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    type = Column(Enum(MediaType), nullable=False)

    storage_url = Column(String, nullable=False)

    # Example: galleries/{gallery_id}/{timestamp}_{random}_{filename}
    object_key = Column(String, nullable=False, unique=True)

    filename = Column(String, nullable=False)
    content_type = Column(String, nullable=True)
    file_size_bytes = Column(BigInteger, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        # Gallery listing in display order
        Index('ix_media_gallery_sort', 'gallery_id', 'sort_order'),
    )

    def __repr__(self):
        return (
            f"<Media(id={self.media_id}, gallery={self.gallery_id}, "
            f"type={self.type.value}, filename={self.filename})>"
        )
