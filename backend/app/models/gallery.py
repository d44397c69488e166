"""
Gallery model.

Only the columns the upload pipeline touches are mapped here; the
password and presentation fields belong to the gallery screens.
"""
from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.sql import func

from app.models.base import Base, generate_uuid


class Gallery(Base):
    """
    Gallery model with per-type media counters.

    Counters are only ever changed with an in-database increment
    (SET photo_count = photo_count + 1) so concurrent uploads never lose updates.
    """
    __tablename__ = "galleries"

    gallery_id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String, nullable=True)
    photo_count = Column(Integer, nullable=False, default=0, server_default="0")
    video_count = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    def __repr__(self):
        return (
            f"<Gallery(id={self.gallery_id}, photos={self.photo_count}, "
            f"videos={self.video_count})>"
        )
