from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from sqlalchemy.sql import func
from moviesoft.database import Base


class Movie(Base):
    """
    Catalog entry - metadata plus optional uploaded media references

    video_path / poster_path hold public URLs under /uploads
    (empty string when no file was uploaded).
    """
    __tablename__ = "movies"
    # Ids are never handed out twice, even after the newest row is deleted
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    genres = Column(String, default="")
    year = Column(String, default="")
    featured = Column(Boolean, default=False, nullable=False)
    thumbnail = Column(String, default="")
    video_path = Column(String, default="")
    poster_path = Column(String, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Movie(id={self.id}, title={self.title!r}, featured={self.featured})>"
