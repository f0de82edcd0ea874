"""
Movie Schemas - Pydantic models for catalog request/response validation
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional

from moviesoft.schemas.validation import clean_text


class MovieCreate(BaseModel):
    """Text fields of the multipart create form (files travel separately)"""
    title: str = Field("", description="Movie title (required)")
    description: str = Field("", description="Short synopsis (required)")
    genres: str = Field("", description="Free-form genre tag, e.g. 'Action, Comedy'")
    year: str = Field("", description="Release year as entered")
    thumbnail: str = Field("", description="External poster URL used when no poster is uploaded")
    featured: bool = Field(False, description="Make this the featured movie")

    @field_validator('title', 'description', 'genres', 'year', 'thumbnail', mode='before')
    @classmethod
    def clean_fields(cls, v):
        return clean_text(v)

    @field_validator('featured', mode='before')
    @classmethod
    def blank_featured_is_false(cls, v):
        # Unchecked checkboxes may still arrive as an empty string
        if v is None or (isinstance(v, str) and not v.strip()):
            return False
        return v

    @property
    def has_required_fields(self) -> bool:
        return bool(self.title and self.description)


class MovieResponse(BaseModel):
    """Schema for movie response (matches database model)"""
    id: int
    title: str
    description: str
    genres: str = ""
    year: str = ""
    thumbnail: str = ""
    featured: bool = False
    video_path: Optional[str] = ""
    poster_path: Optional[str] = ""
    created_at: Optional[datetime] = None

    @field_validator('genres', 'year', 'thumbnail', mode='before')
    @classmethod
    def none_as_empty(cls, v):
        return v or ""

    class Config:
        from_attributes = True


class SuccessResponse(BaseModel):
    """Acknowledgement for delete/feature operations"""
    success: bool = True
