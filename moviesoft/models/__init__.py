"""
Import all models to ensure they are registered with SQLAlchemy
"""
from moviesoft.models.movie import Movie

__all__ = [
    "Movie"
]
