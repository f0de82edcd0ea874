"""
Seed the catalog with sample movies when it is empty

Usage:
    python -m moviesoft.migrations.seed_sample_movies

Also runs at application startup unless SEED_SAMPLE_MOVIES=false.
"""

import sys
import os

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from sqlalchemy.orm import Session

from moviesoft.database import SessionLocal, init_db
from moviesoft.models.movie import Movie

SAMPLE_MOVIES = [
    {
        "title": "The Pickup - VJ Junior",
        "description": "Action-packed comedy where a risky job turns into the heist of a lifetime.",
        "genres": "Action, Comedy",
        "year": "2025",
        "featured": True,
    },
    {
        "title": "Playdate",
        "description": "A mysterious invitation leads to an unforgettable night.",
        "genres": "Thriller, Drama",
        "year": "2024",
        "featured": False,
    },
    {
        "title": "Healer",
        "description": "A gifted healer must choose between power and peace.",
        "genres": "Fantasy, Adventure",
        "year": "2023",
        "featured": False,
    },
]


def seed_sample_movies(db: Session) -> int:
    """
    Insert SAMPLE_MOVIES if the movies table is empty

    Returns:
        Number of movies inserted (0 when the catalog already has data)
    """
    if db.query(Movie).count() > 0:
        return 0

    for data in SAMPLE_MOVIES:
        db.add(Movie(thumbnail="", video_path="", poster_path="", **data))
    db.commit()
    return len(SAMPLE_MOVIES)


if __name__ == "__main__":
    init_db()
    session = SessionLocal()
    try:
        inserted = seed_sample_movies(session)
        print(f"Seeded {inserted} sample movies" if inserted else "Catalog not empty, nothing seeded")
    finally:
        session.close()
