"""
Migration script to add upload columns to the movies table.

Usage:
    python -m moviesoft.migrations.add_media_columns

This will:
    - Add 'video_path' and 'poster_path' TEXT columns to a movies table
      created before uploads were supported.

Columns that already exist are skipped; existing rows get empty paths.
"""

import sys
import os

from sqlalchemy import inspect, text

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from moviesoft.database import engine

MEDIA_COLUMNS = ["video_path", "poster_path"]


def add_media_columns(bind=engine) -> list[str]:
    """Add missing media columns; returns the names of the columns added"""
    existing = {column["name"] for column in inspect(bind).get_columns("movies")}
    added = []

    with bind.connect() as conn:
        for column in MEDIA_COLUMNS:
            if column in existing:
                continue
            conn.execute(text(f"ALTER TABLE movies ADD COLUMN {column} TEXT DEFAULT ''"))
            added.append(column)
        conn.commit()

    return added


if __name__ == "__main__":
    print("=" * 60)
    print("Adding media columns to movies table...")
    print("=" * 60)
    try:
        added = add_media_columns()
        print(f"Added columns: {', '.join(added)}" if added else "All media columns already exist.")
    except Exception as e:
        print(f"Error adding media columns: {e}")
        raise
