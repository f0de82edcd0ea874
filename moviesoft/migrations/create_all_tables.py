"""
Migration script to create all database tables

Run this script to create all database tables:
    python -m moviesoft.migrations.create_all_tables
"""

import sys
import os

# Add parent directory to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from moviesoft.database import engine, Base
# Import all models to ensure they're registered with Base
from moviesoft.models.movie import Movie  # noqa: F401


def create_tables():
    """Create all database tables"""
    print("=" * 60)
    print("Creating all database tables...")
    print("=" * 60)

    try:
        Base.metadata.create_all(bind=engine)

        print("\nAll tables created successfully!")
        print("\nTables created:")
        for table in Base.metadata.sorted_tables:
            print(f"   - {table.name}")
        print("=" * 60)

    except Exception as e:
        print(f"\nError creating tables: {e}")
        import traceback
        traceback.print_exc()
        raise


if __name__ == "__main__":
    create_tables()
