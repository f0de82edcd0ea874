"""
Upload reconciliation - keeps the upload store and the movies table in step

Creates write files before the row, and deletes remove the row before the
files, so the only drift either can leave behind is an unreferenced file.
This pass removes those, after a grace period that protects uploads whose
row is still being written. Rows pointing at missing files are reported,
not modified.
"""

from datetime import datetime, timedelta
import logging
import os
from typing import Dict, Optional, Set

from sqlalchemy.orm import Session

from moviesoft.models.movie import Movie
from moviesoft.services.upload_store import UploadStore

logger = logging.getLogger(__name__)

ORPHAN_GRACE_MINUTES = int(os.getenv("ORPHAN_GRACE_MINUTES", "60"))


def referenced_urls(db: Session) -> Set[str]:
    """Every upload URL some movie row points at"""
    urls = set()
    for video_path, poster_path in db.query(Movie.video_path, Movie.poster_path).all():
        urls.update(url for url in (video_path, poster_path) if url)
    return urls


def reconcile_uploads(
    db: Session,
    store: UploadStore,
    grace_minutes: Optional[int] = None,
    now: Optional[datetime] = None
) -> Dict:
    """
    Delete orphaned uploads and report rows whose files are gone

    Args:
        db: Database session
        store: Upload store to scan
        grace_minutes: Minimum file age before an orphan is deleted
        now: Reference time (defaults to current time)

    Returns:
        Dict with scanned / removed / kept_recent counts and missing file URLs
    """
    grace = ORPHAN_GRACE_MINUTES if grace_minutes is None else grace_minutes
    cutoff = (now or datetime.now()) - timedelta(minutes=grace)
    referenced = referenced_urls(db)

    scanned = 0
    removed = []
    kept_recent = 0

    for url in store.list_files():
        scanned += 1
        if url in referenced:
            continue

        path = store.path_for_url(url)
        try:
            modified = datetime.fromtimestamp(os.path.getmtime(path))
        except FileNotFoundError:
            # Removed by a concurrent delete since the listing
            continue
        if modified > cutoff:
            kept_recent += 1
            continue

        if store.remove(url):
            removed.append(url)

    missing = sorted(
        url for url in referenced
        if store.path_for_url(url) and not os.path.isfile(store.path_for_url(url))
    )
    for url in missing:
        logger.warning(f"Movie references missing upload {url}")

    return {
        "scanned": scanned,
        "removed": removed,
        "kept_recent": kept_recent,
        "missing": missing,
    }
