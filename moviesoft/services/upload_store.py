"""
Upload Store - filesystem storage for poster images and video files

Layout (under UPLOADS_DIR):
    videos/   - field "video"
    posters/  - field "poster"
    ./        - any other field

Stored files are exposed publicly as /uploads/<subdir>/<filename>.
"""

import logging
import os
import random
import time
from typing import BinaryIO, Dict, List, Optional

from fastapi import HTTPException, UploadFile, status

logger = logging.getLogger(__name__)

UPLOADS_DIR = os.getenv("UPLOADS_DIR", os.path.join(os.getcwd(), "uploads"))
MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE_MB", "500")) * 1024 * 1024
PUBLIC_PREFIX = "/uploads"
CHUNK_SIZE = 1024 * 1024

FIELD_DIRECTORIES = {
    "video": "videos",
    "poster": "posters",
}

ALLOWED_VIDEO_TYPES = {"video/mp4"}


class UploadStore:
    """
    Writes, locates and removes uploaded media files.

    Usage:
        store = UploadStore("/srv/uploads")
        store.ensure_directories()
        store.validate("poster", upload)      # raises HTTPException(400)
        url = store.save("poster", upload)    # -> /uploads/posters/poster-...jpg
        store.remove(url)
    """

    def __init__(self, root: str, max_size: int = MAX_UPLOAD_SIZE):
        self.root = os.path.abspath(root)
        self.max_size = max_size

    # ============================================
    # Layout
    # ============================================

    def ensure_directories(self):
        """Create the uploads root and per-type subdirectories"""
        for path in [self.root] + [os.path.join(self.root, d) for d in FIELD_DIRECTORIES.values()]:
            os.makedirs(path, exist_ok=True)

    def directory_for(self, field: str) -> str:
        """Destination directory chosen purely by field name"""
        subdir = FIELD_DIRECTORIES.get(field)
        return os.path.join(self.root, subdir) if subdir else self.root

    def public_url(self, field: str, filename: str) -> str:
        subdir = FIELD_DIRECTORIES.get(field)
        if subdir:
            return f"{PUBLIC_PREFIX}/{subdir}/{filename}"
        return f"{PUBLIC_PREFIX}/{filename}"

    def path_for_url(self, url: str) -> Optional[str]:
        """
        Map a public /uploads URL back to a path inside the store.

        Returns None for URLs outside the store (external thumbnails, traversal attempts).
        """
        if not url or not url.startswith(PUBLIC_PREFIX + "/"):
            return None
        relative = url[len(PUBLIC_PREFIX) + 1:]
        path = os.path.abspath(os.path.join(self.root, relative))
        if os.path.commonpath([path, self.root]) != self.root or path == self.root:
            return None
        return path

    @staticmethod
    def generate_filename(field: str, original_name: Optional[str]) -> str:
        """<field>-<epoch millis>-<random 9 digits><ext>, original extension preserved"""
        ext = os.path.splitext(original_name or "")[1].lower()
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1):09d}"
        return f"{field}-{unique_suffix}{ext}"

    # ============================================
    # Validation
    # ============================================

    @staticmethod
    def is_present(upload: Optional[UploadFile]) -> bool:
        """Browsers send an empty, unnamed part for untouched file inputs"""
        return upload is not None and bool(upload.filename)

    @staticmethod
    def validate(field: str, upload: UploadFile):
        """Reject a file whose content type does not match its field"""
        content_type = (upload.content_type or "").lower()

        if field == "video" and content_type not in ALLOWED_VIDEO_TYPES:
            logger.warning(f"Rejected video upload {upload.filename!r} ({content_type})")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only MP4 video files are allowed"
            )

        if field == "poster" and not content_type.startswith("image/"):
            logger.warning(f"Rejected poster upload {upload.filename!r} ({content_type})")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only image files are allowed for posters"
            )

    # ============================================
    # Write / Remove
    # ============================================

    def save(self, field: str, upload: UploadFile) -> str:
        """
        Copy an uploaded file into the store and return its public URL.

        Raises:
            HTTPException(413) when the file exceeds max_size (partial copy removed)
        """
        directory = self.directory_for(field)
        os.makedirs(directory, exist_ok=True)
        filename = self.generate_filename(field, upload.filename)
        destination = os.path.join(directory, filename)

        upload.file.seek(0)
        written = self._copy_limited(upload.file, destination)

        logger.info(f"Stored {field} upload {upload.filename!r} as {filename} ({written / (1024 * 1024):.2f}MB)")
        return self.public_url(field, filename)

    def save_all(self, uploads: Dict[str, UploadFile]) -> Dict[str, str]:
        """
        Save several uploads; if any fails, the ones already written are removed.
        """
        saved: Dict[str, str] = {}
        try:
            for field, upload in uploads.items():
                saved[field] = self.save(field, upload)
        except Exception:
            self.remove_all(saved.values())
            raise
        return saved

    def _copy_limited(self, source: BinaryIO, destination: str) -> int:
        written = 0
        try:
            with open(destination, "wb") as out:
                while True:
                    chunk = source.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_size:
                        raise HTTPException(
                            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                            detail=f"File too large. Max: {self.max_size / (1024 * 1024):.0f}MB"
                        )
                    out.write(chunk)
        except BaseException:
            if os.path.exists(destination):
                os.remove(destination)
            raise
        return written

    def remove(self, url: Optional[str]) -> bool:
        """
        Best-effort removal of a stored file by public URL.

        Returns True if a file was deleted; missing files and foreign URLs are not errors.
        """
        path = self.path_for_url(url or "")
        if not path or not os.path.isfile(path):
            return False
        try:
            os.remove(path)
            logger.info(f"Removed upload {url}")
            return True
        except OSError as e:
            logger.error(f"Failed to remove upload {url}: {str(e)}")
            return False

    def remove_all(self, urls) -> int:
        return sum(1 for url in urls if self.remove(url))

    def list_files(self) -> List[str]:
        """Public URLs of every file in the typed subdirectories"""
        urls = []
        for field, subdir in FIELD_DIRECTORIES.items():
            directory = os.path.join(self.root, subdir)
            if not os.path.isdir(directory):
                continue
            for name in sorted(os.listdir(directory)):
                if os.path.isfile(os.path.join(directory, name)):
                    urls.append(self.public_url(field, name))
        return urls


# Global singleton instance
upload_store = UploadStore(UPLOADS_DIR)
