from sqlalchemy.orm import Session, aliased
from sqlalchemy import case, exists
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, UploadFile, status
from typing import Dict, List, Optional
import logging

from moviesoft.models.movie import Movie
from moviesoft.schemas.movie import MovieCreate
from moviesoft.services.upload_store import UploadStore

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Title and description are required."
NOT_FOUND_MESSAGE = "Movie not found."


class MovieService:
    """Service for catalog operations"""

    @staticmethod
    def _ordered(db: Session):
        # Same-second timestamps fall back to insertion order
        return db.query(Movie).order_by(Movie.created_at.desc(), Movie.id.desc())

    @staticmethod
    def _feature_only(db: Session, movie_id: int) -> int:
        """
        Flag movie_id and clear every other row in a single UPDATE.

        The statement only applies while movie_id exists, so it returns 0
        (and changes nothing) for an unknown id.
        """
        target = aliased(Movie)
        return db.query(Movie).filter(
            exists().where(target.id == movie_id)
        ).update(
            {Movie.featured: case((Movie.id == movie_id, True), else_=False)},
            synchronize_session=False
        )

    @staticmethod
    def list_movies(db: Session) -> List[Movie]:
        """All movies, newest first"""
        return MovieService._ordered(db).all()

    @staticmethod
    def get_movie(db: Session, movie_id: int) -> Movie:
        movie = db.get(Movie, movie_id)
        if not movie:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=NOT_FOUND_MESSAGE
            )
        return movie

    @staticmethod
    def create_movie(
        db: Session,
        store: UploadStore,
        movie_data: MovieCreate,
        video: Optional[UploadFile] = None,
        poster: Optional[UploadFile] = None
    ) -> Movie:
        """
        Create a movie with optional video/poster uploads

        - Rejects missing title/description and wrong file types before writing anything
        - Stores accepted files, then inserts the row (and featured flag) in one transaction
        - On a storage failure the files written for this request are removed
        """
        if not movie_data.has_required_fields:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=REQUIRED_FIELDS_MESSAGE
            )

        uploads: Dict[str, UploadFile] = {}
        for field, upload in (("video", video), ("poster", poster)):
            if store.is_present(upload):
                store.validate(field, upload)
                uploads[field] = upload

        try:
            saved = store.save_all(uploads)
        except OSError as e:
            logger.error(f"Failed to store uploads for {movie_data.title!r}: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save uploaded files."
            )

        try:
            movie = Movie(
                title=movie_data.title,
                description=movie_data.description,
                genres=movie_data.genres,
                year=movie_data.year,
                thumbnail=movie_data.thumbnail,
                featured=movie_data.featured,
                video_path=saved.get("video", ""),
                poster_path=saved.get("poster", "")
            )
            db.add(movie)
            db.flush()

            if movie_data.featured:
                MovieService._feature_only(db, movie.id)

            db.commit()
            db.refresh(movie)

        except SQLAlchemyError as e:
            db.rollback()
            store.remove_all(saved.values())
            logger.error(f"Failed to save movie {movie_data.title!r}: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to save movie."
            )

        logger.info(f"Created movie {movie.id} {movie.title!r} (featured={movie.featured})")
        return movie

    @staticmethod
    def delete_movie(db: Session, store: UploadStore, movie_id: int) -> None:
        """
        Delete a movie and its uploaded files

        The row is removed first; file removal is best-effort afterwards, so a
        failure can only leave an unreferenced file for reconciliation to collect.
        """
        movie = MovieService.get_movie(db, movie_id)
        media = [movie.video_path, movie.poster_path]

        try:
            db.delete(movie)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete movie {movie_id}: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete movie."
            )

        removed = store.remove_all(url for url in media if url)
        logger.info(f"Deleted movie {movie_id} ({removed} file(s) removed)")

    @staticmethod
    def feature_movie(db: Session, movie_id: int) -> Movie:
        """
        Make movie_id the only featured movie

        Unknown ids raise 404 without touching the current featured movie.
        """
        try:
            updated = MovieService._feature_only(db, movie_id)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to feature movie {movie_id}: {str(e)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to feature movie."
            )

        if not updated:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=NOT_FOUND_MESSAGE
            )

        movie = MovieService.get_movie(db, movie_id)
        logger.info(f"Featured movie {movie_id} {movie.title!r}")
        return movie
