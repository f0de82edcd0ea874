from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session
from typing import List, Optional

from moviesoft.database import get_db
from moviesoft.schemas.movie import MovieCreate, MovieResponse, SuccessResponse
from moviesoft.services.movie_service import MovieService
from moviesoft.services.upload_store import UploadStore
from moviesoft.utils.dependencies import get_upload_store

router = APIRouter(prefix="/api/movies", tags=["Movies"])


def _validation_detail(exc: ValidationError) -> str:
    """First readable message from a pydantic error"""
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ())) or "input"
    message = error.get("msg", "Invalid value").removeprefix("Value error, ")
    return f"{field}: {message}"


@router.get("", response_model=List[MovieResponse])
def list_movies(db: Session = Depends(get_db)):
    """
    Get all movies, newest first

    Returns an empty list when the catalog is empty.
    """
    return MovieService.list_movies(db)


@router.post("", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def create_movie(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    genres: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    thumbnail: Optional[str] = Form(None),
    featured: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    poster: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    store: UploadStore = Depends(get_upload_store)
):
    """
    Create a movie from a multipart form

    - **title**, **description**: required
    - **genres**, **year**, **thumbnail**: optional text
    - **featured**: make this the only featured movie
    - **video**: optional MP4 file
    - **poster**: optional image file
    """
    try:
        movie_data = MovieCreate(
            title=title,
            description=description,
            genres=genres,
            year=year,
            thumbnail=thumbnail,
            featured=featured
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_validation_detail(e)
        )

    return MovieService.create_movie(db, store, movie_data, video=video, poster=poster)


@router.delete("/{movie_id}", response_model=SuccessResponse)
def delete_movie(
    movie_id: int,
    db: Session = Depends(get_db),
    store: UploadStore = Depends(get_upload_store)
):
    """Delete a movie and its uploaded video/poster files"""
    MovieService.delete_movie(db, store, movie_id)
    return SuccessResponse()


@router.post("/{movie_id}/feature", response_model=SuccessResponse)
def feature_movie(movie_id: int, db: Session = Depends(get_db)):
    """Make this movie the only featured movie"""
    MovieService.feature_movie(db, movie_id)
    return SuccessResponse()
