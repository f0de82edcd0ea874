"""
Page routes - server-rendered gallery and admin views

The page script re-renders both views from GET /api/movies; the markup
rendered here is what clients without script support see.
"""

from datetime import datetime, timezone
import os

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
from typing import Optional

from moviesoft.database import get_db
from moviesoft.schemas.movie import MovieResponse
from moviesoft.services import gallery_service
from moviesoft.services.movie_service import MovieService

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")
templates = Jinja2Templates(directory=TEMPLATES_DIR)

MAX_QUERY_LENGTH = 200

router = APIRouter(tags=["Pages"], include_in_schema=False)


def _base_context(request: Request) -> dict:
    return {
        "request": request,
        "footer_year": datetime.now(timezone.utc).year,
    }


@router.get("/", response_class=HTMLResponse)
def gallery_page(
    request: Request,
    q: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Public gallery - hero block plus a searchable grid

    ?q= filters the cards server-side. Overlong terms are truncated
    rather than rejected so the page always renders.
    """
    term = (q or "")[:MAX_QUERY_LENGTH]
    movies = MovieService.list_movies(db)
    context = _base_context(request)
    context.update(gallery_service.build_gallery(movies, term))
    return templates.TemplateResponse(request, "index.html", context)


@router.get("/admin", response_class=HTMLResponse)
def admin_page(request: Request, db: Session = Depends(get_db)):
    """Admin view - creation form and movie list"""
    context = _base_context(request)
    context["movies"] = [MovieResponse.model_validate(m) for m in MovieService.list_movies(db)]
    return templates.TemplateResponse(request, "admin.html", context)
