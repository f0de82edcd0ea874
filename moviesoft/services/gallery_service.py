"""
Gallery view helpers - turn catalog records into what the pages render

Pure functions over Movie-like objects (anything with the Movie attributes),
so they work the same for ORM rows and response schemas.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence


def select_featured(movies: Sequence[Any]) -> Optional[Any]:
    """
    Pick the hero movie

    First movie flagged as featured; falls back to the first movie in list
    order, or None for an empty catalog.
    """
    for movie in movies:
        if movie.featured:
            return movie
    return movies[0] if movies else None


def filter_by_title(movies: Iterable[Any], term: Optional[str]) -> List[Any]:
    """Case-insensitive substring match on title; blank term keeps everything"""
    term = (term or "").strip().lower()
    if not term:
        return list(movies)
    return [m for m in movies if term in (m.title or "").lower()]


def poster_url(movie: Any) -> str:
    """Uploaded poster wins over the external thumbnail URL"""
    return movie.poster_path or movie.thumbnail or ""


def placeholder_letter(title: Optional[str]) -> str:
    title = (title or "").strip()
    return title[0].upper() if title else "?"


def card(movie: Any) -> Dict[str, Any]:
    """Template context for one grid card"""
    return {
        "id": movie.id,
        "title": movie.title,
        "genres": movie.genres or "",
        "poster_url": poster_url(movie),
        "placeholder": placeholder_letter(movie.title),
    }


def hero(movie: Optional[Any]) -> Optional[Dict[str, Any]]:
    """Template context for the hero block (None renders the empty state)"""
    if movie is None:
        return None
    return {
        "id": movie.id,
        "title": movie.title,
        "description": movie.description,
        "genres": movie.genres or "",
        "year": movie.year or "",
        "poster_url": poster_url(movie),
        "video_url": movie.video_path or "",
    }


def build_gallery(movies: Sequence[Any], term: Optional[str] = None) -> Dict[str, Any]:
    """
    Everything the gallery page needs from one list fetch

    The hero is chosen from the full list. Every movie gets a card so the
    in-page search can re-filter the original list; cards outside the
    current filter are marked hidden.
    """
    matching = {m.id for m in filter_by_title(movies, term)}
    cards = []
    for movie in movies:
        entry = card(movie)
        entry["visible"] = movie.id in matching
        cards.append(entry)

    return {
        "hero": hero(select_featured(movies)),
        "cards": cards,
        "visible_count": len(matching),
        "total": len(movies),
        "query": (term or "").strip(),
    }
