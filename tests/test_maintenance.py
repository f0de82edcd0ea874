"""
Maintenance Tests
=================
Upload reconciliation, the admin job endpoints, seeding and migrations.
"""
import io
import os
import time
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine, inspect, text
from starlette.datastructures import Headers, UploadFile

from moviesoft.migrations.add_media_columns import add_media_columns
from moviesoft.migrations.seed_sample_movies import SAMPLE_MOVIES, seed_sample_movies
from moviesoft.models.movie import Movie
from moviesoft.services import background_jobs as background_jobs_module
from moviesoft.services.reconcile_service import reconcile_uploads, referenced_urls


def save_file(store, field, name="file.bin", content=b"data"):
    content_type = "image/png" if field == "poster" else "video/mp4"
    upload = UploadFile(io.BytesIO(content), filename=name, headers=Headers({"content-type": content_type}))
    return store.save(field, upload)


def age_file(store, url, minutes):
    path = store.path_for_url(url)
    past = time.time() - minutes * 60
    os.utime(path, (past, past))


# ============================================
# Reconciliation
# ============================================

class TestReconcileUploads:

    def test_referenced_urls_skips_empty_paths(self, db_session):
        db_session.add_all([
            Movie(title="A", description="d", poster_path="/uploads/posters/a.png", video_path=""),
            Movie(title="B", description="d", poster_path="", video_path="/uploads/videos/b.mp4"),
        ])
        db_session.commit()

        assert referenced_urls(db_session) == {"/uploads/posters/a.png", "/uploads/videos/b.mp4"}

    def test_old_orphans_are_removed_and_referenced_files_kept(self, db_session, store):
        kept = save_file(store, "poster", "kept.png")
        orphan = save_file(store, "video", "orphan.mp4")
        db_session.add(Movie(title="A", description="d", poster_path=kept))
        db_session.commit()
        age_file(store, kept, 120)
        age_file(store, orphan, 120)

        result = reconcile_uploads(db_session, store, grace_minutes=60)

        assert result["scanned"] == 2
        assert result["removed"] == [orphan]
        assert result["missing"] == []
        assert os.path.isfile(store.path_for_url(kept))
        assert not os.path.exists(store.path_for_url(orphan))

    def test_recent_orphans_survive_the_grace_period(self, db_session, store):
        fresh = save_file(store, "poster", "fresh.png")

        result = reconcile_uploads(db_session, store, grace_minutes=60)

        assert result["removed"] == []
        assert result["kept_recent"] == 1
        assert os.path.isfile(store.path_for_url(fresh))

    def test_reference_time_can_be_moved_forward(self, db_session, store):
        orphan = save_file(store, "poster", "orphan.png")

        result = reconcile_uploads(
            db_session, store, grace_minutes=60, now=datetime.now() + timedelta(hours=2)
        )

        assert result["removed"] == [orphan]

    def test_file_vanishing_during_scan_is_skipped(self, db_session, store, monkeypatch):
        orphan = save_file(store, "poster", "orphan.png")
        age_file(store, orphan, 120)
        listed = store.list_files() + ["/uploads/videos/video-1-000000001.mp4"]
        monkeypatch.setattr(store, "list_files", lambda: listed)

        result = reconcile_uploads(db_session, store, grace_minutes=60)

        assert result["scanned"] == 2
        assert result["removed"] == [orphan]

    def test_missing_files_are_reported_not_modified(self, db_session, store):
        movie = Movie(title="A", description="d", video_path="/uploads/videos/gone.mp4",
                      thumbnail="https://example.com/t.jpg")
        db_session.add(movie)
        db_session.commit()

        result = reconcile_uploads(db_session, store, grace_minutes=0)

        assert result["missing"] == ["/uploads/videos/gone.mp4"]
        db_session.refresh(movie)
        assert movie.video_path == "/uploads/videos/gone.mp4"


class TestJobEndpoints:

    @pytest.fixture(autouse=True)
    def use_test_sessions(self, monkeypatch, session_factory):
        monkeypatch.setattr(background_jobs_module, "SessionLocal", session_factory)

    def test_trigger_reconcile_returns_summary(self, client, db_session, store):
        orphan = save_file(store, "video", "orphan.mp4")
        age_file(store, orphan, 24 * 60)

        response = client.post("/api/admin/jobs/trigger/reconcile")

        assert response.status_code == 200
        body = response.json()
        assert body["job"] == "reconcile_uploads"
        assert body["removed"] == [orphan]
        assert body["scanned"] == 1

    def test_status_reports_last_run(self, client, db_session):
        client.post("/api/admin/jobs/trigger/reconcile")

        response = client.get("/api/admin/jobs/status")

        assert response.status_code == 200
        body = response.json()
        assert body["scheduler_running"] is False
        job = next(j for j in body["jobs"] if j["id"] == "reconcile_uploads")
        assert job["status"] == "success"
        assert job["last_run"] is not None
        assert job["scheduled"] is False

    def test_failed_run_returns_500(self, client, monkeypatch):
        def broken(*args, **kwargs):
            raise OSError("uploads volume unavailable")

        monkeypatch.setattr(background_jobs_module, "reconcile_uploads", broken)

        response = client.post("/api/admin/jobs/trigger/reconcile")

        assert response.status_code == 500
        assert "uploads volume unavailable" in response.json()["detail"]


# ============================================
# Seeding & migrations
# ============================================

class TestSeedAndMigrations:

    def test_seed_fills_empty_catalog_with_one_featured(self, db_session):
        inserted = seed_sample_movies(db_session)

        assert inserted == len(SAMPLE_MOVIES)
        movies = db_session.query(Movie).all()
        assert {m.title for m in movies} == {s["title"] for s in SAMPLE_MOVIES}
        assert [m.title for m in movies if m.featured] == ["The Pickup - VJ Junior"]

    def test_seed_does_nothing_when_catalog_has_data(self, db_session):
        db_session.add(Movie(title="Mine", description="d"))
        db_session.commit()

        assert seed_sample_movies(db_session) == 0
        assert db_session.query(Movie).count() == 1

    def test_add_media_columns_upgrades_legacy_table(self, tmp_path):
        legacy = create_engine(f"sqlite:///{tmp_path / 'legacy.db'}")
        with legacy.connect() as conn:
            conn.execute(text(
                "CREATE TABLE movies (id INTEGER PRIMARY KEY, title TEXT NOT NULL, "
                "description TEXT NOT NULL, featured INTEGER DEFAULT 0)"
            ))
            conn.execute(text("INSERT INTO movies (title, description) VALUES ('Old', 'd')"))
            conn.commit()

        assert add_media_columns(legacy) == ["video_path", "poster_path"]
        assert add_media_columns(legacy) == []

        columns = {c["name"] for c in inspect(legacy).get_columns("movies")}
        assert {"video_path", "poster_path"} <= columns
        with legacy.connect() as conn:
            row = conn.execute(text("SELECT video_path, poster_path FROM movies")).one()
        assert tuple(row) == ("", "")
        legacy.dispose()
