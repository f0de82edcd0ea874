from dotenv import load_dotenv

# Load environment variables before modules read their configuration
load_dotenv()

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from moviesoft.database import SessionLocal, init_db
from moviesoft.routes import movies, pages, admin
from moviesoft.middleware.security import SecurityHeadersMiddleware
from moviesoft.migrations.seed_sample_movies import seed_sample_movies
from moviesoft.services.background_jobs import background_jobs
from moviesoft.services.upload_store import upload_store
from datetime import datetime, timezone
import os
import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")


def seed_if_enabled():
    """Insert sample movies into an empty catalog unless SEED_SAMPLE_MOVIES=false"""
    if os.getenv("SEED_SAMPLE_MOVIES", "true").lower() != "true":
        return

    db = SessionLocal()
    try:
        inserted = seed_sample_movies(db)
        if inserted:
            logger.info(f"Seeded {inserted} sample movies into database")
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to seed sample movies: {str(e)}", exc_info=True)
    finally:
        db.close()


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events

    Startup:
    - Create tables and upload directories
    - Seed sample movies into an empty catalog
    - Start background jobs (upload reconciliation)

    Shutdown:
    - Stop background jobs gracefully
    """
    init_db()
    upload_store.ensure_directories()
    logger.info(f"Uploads stored under {upload_store.root}")
    seed_if_enabled()

    try:
        background_jobs.start()
    except Exception as e:
        logger.error(f"Failed to start background jobs: {str(e)}")

    yield

    try:
        background_jobs.shutdown()
    except Exception as e:
        logger.error(f"Error stopping background jobs: {str(e)}")
    logger.info("Movie Soft shut down")


app = FastAPI(
    title="Movie Soft API",
    description="Movie catalog with poster/video uploads",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS - the pages are same-origin; extra origins only for a separate front end
cors_origins_env = os.getenv("CORS_ORIGINS", "")
if cors_origins_env:
    allowed_origins = [origin.strip() for origin in cors_origins_env.split(",") if origin.strip()]
else:
    allowed_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(SecurityHeadersMiddleware)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all: log the failure, return a generic message"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness check for monitoring"""
    return {
        "status": "healthy",
        "api_version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# Routes
app.include_router(movies.router)
app.include_router(admin.router)
app.include_router(pages.router)

# Static assets and uploaded media
upload_store.ensure_directories()
app.mount("/uploads", StaticFiles(directory=upload_store.root), name="uploads")
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "3000"))
    logger.info(f"Movie Soft running at http://localhost:{port}")
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level="info"
    )
