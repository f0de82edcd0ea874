from sqlalchemy import create_engine, pool, event
from sqlalchemy.orm import declarative_base, sessionmaker
import os
from dotenv import load_dotenv
import logging

load_dotenv()
logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./movies.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() == "true"

if DATABASE_URL.startswith("sqlite"):
    # SQLite connections are shared across FastAPI's worker threads
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        echo=DB_ECHO
    )
else:
    # Connection pooling configuration for server databases
    engine = create_engine(
        DATABASE_URL,
        poolclass=pool.QueuePool,
        pool_size=int(os.getenv("DB_POOL_SIZE", 5)),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", 10)),
        pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", 30)),
        pool_recycle=int(os.getenv("DB_POOL_RECYCLE", 3600)),
        pool_pre_ping=True,
        echo=DB_ECHO
    )


@event.listens_for(engine, "connect")
def receive_connect(dbapi_conn, connection_record):
    """Log when a new connection is created"""
    logger.debug("Database connection established")


@event.listens_for(engine, "checkout")
def receive_checkout(dbapi_conn, connection_record, connection_proxy):
    """Log when a connection is checked out from the pool"""
    logger.debug("Connection checked out from pool")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db():
    """Create all tables registered on Base (idempotent)"""
    # Import models so they are registered with Base before create_all
    import moviesoft.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")


# Dependency for FastAPI routes
def get_db():
    """
    Database session dependency for FastAPI.
    Automatically handles session creation and cleanup.

    Usage:
        @router.get("/endpoint")
        def endpoint(db: Session = Depends(get_db)):
            # Use db here
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Utility function for manual session management
def get_db_session():
    """
    Get a database session for manual management (scripts, background jobs).
    Remember to close the session after use!
    """
    return SessionLocal()
