from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import QueuePool
from meeting_booking.config import settings
import logging

logger = logging.getLogger(__name__)


# ─── Engine ────────────────────────────────────────────────────────────────────
engine = create_engine(
    settings.DATABASE_URL,
    poolclass=QueuePool,
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=settings.DATABASE_MAX_OVERFLOW,
    pool_timeout=settings.DATABASE_POOL_TIMEOUT,
    pool_pre_ping=True,
    echo=settings.DATABASE_ECHO,
    # SQLite connections are handed across FastAPI's threadpool workers
    connect_args={"check_same_thread": False} if settings.is_sqlite else {},
)


# ─── Session Factory ───────────────────────────────────────────────────────────
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)


# ─── Base Model ────────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """Declarative base for rooms, bookings and audit logs (see meeting_booking/models/)."""


# ─── Dependency Injection ──────────────────────────────────────────────────────
def get_db():
    """One session per request; rolled back if the handler raises."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ─── Startup Helpers ───────────────────────────────────────────────────────────
def check_db_connection() -> bool:
    """Ping the database at startup; False instead of raising so the app can still boot."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info(f"Database reachable ({engine.dialect.name})")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


def init_database() -> None:
    """Create all tables directly (development / SQLite only; production uses Alembic)."""
    import meeting_booking.models  # noqa: F401  registers models on Base.metadata

    Base.metadata.create_all(bind=engine)
