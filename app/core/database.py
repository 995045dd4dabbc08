"""
Database engine and session management.

SQLite URLs (used for local development and tests) get the thread and
pool settings they need; every other URL is passed to SQLAlchemy as is.
"""

from collections.abc import Generator

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory databases only live as long as their single connection
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    **_engine_kwargs(settings.DATABASE_URL),
)


def create_db_and_tables() -> None:
    """Create all tables registered on the SQLModel metadata."""
    # Import models so their tables are registered
    import app.models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ensured")


def get_session() -> Generator[Session, None, None]:
    """Yield a database session for a single request."""
    with Session(engine) as session:
        yield session
