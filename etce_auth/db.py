from urllib.parse import urlparse
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base, Session
from sqlalchemy.pool import StaticPool

from etce_auth.config import settings


def normalise_database_url(url: str) -> str:
    url = url.strip()
    if not url:
        raise RuntimeError("DATABASE_URL is empty. Set a Postgres or SQLite URL.")

    parsed = urlparse(url)
    # Ensure sslmode=require if missing
    if parsed.scheme.startswith("postgresql") and "sslmode=" not in url:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}sslmode=require"
    return url


def build_engine(url: str):
    """Create an engine for ``url``; SQLite gets thread sharing, Postgres gets pool health checks."""
    url = normalise_database_url(url)

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees its own empty database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, echo=False, **kwargs)

    return create_engine(
        url,
        future=True,
        echo=False,
        pool_pre_ping=True,
        pool_recycle=300,
    )


# -----------------------
# SQLAlchemy Engine
# -----------------------
engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)

# Base for ALL models
Base = declarative_base()


def init_db(bind=None):
    """Create missing tables."""
    from etce_auth import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# -----------------------
# Dependency
# -----------------------
def get_db() -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
