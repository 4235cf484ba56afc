from datetime import datetime, UTC

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import DATABASE_URL, REQUEST_TIMEOUT_SECONDS

# SQLite needs cross-thread access (FastAPI threadpool) and a bounded lock wait
connect_args = (
    {"check_same_thread": False, "timeout": REQUEST_TIMEOUT_SECONDS}
    if DATABASE_URL.startswith("sqlite")
    else {}
)

# pool_pre_ping drops stale connections before handing them out
engine = create_engine(
    DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp; SQLite drops tzinfo on the way back anyway."""
    return datetime.now(UTC).replace(tzinfo=None)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
