from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)

engine_options = {
    "pool_pre_ping": True,
    "echo": settings.DEBUG,
}

if settings.is_sqlite:
    # Single shared connection so in-memory databases survive across sessions
    engine_options.update(
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
else:
    engine_options.update(pool_size=10, max_overflow=20)

engine = create_engine(settings.database_url, **engine_options)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session scoped to one request."""
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        logger.error(f"Database error: {e}")
        db.rollback()
        raise
    finally:
        db.close()
