"""Database base configuration"""
import logging

from sqlalchemy import create_engine, inspect
from sqlalchemy.orm import declarative_base, sessionmaker

from app.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _create_missing_indexes(bind):
    """create_all() skips existing tables, so indexes added later are created here."""
    inspector = inspect(bind)
    tables = set(inspector.get_table_names())
    for table in Base.metadata.sorted_tables:
        if table.name not in tables:
            continue
        present = {ix["name"] for ix in inspector.get_indexes(table.name)}
        for index in table.indexes:
            if index.name and index.name not in present:
                logger.info(f"Creating index {index.name} on {table.name}")
                index.create(bind=bind)


def init_db(bind=None):
    """Create tables and indexes for all models"""
    # Models register themselves on Base.metadata when imported.
    import app.models  # noqa: F401

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    _create_missing_indexes(bind)
