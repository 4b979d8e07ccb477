"""
Database Connection and Store Construction
Uses PostgreSQL with asyncpg (SQLite with aiosqlite for local development)
"""

import logging
from databases import Database
from sqlalchemy import MetaData, create_engine
from sqlalchemy.orm import declarative_base
from membership.config import Settings

logger = logging.getLogger(__name__)

# Metadata for models
metadata = MetaData()

# Base class for models
Base = declarative_base(metadata=metadata)


def create_database(database_url: str) -> Database:
    """Build the async database handle for a URL"""
    # For Supabase connection pooler (pgbouncer), disable prepared statements
    if "supabase.com" in database_url or "pooler.supabase.com" in database_url:
        db_options = {"min_size": 1, "max_size": 5, "statement_cache_size": 0}
    elif database_url.startswith("sqlite"):
        db_options = {}
    else:
        db_options = {"min_size": 1, "max_size": 10}

    return Database(database_url, **db_options)


def create_sync_engine(database_url: str):
    """SQLAlchemy engine for migrations and scripts"""
    return create_engine(
        database_url.replace("postgresql://", "postgresql+psycopg2://")
        if "postgresql://" in database_url else database_url
    )


def build_store(settings: Settings):
    """Construct the entity store selected by STORE_BACKEND"""
    from membership.store import InMemoryEntityStore, SqlEntityStore

    if settings.STORE_BACKEND == "memory":
        logger.info("Using in-memory entity store")
        return InMemoryEntityStore()

    return SqlEntityStore(create_database(settings.DATABASE_URL))

