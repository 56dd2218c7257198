import logging
import os
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from dotenv import load_dotenv

import models  # noqa: F401  registers the tables on SQLModel.metadata

logger = logging.getLogger(__name__)

# 1. Load environment variables from .env file
load_dotenv()

MEMORY_BACKEND = "memory"
SQL_BACKEND = "sql"
BACKENDS = (MEMORY_BACKEND, SQL_BACKEND)


def get_store_backend() -> str:
    backend = os.environ.get("STORE_BACKEND", MEMORY_BACKEND).strip().lower()
    if backend not in BACKENDS:
        raise ValueError(
            f"STORE_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}."
        )
    return backend


def get_database_url() -> str:
    # Only the sql backend needs it, so fail fast here rather than at import
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL is not set. Please check your .env file.")
    return database_url


def get_log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()


def sql_echo_enabled() -> bool:
    return os.environ.get("SQL_ECHO", "false").strip().lower() in ("1", "true", "yes")


def create_engine(database_url: str = None, **kwargs) -> AsyncEngine:
    kwargs.setdefault("echo", sql_echo_enabled())
    return create_async_engine(database_url or get_database_url(), future=True, **kwargs)


async def init_db(engine: AsyncEngine):
    async with engine.begin() as conn:
        # This creates the tables if they don't exist
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables ready")


def create_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
