"""
Database wiring for the FastAPI application.
"""

from typing import Optional

import structlog
from fastapi import Depends, HTTPException, status

from library.database import MongoDBManager
from library.repository import LibraryRepository, MongoLibraryRepository
from utilities.config import config

logger = structlog.get_logger(__name__)

# Set by the application lifespan
db_manager: Optional[MongoDBManager] = None


async def connect() -> MongoDBManager:
    """Create the shared MongoDB manager and connect it."""
    global db_manager
    manager = MongoDBManager(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        authors_collection=config.authors_collection,
        books_collection=config.books_collection,
        server_selection_timeout_ms=config.server_selection_timeout_ms
    )
    await manager.connect()
    db_manager = manager
    return manager


async def disconnect() -> None:
    global db_manager
    if db_manager:
        await db_manager.disconnect()
        db_manager = None


def get_db_manager() -> MongoDBManager:
    """Dependency returning the connected manager."""
    if db_manager is None or db_manager.database is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return db_manager


def get_repository(manager: MongoDBManager = Depends(get_db_manager)) -> LibraryRepository:
    """Dependency returning a repository scoped to the current request."""
    return MongoLibraryRepository(manager.authors, manager.books)
