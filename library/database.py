"""
MongoDB connection management for the library catalog.
Handles connection, indexing, and shutdown of the async client.
"""

from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure
import structlog

logger = structlog.get_logger(__name__)


class MongoDBManager:
    """
    Async MongoDB manager for the catalog collections.
    Owns the client; repositories borrow the database handle per request.
    """

    def __init__(
        self,
        connection_url: str,
        database_name: str,
        authors_collection: str = "authors",
        books_collection: str = "books",
        server_selection_timeout_ms: int = 5000
    ):
        """
        Initialize MongoDB manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            authors_collection: Name of the authors collection
            books_collection: Name of the books collection
            server_selection_timeout_ms: How long the driver waits for a server
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.authors_collection_name = authors_collection
        self.books_collection_name = books_collection
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    @property
    def authors(self) -> AsyncIOMotorCollection:
        return self.database[self.authors_collection_name]

    @property
    def books(self) -> AsyncIOMotorCollection:
        return self.database[self.books_collection_name]

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(
                self.connection_url,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms
            )
            self.database = self.client[self.database_name]

            # Test connection
            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """
        Create indexes for the lookups the books resource performs.
        """
        try:
            # Books of one author
            await self.books.create_index("author_id")

            # Listing order within an author
            await self.books.create_index([("author_id", 1), ("title", 1)])

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def health_check(self) -> dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        if self.database is None:
            return {"status": "unhealthy", "error": "not connected"}
        try:
            await self.database.command("ping")
            authors_count = await self.authors.estimated_document_count()
            books_count = await self.books.estimated_document_count()
            return {
                "status": "healthy",
                "authors_count": authors_count,
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
