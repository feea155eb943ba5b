"""
MongoDB document store for book records.
Handles connection, indexing, schema validation and CRUD keyed by ObjectId.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import ConnectionFailure

from .models import BookChanges, BookDocument

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    """Current UTC time at the millisecond precision BSON dates store."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_object_id(book_id: str) -> Optional[ObjectId]:
    """Parse a book id, returning None when it is not a valid ObjectId."""
    if isinstance(book_id, ObjectId):
        return book_id
    if not isinstance(book_id, str) or not ObjectId.is_valid(book_id):
        return None
    return ObjectId(book_id)


class MongoBookStore:
    """
    Async MongoDB store for book documents.

    Every write is validated against the book schema before it reaches the
    collection, and createdAt/updatedAt are maintained here.
    """

    def __init__(self, connection_url: str, database_name: str, collection_name: str):
        """
        Initialize the store.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            collection_name: Name of the books collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url, tz_aware=True)
            self.database = self.client[self.database_name]
            self.collection = self.database[self.collection_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name,
                        collection=self.collection_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Index createdAt for the newest-first listing."""
        try:
            await self.collection.create_index([("createdAt", -1), ("_id", -1)])
            logger.info("Successfully created MongoDB indexes")
        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def insert_book(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate and insert a new book.

        Args:
            document: Book fields keyed by their stored (camelCase) names

        Returns:
            The stored document including _id and timestamps

        Raises:
            BookValidationError: if the document fails the schema
        """
        book = BookDocument.parse(document).model_dump(by_alias=True)
        now = utc_now()
        book["createdAt"] = now
        book["updatedAt"] = now

        try:
            result = await self.collection.insert_one(book)
        except Exception as e:
            logger.error("Failed to insert book", book_name=book["bookName"], error=str(e))
            raise

        saved = {**book, "_id": result.inserted_id}
        logger.debug("Successfully inserted book", book_id=str(result.inserted_id))
        return saved

    async def find_book(self, book_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a book by its id.

        Returns:
            Book document or None if not found or the id is malformed
        """
        object_id = to_object_id(book_id)
        if object_id is None:
            return None
        try:
            return await self.collection.find_one({"_id": object_id})
        except Exception as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise

    async def update_book(self, book_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Validate and apply a partial update.

        Args:
            book_id: Id of the book to update
            changes: Fields to set, keyed by their stored names

        Returns:
            The updated document, or None if the book does not exist

        Raises:
            BookValidationError: if any changed field fails the schema
        """
        update_data = BookChanges.parse(changes).model_dump(by_alias=True, exclude_unset=True)
        object_id = to_object_id(book_id)
        if object_id is None:
            return None

        update_data["updatedAt"] = utc_now()
        try:
            book = await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": update_data},
                return_document=ReturnDocument.AFTER
            )
        except Exception as e:
            logger.error("Failed to update book", book_id=book_id, error=str(e))
            raise

        if book is None:
            logger.warning("Book not found for update", book_id=book_id)
        return book

    async def list_books(self) -> List[Dict[str, Any]]:
        """Get all books, newest first."""
        try:
            cursor = self.collection.find({}).sort([("createdAt", -1), ("_id", -1)])
            return await cursor.to_list(length=None)
        except Exception as e:
            logger.error("Failed to list books", error=str(e))
            raise

    async def delete_book(self, book_id: str) -> bool:
        """
        Delete a book by id.

        Returns:
            bool: True if deleted, False if not found
        """
        object_id = to_object_id(book_id)
        if object_id is None:
            return False
        try:
            result = await self.collection.delete_one({"_id": object_id})
        except Exception as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise

        if result.deleted_count > 0:
            logger.debug("Successfully deleted book", book_id=book_id)
            return True
        logger.warning("Book not found for deletion", book_id=book_id)
        return False

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.collection.count_documents({})
            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
