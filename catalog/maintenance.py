"""
Operator tasks: seeding sample books and finding orphaned cover images.
"""

from typing import List

import structlog

from .manager import BookRecordManager
from .models import BookRecord

logger = structlog.get_logger(__name__)

SAMPLE_BOOKS = [
    {
        "bookName": "The Great Gatsby",
        "authorName": "F. Scott Fitzgerald",
        "price": 10.99,
    },
    {
        "bookName": "1984",
        "authorName": "George Orwell",
        "price": 14.99,
    },
    {
        "bookName": "Sapiens: A Brief History of Humankind",
        "authorName": "Yuval Noah Harari",
        "price": 18.99,
    },
    {
        "bookName": "The Alchemist",
        "authorName": "Paulo Coelho",
        "price": 9.99,
    },
    {
        "bookName": "To Kill a Mockingbird",
        "authorName": "Harper Lee",
        "price": 12.49,
    },
]


async def seed_books(manager: BookRecordManager) -> List[BookRecord]:
    """Create the sample books through the manager so normal validation applies."""
    created = []
    for fields in SAMPLE_BOOKS:
        created.append(await manager.create(fields))
    logger.info("Seeded sample books", count=len(created))
    return created


async def find_orphans(manager: BookRecordManager) -> List[str]:
    """References of stored images that no book points at."""
    books = await manager.list()
    referenced = {book.image_url for book in books}
    return [ref for ref in manager.assets.list_references() if ref not in referenced]


async def remove_orphans(manager: BookRecordManager) -> List[str]:
    """
    Delete orphaned images; returns the references removed.

    Run with the API stopped: an upload whose record is still being written
    looks exactly like an orphan.
    """
    removed = []
    for reference in await find_orphans(manager):
        if manager.assets.delete(reference):
            removed.append(reference)
    logger.info("Removed orphaned images", count=len(removed))
    return removed
