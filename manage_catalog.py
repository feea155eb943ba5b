#!/usr/bin/env python3
"""
Catalog Management Utility

This script provides utilities to manage the book catalog:
- Seed the catalog with sample books
- List all books
- Find cover images no book refers to
- Clean up those orphaned images
"""

import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from catalog.assets import AssetStore
from catalog.database import MongoBookStore
from catalog.maintenance import find_orphans, remove_orphans, seed_books
from catalog.manager import BookRecordManager
from utilities.config import config
from utilities.logger import setup_logging


async def open_manager() -> BookRecordManager:
    """Connect to the configured store and build a manager around it."""
    store = MongoBookStore(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        collection_name=config.mongodb_collection
    )
    await store.connect()
    assets = AssetStore(root=config.get_uploads_path(), max_bytes=config.max_upload_bytes)
    return BookRecordManager(store, assets, default_image_url=config.default_image_url)


async def seed_catalog(manager: BookRecordManager):
    """Insert the sample books."""
    books = await seed_books(manager)
    print(f"✅ Inserted {len(books)} books:")
    for book in books:
        print(f"   {book.id}  {book.book_name} by {book.author_name} (${book.price:.2f})")


async def list_catalog(manager: BookRecordManager):
    """List all books, newest first."""
    print("\n" + "=" * 80)
    print("📚 ALL BOOKS")
    print("=" * 80)

    books = await manager.list()
    if not books:
        print("❌ No books found in database")
        return

    for i, book in enumerate(books, 1):
        print(f"{i:3d}. {book.book_name} by {book.author_name}")
        print(f"     ID: {book.id}")
        print(f"     Price: ${book.price:.2f}")
        print(f"     Image: {book.image_url}")
        print(f"     Created: {book.created_at}")
        print()


async def show_orphans(manager: BookRecordManager):
    """Print stored images that no book refers to."""
    orphans = await find_orphans(manager)
    if not orphans:
        print("✅ No orphaned images")
        return

    print(f"⚠️  Found {len(orphans)} orphaned images:")
    for reference in orphans:
        print(f"   {reference}")
    print("   Run cleanup (with the API stopped) to remove them.")


async def cleanup_orphans(manager: BookRecordManager):
    """Delete stored images that no book refers to."""
    removed = await remove_orphans(manager)
    print(f"🧹 Removed {len(removed)} orphaned images")


COMMANDS = {
    "seed": seed_catalog,
    "list": list_catalog,
    "orphans": show_orphans,
    "cleanup": cleanup_orphans,
}


async def main():
    """Main function."""
    if len(sys.argv) < 2 or sys.argv[1].lower() not in COMMANDS:
        print("Usage: python manage_catalog.py [seed|list|orphans|cleanup]")
        print()
        print("Commands:")
        print("  seed     - Insert five sample books")
        print("  list     - List all books")
        print("  orphans  - Show uploaded images no book refers to")
        print("  cleanup  - Delete uploaded images no book refers to")
        sys.exit(1)

    command = COMMANDS[sys.argv[1].lower()]

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    try:
        manager = await open_manager()
    except Exception as e:
        print(f"❌ Could not connect to database: {e}")
        sys.exit(1)

    try:
        await command(manager)
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)
    finally:
        await manager.store.disconnect()


if __name__ == "__main__":
    asyncio.run(main())
