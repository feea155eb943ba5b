"""
FastAPI RESTful API for the History Books catalog.

This module provides a REST API for:
- Creating, listing, fetching, updating and deleting books
- Uploading cover images stored on local disk
- Serving uploaded covers as static files
"""
