"""
FastAPI main application for the History Books Catalog API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, FastAPI, File, Form, HTTPException, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import config as api_config
from api.models import ErrorDetail, ErrorResponse, HealthResponse, MessageResponse
from catalog.assets import AssetStore
from catalog.database import MongoBookStore
from catalog.errors import BookValidationError, CatalogError
from catalog.manager import BookRecordManager
from catalog.models import BookRecord, ImageUpload
from utilities.config import config
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

# Global book manager, set up by the lifespan
book_manager: Optional[BookRecordManager] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting History Books Catalog API")

    global book_manager
    store = MongoBookStore(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        collection_name=config.mongodb_collection
    )
    try:
        await store.connect()
        logger.info("Database connection established")
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    assets = AssetStore(root=config.get_uploads_path(), max_bytes=config.max_upload_bytes)
    book_manager = BookRecordManager(store, assets, default_image_url=config.default_image_url)
    logger.info("API ready", books_url=api_config.api_prefix, uploads_dir=config.uploads_dir)

    yield

    logger.info("Shutting down History Books Catalog API")
    await store.disconnect()
    book_manager = None


# Create FastAPI application
app = FastAPI(
    title=api_config.api_title,
    description=api_config.api_description,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
    expose_headers=api_config.cors_expose_headers,
)

app.mount(
    "/uploads",
    StaticFiles(directory=str(config.get_uploads_path()), check_dir=False),
    name="uploads"
)


def error_response(message: str, status_code: int, detail: Optional[str] = None, headers=None) -> JSONResponse:
    """Render an error in the {"error": {"message", "status"}} envelope."""
    body = ErrorResponse(error=ErrorDetail(message=message, status=status_code, detail=detail))
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(exclude_none=True),
        headers=headers
    )


# Exception handlers
@app.exception_handler(CatalogError)
async def catalog_exception_handler(request, exc: CatalogError):
    """Handle catalog errors."""
    if exc.status_code >= 500:
        logger.error("Catalog operation failed", error=exc.message, path=request.url.path, exc_info=exc)
    else:
        logger.info("Request rejected", error=exc.message, status=exc.status_code, path=request.url.path)
    return error_response(exc.message, exc.status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return error_response(str(exc.detail), exc.status_code, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request, exc: RequestValidationError):
    """Handle malformed requests FastAPI rejects before reaching a route."""
    messages = [f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()]
    return error_response("; ".join(messages), status.HTTP_400_BAD_REQUEST)


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=exc)
    return error_response(
        "Internal Server Error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc) if api_config.debug else None
    )


def get_book_manager() -> BookRecordManager:
    """Return the active book manager or fail if the database is not connected."""
    if book_manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service not available"
        )
    return book_manager


async def read_upload(image: Optional[UploadFile], max_bytes: int) -> Optional[ImageUpload]:
    """
    Turn a multipart file part into an ImageUpload.

    At most max_bytes + 1 bytes are read, which is enough for the asset store
    to reject an oversized file without buffering all of it.
    """
    if image is None or not image.filename:
        return None
    data = await image.read(max_bytes + 1)
    return ImageUpload(filename=image.filename, content_type=image.content_type, data=data)


async def read_fields(request: Request, form_fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Book fields from a JSON body, or the form fields for any other body.

    JSON clients cannot send an image; they only set the text fields.
    """
    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    if content_type != "application/json":
        return form_fields

    try:
        body = await request.json()
    except ValueError as e:
        raise BookValidationError("Request body is not valid JSON") from e
    if not isinstance(body, dict):
        raise BookValidationError("Request body must be a JSON object")
    return {name: body.get(name) for name in form_fields}


# Health check endpoint
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "unavailable"
    if book_manager:
        health_info = await book_manager.store.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=api_config.api_version,
        database_status=db_status
    )


# Books endpoints
router = APIRouter(prefix=api_config.api_prefix, tags=["Books"])


@router.post("", response_model=BookRecord, status_code=status.HTTP_201_CREATED)
async def create_book(
    request: Request,
    book_name: Optional[str] = Form(None, alias="bookName"),
    author_name: Optional[str] = Form(None, alias="authorName"),
    price: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None)
):
    """
    Create a book.

    - **bookName**, **authorName**: required text
    - **price**: required, non-negative number
    - **image**: optional cover (.jpg, .jpeg, .png, .gif; max 5 MB)

    Fields may also be sent as a JSON object, without an image.
    """
    manager = get_book_manager()
    upload = await read_upload(image, manager.assets.max_bytes)
    fields = await read_fields(
        request, {"bookName": book_name, "authorName": author_name, "price": price}
    )
    return await manager.create(fields, upload)


@router.get("", response_model=List[BookRecord])
async def list_books():
    """List all books, newest first."""
    return await get_book_manager().list()


@router.get("/{book_id}", response_model=BookRecord)
async def get_book(book_id: str):
    """Get a single book by ID."""
    return await get_book_manager().get(book_id)


@router.put("/{book_id}", response_model=BookRecord)
async def update_book(
    book_id: str,
    request: Request,
    book_name: Optional[str] = Form(None, alias="bookName"),
    author_name: Optional[str] = Form(None, alias="authorName"),
    price: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None)
):
    """
    Update a book. Omitted fields keep their values.
    Sending a new **image** replaces the cover and removes the old file.
    """
    manager = get_book_manager()
    upload = await read_upload(image, manager.assets.max_bytes)
    fields = await read_fields(
        request, {"bookName": book_name, "authorName": author_name, "price": price}
    )
    return await manager.update(book_id, fields, upload)


@router.delete("/{book_id}", response_model=MessageResponse)
async def delete_book(book_id: str) -> Dict[str, str]:
    """Delete a book together with its uploaded cover image."""
    return await get_book_manager().delete(book_id)


app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level="info"
    )
