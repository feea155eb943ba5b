"""
API response schemas for the FastAPI application.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Error body."""
    message: str = Field(..., description="Error message")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Exception text, only in debug mode")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: ErrorDetail


class MessageResponse(BaseModel):
    """Plain confirmation message."""
    message: str = Field(..., description="Confirmation message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
