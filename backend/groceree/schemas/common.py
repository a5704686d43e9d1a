"""
Groceree Backend - Shared Pydantic Schemas
============================================

What:  Base model for camelCase JSON plus the response shapes every router
       shares (errors, success flags, health).
How:   `CamelModel` generates camelCase aliases for snake_case fields.
       FastAPI serializes response models by alias, and `populate_by_name`
       lets services construct them with Python field names.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every request/response body exchanged with the frontend."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "Recipe not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class SuccessResponse(CamelModel):
    success: bool = True


class HealthResponse(BaseModel):
    """Returned by GET /health for container and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Blob store: writable, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
