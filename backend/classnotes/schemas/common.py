"""
ClassNotes Backend - Shared Response Schemas
==============================================

What:  Response models shared by every router: error envelope, delete
       acknowledgement, populated parent reference and health status.

Identifiers are exposed as `_id` (field alias). populate_by_name lets
handlers build models with `id=...`; FastAPI serializes them by alias.
"""

import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class IdentifiedModel(BaseModel):
    """Base for every response that carries a record id."""
    model_config = ConfigDict(populate_by_name=True)

    id: uuid.UUID = Field(alias="_id")


class ParentRef(IdentifiedModel):
    """
    Populated reference to a parent record in the catalog tree.

    Example: {"_id": "6f1c...", "name": "BCA"}
    """
    name: str


class DeleteResponse(BaseModel):
    """Returned by every DELETE route, including deletes of unknown ids."""
    deleted: bool = Field(default=True)


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "conflict")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer probes."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
