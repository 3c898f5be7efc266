"""
KNote Backend — Pydantic Request/Response Schemas
==================================================

What:  Pydantic models defining the API contract.
Why:   Automatic serialization and OpenAPI doc generation.
How:   FastAPI uses these models to serialize responses and document them.

Design Decision:
    Schemas are separate from SQLAlchemy models so the API exposes exactly the
    fields a client needs (id, HTML, timestamp) independent of table layout.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """One published note as shown in the feed."""
    id: int = Field(description="Store-assigned note identifier")
    description: str = Field(description="Rendered HTML of the note")
    created_at: Optional[datetime] = Field(
        default=None,
        description="When the note was created (UTC ISO 8601)",
    )

    model_config = {"from_attributes": True}


class FeedPage(BaseModel):
    """
    What:  Everything the index page needs: the feed and the current draft.
    Who:   Returned by GET / and by POST /note for upload and no-op submissions.

    `description` is the draft text for the editor. After an upload it holds
    what the user typed plus the new `![](/img/<key>)` reference; it is not
    yet a note.
    """
    notes: List[NoteResponse] = Field(description="All notes, most recent first")
    description: str = Field(default="", description="Draft markup for the editor")


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Image exceeds maximum of 10MB. Please upload a smaller image.",
            "details": {"field": "image", "max_size": 10485760, "actual_size": 10485761},
            "request_id": "1f2e3d4c"
        }

    `details` is only present for validation errors.
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Which field to fix, and why")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage: str = Field(description="Object store state: pending, connected, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
