"""
GenEdu Backend — Shared Schema Pieces
=======================================

What:  Base model with camelCase aliases and the envelope types shared by
       every route group.

Envelope:
    Success: {"success": true, "message": "...", "<resource>": {...}}
    Failure: {"success": false, "message": "...", "requestId": "a1b2c3d4"}
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes snake_case fields as camelCase and accepts either on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MessageResponse(CamelModel):
    """Envelope without a resource body (e.g. after a delete)."""
    success: bool = Field(default=True)
    message: Optional[str] = Field(default=None, description="Human-readable result")


class ErrorResponse(CamelModel):
    """
    Error envelope returned by every global exception handler.

    request_id correlates the response with server log entries.
    """
    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
