"""
ReadSync Backend — Shared Response Schemas
===========================================

What:  The JSON envelope every endpoint answers with, plus the health model.
Why:   Clients parse one shape for every route:

           {"success": true,  "message": "...", "data": {...}}
           {"success": false, "message": "..."}

       `message` and `data` are optional and omitted when absent.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base for wire models: snake_case in Python, camelCase in JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope. Routes set response_model_exclude_none=True."""

    success: bool = Field(default=True, description="Whether the request succeeded")
    message: Optional[str] = Field(default=None, description="Human-readable status message")
    data: Optional[DataT] = Field(default=None, description="Operation payload")


class ErrorResponse(BaseModel):
    """
    What:  Error envelope produced by the global exception handlers.

    Example:
        {"success": false, "message": "Missing access token"}
    """

    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")


class HealthResponse(BaseModel):
    """Health check response showing service and dependency status."""

    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    identity: str = Field(description="Identity provider status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
