"""Response models for HTTP routes and server status."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="ok", description="Liveness status")
    version: str = Field(..., description="Server version")
    platform: str = Field(..., description="Host platform name")
    timestamp: datetime = Field(..., description="Server time")


class ServerStatus(BaseModel):
    """Snapshot of the lifecycle controller state."""

    is_running: bool
    port: int
    platform: str


class AcceptedResponse(BaseModel):
    """Acknowledgement for a message queued onto the SSE stream."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = "accepted"
    session_id: str = Field(..., alias="sessionId")
