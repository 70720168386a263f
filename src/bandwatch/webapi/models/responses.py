"""Response models for the Bandwatch API."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseResponse(BaseModel):
    """Base response model for all API responses."""

    success: bool = Field(..., description="Whether the request was successful")
    timestamp: datetime = Field(
        default_factory=_utcnow, description="Response timestamp"
    )

    model_config = ConfigDict(use_enum_values=True)

    @field_serializer("timestamp")
    def serialize_timestamp(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


class MessageResponse(BaseResponse):
    """Simple message response."""

    success: bool = Field(True, description="Always true for message responses")
    message: str = Field(..., description="Response message")


class ErrorResponse(BaseResponse):
    """Error response model."""

    success: bool = Field(False, description="Always false for error responses")
    error: Dict[str, Any] = Field(..., description="Error details")


class HealthStatus(BaseModel):
    """Scanner liveness details."""

    status: str = Field(..., description="healthy, degraded or starting")
    cycles_completed: int = Field(..., description="Completed poll cycles")
    has_data: bool = Field(..., description="Whether any symbol has valid data")
    success_count: int = Field(..., description="Successful symbols last cycle")
    fail_count: int = Field(..., description="Failed symbols last cycle")
    last_fetch_time: Optional[str] = Field(None, description="Last cycle end")
    next_fetch_time: Optional[str] = Field(None, description="Projected next cycle")
    cache: Dict[str, Any] = Field(default_factory=dict, description="Cache stats")
    uptime_seconds: float = Field(..., description="Application uptime in seconds")
    version: Optional[str] = Field(None, description="Application version")


class HealthResponse(BaseResponse):
    """Health check response."""

    success: bool = Field(True, description="Always true for health responses")
    health: HealthStatus = Field(..., description="Detailed health information")
