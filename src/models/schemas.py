"""
Pydantic Models and Schemas
===========================

Core data models for render requests, render options and API responses.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum
import json

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# Enums
class ImageFormat(str, Enum):
    """Supported output image formats."""

    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"

    @property
    def content_type(self) -> str:
        return f"image/{self.value}"


# Render Models
class RenderOptions(BaseModel):
    """Rendering options for a single HTML to image conversion.

    Accepts snake_case, camelCase and the legacy ``type``/``timeout`` keys.
    Fields that are not supplied fall back to their defaults.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    width: int = Field(default=1920, gt=0, description="Viewport width in pixels")
    height: int = Field(default=1080, gt=0, description="Viewport height in pixels")
    device_scale_factor: float = Field(
        default=1.0,
        gt=0,
        validation_alias=AliasChoices("device_scale_factor", "deviceScaleFactor"),
        description="Device pixel ratio",
    )
    full_page: bool = Field(
        default=True,
        validation_alias=AliasChoices("full_page", "fullPage"),
        description="Capture the full scrollable page",
    )
    format: ImageFormat = Field(
        default=ImageFormat.PNG,
        validation_alias=AliasChoices("format", "type"),
        description="Output image format",
    )
    quality: int = Field(default=90, ge=0, le=100, description="JPEG quality")
    timeout_ms: int = Field(
        default=25000,
        gt=0,
        validation_alias=AliasChoices("timeout_ms", "timeoutMs", "timeout"),
        description="Content load timeout in milliseconds",
    )

    def canonical_json(self) -> str:
        """Serialize options with a stable key order for fingerprinting."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))


class RenderRequest(BaseModel):
    """An accepted render request: markup plus resolved options."""

    model_config = ConfigDict(frozen=True)

    html: str = Field(default="", description="HTML markup to render")
    options: RenderOptions = Field(default_factory=RenderOptions)


# API Models
class HtmlToImageRequest(BaseModel):
    """Body of ``POST /html-to-image``."""

    html: Optional[str] = Field(default=None, description="HTML content to render")
    options: Optional[Dict[str, Any]] = Field(default=None, description="Render options")


class ErrorResponse(BaseModel):
    """Structured error response."""

    error: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Machine-readable error code")
    details: Optional[Dict[str, Any]] = Field(None, description="Diagnostic details")
    request_id: Optional[str] = Field(None, description="Request identifier")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class CacheClearResponse(BaseModel):
    """Response of ``POST /cache-clear``."""

    message: str = "Cache cleared successfully"
    cleared_entries: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class MemoryUsage(BaseModel):
    rss_mb: int
    percent: float


class ServiceStatus(BaseModel):
    active_requests: int
    max_concurrent: int
    cache_size: int
    uptime: int
    engine_state: str
    lifecycle_state: str
    memory: MemoryUsage
    counters: Dict[str, int] = Field(default_factory=dict)


class StatusResponse(BaseModel):
    """Response of ``GET /``."""

    message: str
    version: str
    engine: str = "playwright-chromium"
    status: ServiceStatus
    endpoints: Dict[str, str]
