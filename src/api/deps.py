"""
API Dependencies
================

FastAPI dependencies shared by the routers.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from pydantic import ValidationError as PydanticValidationError

from src.core.context import ServiceContext
from src.core.errors import ServiceUnavailableError, ValidationError
from src.models.schemas import RenderOptions, RenderRequest


def get_context(request: Request) -> ServiceContext:
    """Return the service context created by the application lifespan."""
    context: Optional[ServiceContext] = getattr(request.app.state, "context", None)
    if context is None:
        raise ServiceUnavailableError("Render service is not initialized")
    return context


def build_render_request(html: Optional[str], options: Optional[Dict[str, Any]]) -> RenderRequest:
    """
    Resolve raw request fields into a render request.

    Raises:
        ValidationError: If the options cannot be parsed
    """
    try:
        render_options = RenderOptions.model_validate(options or {})
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid render options",
            details={
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ]
            },
        ) from e

    return RenderRequest(html=html or "", options=render_options)
