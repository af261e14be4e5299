"""
Render Routes
=============

FastAPI routes for HTML to image conversion.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from src.api.deps import build_render_request, get_context
from src.config.logging import get_logger
from src.core.context import ServiceContext
from src.core.orchestrator import RenderResult
from src.models.schemas import HtmlToImageRequest, RenderRequest

logger = get_logger(__name__)

router = APIRouter(tags=["Rendering"])


TEST_PAGE_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <style>
    body {{
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
      margin: 20px;
      line-height: 1.6;
      background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
      color: white;
      min-height: 100vh;
      display: flex;
      flex-direction: column;
      justify-content: center;
    }}
    .container {{ max-width: 800px; margin: 0 auto; text-align: center; }}
    h1 {{ margin-bottom: 20px; font-size: 3em; text-shadow: 2px 2px 4px rgba(0,0,0,0.3); }}
    .info {{
      background: rgba(255,255,255,0.1);
      padding: 30px;
      border-radius: 15px;
      margin: 20px 0;
      border: 1px solid rgba(255,255,255,0.2);
    }}
    .performance {{ color: #00ff88; font-weight: bold; font-size: 1.2em; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>High-Performance Image Generator</h1>
    <div class="info">
      <p><strong>Generated at:</strong> {generated_at}</p>
      <p><strong>Engine:</strong> Playwright Chromium</p>
      <p><strong>Features:</strong> Caching, Admission Control, Multiple Formats</p>
      <p class="performance">Optimized for speed and quality!</p>
    </div>
    <p>Subsequent requests for identical content are served from cache.</p>
    <p>Supports PNG, JPEG and WebP formats</p>
  </div>
</body>
</html>
"""


def image_response(result: RenderResult, filename: str) -> Response:
    return Response(
        content=result.image_bytes,
        media_type=result.format.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Processing-Time": f"{result.elapsed_ms}ms",
            "X-Cache-Status": "HIT" if result.cache_hit else "MISS",
        },
    )


@router.post("/html-to-image", response_class=Response)
async def html_to_image(
    body: HtmlToImageRequest, context: ServiceContext = Depends(get_context)
) -> Response:
    """
    Convert HTML to an image.

    Returns the encoded image with a Content-Type matching the requested format.
    """
    request = build_render_request(body.html, body.options)
    result = await context.orchestrator.handle(request)

    logger.info(
        "Image delivered",
        elapsed_ms=result.elapsed_ms,
        size=len(result.image_bytes),
        cache_hit=result.cache_hit,
    )
    return image_response(result, f"screenshot.{result.format.value}")


@router.get("/test-image", response_class=Response)
async def test_image(context: ServiceContext = Depends(get_context)) -> Response:
    """Render a built-in test page with default options."""
    logger.info("Generating test image")
    html = TEST_PAGE_TEMPLATE.format(generated_at=datetime.now(timezone.utc).isoformat())
    result = await context.orchestrator.handle(RenderRequest(html=html))
    return image_response(result, "performance-test.png")
