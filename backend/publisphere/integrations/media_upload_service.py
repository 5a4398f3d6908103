import logging
from datetime import UTC, datetime
from urllib.parse import urlparse

import httpx

from publisphere.core.config import settings
from publisphere.integrations.job_handlers.base_handler import PublishTargetError
from publisphere.integrations.wordpress_client import WordPressClient

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"


async def fetch_remote_image(http_client: httpx.AsyncClient, image_url: str) -> tuple[bytes, str]:
    normalized_reference = image_url.strip()
    if not normalized_reference:
        raise ValueError("Media reference is required")

    parsed = urlparse(normalized_reference)
    if parsed.scheme not in {"http", "https"}:
        raise ValueError("Only HTTP/HTTPS media references are supported")

    response = await http_client.get(
        normalized_reference,
        timeout=settings.image_fetch_timeout_seconds,
        follow_redirects=True,
    )
    if response.status_code >= 400:
        raise ValueError(f"Failed to fetch image: {response.status_code}")
    content_type = response.headers.get("content-type", DEFAULT_IMAGE_CONTENT_TYPE).split(";")[0].strip()
    return response.content, content_type or DEFAULT_IMAGE_CONTENT_TYPE


async def upload_featured_image(
    http_client: httpx.AsyncClient,
    wordpress: WordPressClient,
    image_url: str,
) -> int | None:
    """
    Best-effort featured image upload.

    Returns the WordPress media id, or None when the image could not be
    fetched or uploaded. The failure is logged and never raised.
    """
    try:
        content, content_type = await fetch_remote_image(http_client, image_url)
        filename = f"image-{int(datetime.now(UTC).timestamp() * 1000)}.jpg"
        media_id = await wordpress.upload_media(content=content, content_type=content_type, filename=filename)
    except (httpx.HTTPError, PublishTargetError, ValueError) as exc:
        logger.warning("featured_image_upload_skipped image_url=%s reason=%s", image_url, exc)
        return None

    logger.info("featured_image_uploaded media_id=%s", media_id)
    return media_id
