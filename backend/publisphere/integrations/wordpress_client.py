import base64

import httpx

from publisphere.integrations.job_handlers.base_handler import PublishTargetAuthError, PublishTargetError

WORDPRESS_MEDIA_PATH = "/wp-json/wp/v2/media"
WORDPRESS_POSTS_PATH = "/wp-json/wp/v2/posts"


class WordPressClient:
    """Thin client over the WordPress REST API using application-password basic auth."""

    def __init__(self, http_client: httpx.AsyncClient, *, site_url: str, username: str, password: str) -> None:
        self.http_client = http_client
        self.site_url = site_url.rstrip("/")
        token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        self._authorization = f"Basic {token}"

    async def upload_media(self, *, content: bytes, content_type: str, filename: str) -> int:
        headers = {
            "Authorization": self._authorization,
            "Content-Type": content_type,
            "Content-Disposition": f'attachment; filename="{filename}"',
        }
        try:
            response = await self.http_client.post(
                f"{self.site_url}{WORDPRESS_MEDIA_PATH}", content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            raise PublishTargetError(f"WordPress media upload request failed: {exc}") from exc
        if response.status_code >= 400:
            raise PublishTargetError(f"WordPress media upload failed: {response.status_code} - {response.text}")
        media_id = response.json().get("id")
        if media_id is None:
            raise PublishTargetError("WordPress media upload response missing id")
        return int(media_id)

    async def create_post(self, payload: dict) -> dict:
        headers = {
            "Authorization": self._authorization,
            "Content-Type": "application/json",
        }
        try:
            response = await self.http_client.post(
                f"{self.site_url}{WORDPRESS_POSTS_PATH}", json=payload, headers=headers
            )
        except httpx.HTTPError as exc:
            raise PublishTargetError(f"WordPress publish request failed: {exc}") from exc
        if response.status_code >= 400:
            if response.status_code == 401:
                raise PublishTargetAuthError("WordPress authentication failed. Please reconnect your site.")
            if response.status_code == 403:
                raise PublishTargetAuthError(
                    "Permission denied. Your WordPress user may lack publishing permissions."
                )
            raise PublishTargetError(f"WordPress publish failed: {response.status_code} - {response.text}")
        return response.json() if response.content else {}
