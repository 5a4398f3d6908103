from collections.abc import AsyncGenerator

import httpx
from fastapi import Request

from publisphere.core.config import settings
from publisphere.core.security import verify_cron_secret
from publisphere.domain.errors import CronAuthError


def require_cron_secret(request: Request) -> None:
    if not verify_cron_secret(request.headers.get("Authorization")):
        raise CronAuthError("Unauthorized")


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(timeout=settings.wordpress_timeout_seconds) as client:
        yield client
