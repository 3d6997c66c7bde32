"""
Outbound HTTP client shared by the Spotify, AudD and tabs integrations
"""

from typing import AsyncIterator
import httpx
from app.config.settings import settings


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Per-request AsyncClient; closed once the response is sent."""
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client
