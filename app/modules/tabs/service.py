import asyncio
import logging
import httpx
from typing import List, Dict, Any
from urllib.parse import quote
from fastapi import HTTPException
from app.modules.tabs.schemas import TabSource, TabSearchResponse

logger = logging.getLogger(__name__)

SONGSTERR_SEARCH_URL = "https://www.songsterr.com/a/ra/songs.json"
SONGSTERR_MAX_RESULTS = 10


def songsterr_url(song_id: int) -> str:
    return f"https://www.songsterr.com/a/wsa/{song_id}"


def ultimate_guitar_search_url(title: str, artist: str) -> str:
    query = f"{artist} {title}".strip()
    return f"https://www.ultimate-guitar.com/search.php?search_type=title&value={quote(query, safe='')}"


class TabSearchService:
    """Tab and chord lookup across Songsterr and Ultimate Guitar"""

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client

    async def search_songsterr(self, title: str, artist: str) -> List[Dict[str, Any]]:
        """First Songsterr matches; any failure yields an empty list"""
        query = f"{artist} {title}".strip()
        if not query:
            return []
        try:
            response = await self.http_client.get(SONGSTERR_SEARCH_URL, params={"pattern": query})
            if response.status_code >= 400:
                logger.warning(f"Songsterr search failed: {response.status_code}")
                return []
            return list(response.json())[:SONGSTERR_MAX_RESULTS]
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Songsterr search error: {e}")
            return []

    async def ultimate_guitar_sources(self, title: str, artist: str) -> List[TabSource]:
        # No public API: a prebuilt search link
        return [TabSource(
            source="ultimate_guitar",
            title=f"{title} - {artist}",
            artist=artist,
            url=ultimate_guitar_search_url(title, artist),
            type="Tabs & Chords",
        )]

    async def search(self, title: str, artist: str) -> TabSearchResponse:
        if not title or not artist:
            raise HTTPException(status_code=400, detail="title et artist requis")

        songsterr_results, ug_sources = await asyncio.gather(
            self.search_songsterr(title, artist),
            self.ultimate_guitar_sources(title, artist),
        )
        songsterr_sources = [
            TabSource(
                source="songsterr",
                title=result.get("title") or "",
                artist=(result.get("artist") or {}).get("name") or "",
                url=songsterr_url(result["id"]),
            )
            for result in songsterr_results
            if result.get("id") is not None
        ]
        return TabSearchResponse(sources=songsterr_sources + ug_sources)
