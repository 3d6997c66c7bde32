import httpx
from fastapi import APIRouter, Depends, Query
from app.modules.tabs.schemas import TabSearchResponse
from app.modules.tabs.service import TabSearchService
from app.core.dependencies import require_paid_plan
from app.core.http import get_http_client
from typing import Dict, Optional

router = APIRouter(prefix="/tabs", tags=["tabs"])


def get_tab_service(http_client: httpx.AsyncClient = Depends(get_http_client)) -> TabSearchService:
    return TabSearchService(http_client)


@router.get("/search", response_model=TabSearchResponse, response_model_exclude_none=True)
async def search_tabs(
    title: Optional[str] = Query(None),
    artist: Optional[str] = Query(None),
    current_user: Dict = Depends(require_paid_plan),
    service: TabSearchService = Depends(get_tab_service)
):
    """Songsterr matches followed by the Ultimate Guitar search link"""
    return await service.search(title, artist)
