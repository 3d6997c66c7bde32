from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.modules.covers.schemas import CoverCreate, CoverUpdate, CoverQuota, CoverUploadResponse
from app.modules.covers.service import CoverService
from app.core.dependencies import get_current_user, get_request_supabase
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/covers", tags=["covers"])


def get_cover_service(supabase: Client = Depends(get_request_supabase)) -> CoverService:
    return CoverService(supabase)


@router.get("")
async def list_covers(
    current_user: Dict = Depends(get_current_user),
    service: CoverService = Depends(get_cover_service)
):
    return service.list_covers(current_user["id"])


@router.get("/quota", response_model=CoverQuota)
async def cover_quota(
    current_user: Dict = Depends(get_current_user),
    service: CoverService = Depends(get_cover_service)
):
    """Whether the caller may add another cover"""
    return service.get_quota(current_user["id"])


@router.get("/song/{song_id}")
async def list_song_covers(
    song_id: str,
    current_user: Dict = Depends(get_current_user),
    service: CoverService = Depends(get_cover_service)
):
    return service.list_covers_for_song(song_id, current_user["id"])


@router.post("/upload", response_model=CoverUploadResponse)
async def upload_cover_media(
    file: Optional[UploadFile] = File(None),
    song_id: Optional[str] = Form(None, alias="songId"),
    current_user: Dict = Depends(get_current_user),
    service: CoverService = Depends(get_cover_service)
):
    """Store a cover recording in the covers bucket and return its public URL"""
    content = await file.read() if file is not None else None
    return service.upload_media(
        current_user["id"],
        song_id,
        file.filename if file is not None else None,
        file.content_type if file is not None else None,
        content
    )


@router.post("", status_code=201)
async def create_cover(
    data: CoverCreate,
    current_user: Dict = Depends(get_current_user),
    service: CoverService = Depends(get_cover_service)
):
    return service.create_cover(data, current_user["id"])


@router.put("/{cover_id}")
async def update_cover(
    cover_id: str,
    data: CoverUpdate,
    current_user: Dict = Depends(get_current_user),
    service: CoverService = Depends(get_cover_service)
):
    return service.update_cover(cover_id, data, current_user["id"])


@router.delete("/{cover_id}", status_code=204)
async def delete_cover(
    cover_id: str,
    current_user: Dict = Depends(get_current_user),
    service: CoverService = Depends(get_cover_service)
):
    service.delete_cover(cover_id, current_user["id"])
