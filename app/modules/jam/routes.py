from fastapi import APIRouter, Depends, Query
from app.modules.jam.schemas import JamSessionCreate, JamSessionUpdate, JamMessageCreate
from app.modules.jam.service import JamSessionService
from app.modules.notifications.routes import get_push_notifier
from app.modules.notifications.service import PushNotifier
from app.core.dependencies import get_current_user, get_request_supabase, require_plan
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/jam-sessions", tags=["jam"])

require_band_plan = require_plan(["band"], "Tu dois avoir le plan Band pour demarrer une Jam")


def get_jam_service(
    supabase: Client = Depends(get_request_supabase),
    notifier: PushNotifier = Depends(get_push_notifier)
) -> JamSessionService:
    return JamSessionService(supabase, notifier)


@router.post("", status_code=201)
async def create_jam_session(
    data: JamSessionCreate,
    current_user: Dict = Depends(require_band_plan),
    service: JamSessionService = Depends(get_jam_service)
):
    """Start a Jam for a band (Band plan)"""
    return service.create_session(data, current_user["id"])


@router.get("/band/{band_id}/active")
async def active_jam_session(
    band_id: str,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    return service.get_active_session(band_id, current_user["id"])


@router.get("/band/{band_id}/setlists")
async def band_setlists_for_jam(
    band_id: str,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    return service.band_setlists(band_id, current_user["id"])


@router.get("/{session_id}")
async def get_jam_session(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    return service.get_session(session_id, current_user["id"])


@router.patch("/{session_id}")
async def update_jam_session(
    session_id: str,
    data: JamSessionUpdate,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    return service.update_state(session_id, data, current_user["id"])


@router.post("/{session_id}/end")
async def end_jam_session(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    return service.end_session(session_id, current_user["id"])


@router.post("/{session_id}/join")
async def join_jam_session(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    """Idempotent: joining twice keeps a single participant row"""
    return service.join_session(session_id, current_user["id"])


@router.post("/{session_id}/leave", status_code=204)
async def leave_jam_session(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    service.leave_session(session_id, current_user["id"])


@router.get("/{session_id}/participants")
async def jam_participants(
    session_id: str,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    return service.get_participants(session_id, current_user["id"])


@router.post("/{session_id}/messages", status_code=201)
async def send_jam_message(
    session_id: str,
    data: JamMessageCreate,
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    return service.send_message(session_id, data.content, current_user["id"])


@router.get("/{session_id}/messages")
async def jam_messages(
    session_id: str,
    limit: int = Query(100, ge=1, le=500),
    current_user: Dict = Depends(get_current_user),
    service: JamSessionService = Depends(get_jam_service)
):
    return service.list_messages(session_id, current_user["id"], limit)
