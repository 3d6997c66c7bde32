from fastapi import APIRouter, Depends, HTTPException, Query
from app.modules.bands.schemas import BandCreate, BandUpdate, BandInvitationCreate
from app.modules.bands.service import BandService
from app.modules.notifications.routes import get_push_notifier
from app.modules.notifications.service import PushNotifier
from app.core.dependencies import get_current_user, get_request_supabase, require_plan
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/bands", tags=["bands"])

require_band_plan = require_plan(["band"], "Tu dois avoir le plan Band pour creer un groupe")


def get_band_service(
    supabase: Client = Depends(get_request_supabase),
    notifier: PushNotifier = Depends(get_push_notifier)
) -> BandService:
    return BandService(supabase, notifier)


@router.get("")
async def list_bands(
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    """Bands the caller belongs to"""
    return service.list_bands(current_user["id"])


@router.post("", status_code=201)
async def create_band(
    data: BandCreate,
    current_user: Dict = Depends(require_band_plan),
    service: BandService = Depends(get_band_service)
):
    return service.create_band(data, current_user["id"])


@router.get("/invitations/pending")
async def pending_invitations(
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    return service.list_pending_invitations(current_user["id"])


@router.post("/invitations/{invitation_id}/accept")
async def accept_invitation(
    invitation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    return service.accept_invitation(invitation_id, current_user["id"])


@router.post("/invitations/{invitation_id}/decline", status_code=204)
async def decline_invitation(
    invitation_id: str,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    if not service.decline_invitation(invitation_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Invitation non trouvee")


@router.get("/{band_id}")
async def get_band(
    band_id: str,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    return service.get_band(band_id, current_user["id"])


@router.put("/{band_id}")
async def update_band(
    band_id: str,
    data: BandUpdate,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    """Owner only"""
    return service.update_band(band_id, data, current_user["id"])


@router.delete("/{band_id}", status_code=204)
async def delete_band(
    band_id: str,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    if not service.delete_band(band_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Groupe non trouvé")


@router.post("/{band_id}/invitations", status_code=201)
async def invite_to_band(
    band_id: str,
    data: BandInvitationCreate,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    return service.invite(band_id, data.invitee_id, current_user["id"])


@router.post("/{band_id}/leave", status_code=204)
async def leave_band(
    band_id: str,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    service.leave_band(band_id, current_user["id"])


@router.delete("/{band_id}/members/{member_id}", status_code=204)
async def remove_member(
    band_id: str,
    member_id: str,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    if not service.remove_member(band_id, member_id, current_user["id"]):
        raise HTTPException(status_code=404, detail="Membre non trouvé")


@router.get("/{band_id}/songs")
async def band_members_songs(
    band_id: str,
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    return service.members_songs(band_id, current_user["id"])


@router.get("/{band_id}/invite-search")
async def search_invitees(
    band_id: str,
    q: str = Query(""),
    current_user: Dict = Depends(get_current_user),
    service: BandService = Depends(get_band_service)
):
    return service.search_invitees(band_id, q, current_user["id"])
