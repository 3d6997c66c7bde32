import httpx
from fastapi import APIRouter, Depends, File, UploadFile
from app.modules.audio.schemas import IdentifyResponse
from app.modules.audio.service import AudioRecognitionService
from app.core.dependencies import require_plan
from app.core.http import get_http_client
from app.config.plans_config import PAID_PLANS
from typing import Dict, Optional

router = APIRouter(prefix="/audio", tags=["audio"])

require_recognition_plan = require_plan(PAID_PLANS, "Fonctionnalité réservée aux plans Pro et Band")


def get_audio_service(http_client: httpx.AsyncClient = Depends(get_http_client)) -> AudioRecognitionService:
    return AudioRecognitionService(http_client)


@router.post("/identify", response_model=IdentifyResponse)
async def identify_song(
    audio: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(require_recognition_plan),
    service: AudioRecognitionService = Depends(get_audio_service)
):
    """Identify a recorded excerpt (Pro/Band)"""
    content = await audio.read() if audio is not None else None
    return await service.identify(content)
